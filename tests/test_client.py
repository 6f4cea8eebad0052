"""
Tests for the calendar client: HTTP wrapper, local notes and screen state.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

import httpx
import pytest

from assessment_calendar.client.api_client import CalendarApiClient
from assessment_calendar.client.notes_store import STORAGE_KEY, NotesStore
from assessment_calendar.client.state import (
    CalendarScreenState,
    ListScreenState,
    open_calendar_screen,
)
from assessment_calendar.domain.models import Assessment
from assessment_calendar.infrastructure.exceptions import ApiClientError, NotesStorageError


def envelope(data: Any, message: str = "ok") -> dict[str, Any]:
    return {"success": True, "data": data, "message": message}


def wire(assessment_id: int, name: str, submit_date: str, color: str = "#FF6B6B") -> dict[str, Any]:
    return {
        "ID": assessment_id,
        "name": name,
        "description": "",
        "submit_date": submit_date,
        "color": color,
    }


def make_client(handler) -> CalendarApiClient:
    return CalendarApiClient("http://calendar.test/", transport=httpx.MockTransport(handler))


class FakeClient:
    """Stands in for CalendarApiClient in state tests."""

    def __init__(self, *responses: list[Assessment] | Exception):
        self.responses = list(responses)
        self.calls = 0

    def list_assessments(self) -> list[Assessment]:
        self.calls += 1
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class TestCalendarApiClient:
    def test_list_assessments_unwraps_envelope(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json=envelope([wire(1, "Essay", "2024-03-01T00:00:00")])
            )

        with make_client(handler) as client:
            assessments = client.list_assessments()

        assert seen[0].method == "GET"
        assert str(seen[0].url) == "http://calendar.test/api/calendar"
        assert assessments == [
            Assessment(id=1, name="Essay", submit_date="2024-03-01T00:00:00")
        ]

    def test_list_for_date_uses_local_key(self):
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=envelope([]))

        client = make_client(handler)
        assert client.list_assessments_for_date(date(2024, 3, 1)) == []
        client.list_assessments_for_date(datetime(2024, 3, 1, 23, 30))
        client.list_assessments_for_date("2024-03-02")

        assert paths == [
            "/api/calendar/2024-03-01",
            "/api/calendar/2024-03-01",
            "/api/calendar/2024-03-02",
        ]

    def test_create_sends_payload(self):
        bodies: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json=envelope(wire(7, "Quiz", "2024-03-05T00:00:00")))

        created = make_client(handler).create_assessment("Quiz", date(2024, 3, 5))

        assert bodies == [{"name": "Quiz", "description": "", "submit_date": "2024-03-05"}]
        assert created.id == 7

    def test_update_and_delete(self):
        requests: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path))
            return httpx.Response(200, json=envelope(wire(3, "Lab", "2024-03-09T00:00:00")))

        client = make_client(handler)
        updated = client.update_assessment(
            Assessment(id=3, name="Lab", submit_date="2024-03-09T00:00:00")
        )
        deleted = client.delete_assessment(3)

        assert requests == [("PUT", "/api/calendar/3"), ("DELETE", "/api/calendar/3")]
        assert updated.name == deleted.name == "Lab"

    def test_error_envelope_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"success": False, "message": "Assessment not found"})

        with pytest.raises(ApiClientError) as excinfo:
            make_client(handler).delete_assessment(42)

        assert excinfo.value.status_code == 404
        assert excinfo.value.message == "Assessment not found"

    def test_success_false_with_200_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "message": "nope"})

        with pytest.raises(ApiClientError):
            make_client(handler).list_assessments()

    def test_network_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ApiClientError) as excinfo:
            make_client(handler).list_assessments()

        assert "Network request failed" in excinfo.value.message

    def test_malformed_row_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json=envelope([{"name": "No id", "submit_date": "2024-03-01"}])
            )

        with pytest.raises(ApiClientError):
            make_client(handler).list_assessments()

    def test_non_json_response_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad gateway</html>")

        with pytest.raises(ApiClientError) as excinfo:
            make_client(handler).health()

        assert excinfo.value.status_code == 502


class TestNotesStore:
    def test_missing_file_means_no_notes(self, tmp_path: Path):
        store = NotesStore(tmp_path / "storage.json")
        assert store.load() == []
        assert store.get(1) == ""

    def test_set_persists_across_instances(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        store = NotesStore(path)
        store.load()
        store.set(1, "Bring calculator")
        store.set(2, "Group work")
        store.set(1, "Bring two calculators")

        reloaded = NotesStore(path)
        reloaded.load()
        assert reloaded.get(1) == "Bring two calculators"
        assert reloaded.get(2) == "Group work"
        assert len(reloaded.all()) == 2

    def test_file_layout_keeps_other_keys(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

        store = NotesStore(path)
        store.load()
        store.set(5, "Read chapter 4")

        storage = json.loads(path.read_text(encoding="utf-8"))
        assert storage["theme"] == "dark"
        assert isinstance(storage[STORAGE_KEY], str)
        assert json.loads(storage[STORAGE_KEY]) == [{"assessmentId": 5, "notes": "Read chapter 4"}]

    def test_prune_drops_orphans(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        store = NotesStore(path)
        store.set(1, "keep")
        store.set(2, "orphan")

        assert store.prune([1, 3]) == 1
        assert store.prune([1]) == 0

        reloaded = NotesStore(path)
        reloaded.load()
        assert [note.assessment_id for note in reloaded.all()] == [1]

    def test_corrupt_entry_raises(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({STORAGE_KEY: "[{"}), encoding="utf-8")

        with pytest.raises(NotesStorageError):
            NotesStore(path).load()


class TestCalendarScreenState:
    def make_state(self, tmp_path: Path, client: FakeClient, **kwargs: Any) -> CalendarScreenState:
        notes = NotesStore(tmp_path / "storage.json")
        return CalendarScreenState(client, notes, date(2024, 3, 15), **kwargs)

    def test_window_and_header(self, tmp_path: Path):
        state = self.make_state(tmp_path, FakeClient([]))

        assert len(state.days) == 77
        assert all(len(week) == 7 for week in state.weeks)
        assert state.header_label == "1 March, 2024 - 16 May, 2024"
        assert state.loading is True

    def test_refresh_and_select_day(self, tmp_path: Path):
        essay = Assessment(id=1, name="Essay", submit_date="2024-03-01T00:00:00", color="#00FF00")
        state = self.make_state(tmp_path, FakeClient([essay]))
        state.refresh()

        assert state.loading is False
        first_day, second_day = state.days[0], state.days[1]
        assert state.color_for(first_day) == "#00FF00"
        assert state.color_for(second_day) is None

        assert state.select_day(second_day) is False
        assert state.show_details is False

        assert state.select_day(first_day) is True
        assert state.selected_assessments == [essay]
        state.close_details()
        assert state.selected_day is None
        assert state.selected_assessments == []

    def test_refresh_failure_falls_back_to_empty(self, tmp_path: Path):
        state = self.make_state(tmp_path, FakeClient(ApiClientError("Network request failed")))
        state.refresh()

        assert state.assessments == []
        assert state.loading is False

    def test_preferences_survive_refetch(self, tmp_path: Path):
        a = Assessment(id=1, name="Essay", submit_date="2024-03-10")
        b = Assessment(id=2, name="Quiz", submit_date="2024-03-12")
        c = Assessment(id=3, name="Lab", submit_date="2024-03-14")
        state = self.make_state(tmp_path, FakeClient([a, b], [a, c]))

        state.refresh()
        assert state.preference(1).enabled is False
        state.update_preference(1, enabled=True, days_before=3)

        state.refresh()
        assert set(state.preferences) == {1, 3}
        assert state.preferences[1].enabled is True
        assert state.preferences[1].days_before == 3
        assert state.preferences[3].days_before == 1

    def test_preferences_survive_failed_refresh(self, tmp_path: Path):
        essay = Assessment(id=1, name="Essay", submit_date="2024-03-10")
        client = FakeClient([essay], ApiClientError("Network request failed"), [essay])
        state = self.make_state(tmp_path, client)

        state.refresh()
        state.update_preference(1, enabled=True, days_before=5)

        state.refresh()
        assert state.assessments == []
        assert state.preferences[1].enabled is True

        state.refresh()
        assert state.assessments == [essay]
        assert state.preferences[1].enabled is True
        assert state.preferences[1].days_before == 5

    def test_malformed_response_falls_back_to_empty(self, tmp_path: Path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=envelope([{"ID": None, "name": "Broken"}]))

        state = CalendarScreenState(
            make_client(handler), NotesStore(tmp_path / "storage.json"), date(2024, 3, 15)
        )
        state.refresh()

        assert state.assessments == []
        assert state.loading is False

    def test_update_preference_rejects_unknown_lead_time(self, tmp_path: Path):
        state = self.make_state(tmp_path, FakeClient([]))
        with pytest.raises(ValueError):
            state.update_preference(1, days_before=4)

    def test_timing_text_uses_preference(self, tmp_path: Path):
        essay = Assessment(id=1, name="Essay", submit_date="2024-03-10T00:00:00")
        state = self.make_state(tmp_path, FakeClient([essay]))
        state.refresh()
        state.update_preference(1, days_before=2)

        text = state.timing_text(essay, datetime(2024, 3, 1, 12, 0))
        assert text == "Will notify on Fri Mar 08 2024 at 9:00 AM (in 7 days)"

    def test_note_editing(self, tmp_path: Path):
        state = self.make_state(tmp_path, FakeClient([]))
        state.load_notes()

        state.begin_edit(1)
        assert state.is_editing(1)
        state.edit_text(1, "Revise loops")
        state.cancel_edit(1)
        assert state.note_for(1) == ""

        state.begin_edit(1)
        state.edit_text(1, "Revise loops")
        assert state.save_edit(1) is True
        assert not state.is_editing(1)
        assert state.note_for(1) == "Revise loops"

    def test_orphaned_notes_kept_unless_pruning(self, tmp_path: Path):
        notes = NotesStore(tmp_path / "storage.json")
        notes.set(9, "deleted assessment")

        keep = CalendarScreenState(FakeClient([]), notes, date(2024, 3, 15))
        keep.refresh()
        assert notes.get(9) == "deleted assessment"

        failing = CalendarScreenState(
            FakeClient(ApiClientError("down")), notes, date(2024, 3, 15), prune_orphaned_notes=True
        )
        failing.refresh()
        assert notes.get(9) == "deleted assessment"

        prune = CalendarScreenState(FakeClient([]), notes, date(2024, 3, 15), prune_orphaned_notes=True)
        prune.refresh()
        assert notes.get(9) == ""

    def test_open_calendar_screen_reads_client_settings(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        path = tmp_path / "client" / "storage.json"
        monkeypatch.setenv("CLIENT_STORAGE_PATH", str(path))
        NotesStore(path).set(1, "saved earlier")

        essay = Assessment(id=1, name="Essay", submit_date="2024-03-01")
        state = open_calendar_screen(datetime(2024, 3, 15, 8, 0), client=FakeClient([essay]))

        assert state.today == date(2024, 3, 15)
        assert state.assessments == [essay]
        assert state.note_for(1) == "saved earlier"
        assert state.prune_orphaned_notes is False


class TestListScreenState:
    def test_error_then_retry(self):
        essay = Assessment(id=1, name="Essay", submit_date="2024-03-01T00:00:00.000Z")
        client = FakeClient(ApiClientError("Network request failed: boom"), [essay])
        state = ListScreenState(client)

        state.refresh()
        assert state.error == "Network request failed: boom"
        assert state.is_empty is False

        state.retry()
        assert state.error is None
        assert state.assessments == [essay]
        assert ListScreenState.display_date(essay) == "01-03-2024"

    def test_empty_list(self):
        state = ListScreenState(FakeClient([]))
        state.refresh()
        assert state.is_empty is True
