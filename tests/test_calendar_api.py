from __future__ import annotations

from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from assessment_calendar.infrastructure.models import AssessmentORM, Base
from assessment_calendar.web.dependencies import get_db_session
from assessment_calendar.web.main import create_application


def build_app_with_db(create_tables: bool = True) -> tuple[TestClient, sessionmaker[Session]]:
    engine = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    if create_tables:
        Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, future=True)

    app = create_application()

    def override_get_db_session():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    client = TestClient(app)
    return client, SessionLocal


def seed_rows(SessionLocal: sessionmaker[Session], *rows: tuple[str, datetime]) -> list[int]:
    with SessionLocal() as session:
        objs = [AssessmentORM(name=name, submit_date=when) for name, when in rows]
        session.add_all(objs)
        session.commit()
        return [obj.id for obj in objs]


def test_create_requires_name_and_submit_date():
    client, SessionLocal = build_app_with_db()

    for body in ({"name": "Essay"}, {"submit_date": "2024-03-01"}, {"name": "  ", "submit_date": "2024-03-01"}):
        response = client.post("/api/calendar", json=body)
        assert response.status_code == 400
        payload = response.json()
        assert payload["success"] is False
        assert payload["message"] == "Name and submit_date are required"

    with SessionLocal() as session:
        assert session.scalars(select(AssessmentORM)).all() == []


def test_create_returns_row_with_generated_id():
    client, _ = build_app_with_db()

    response = client.post(
        "/api/calendar",
        json={"name": "Essay", "description": "Chapter 3", "submit_date": "2024-03-01"},
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Assessment created successfully"

    data = payload["data"]
    assert isinstance(data["ID"], int)
    assert data["name"] == "Essay"
    assert data["description"] == "Chapter 3"
    assert data["submit_date"] == "2024-03-01T00:00:00"
    assert data["color"] == "#FF6B6B"

    listing = client.get("/api/calendar").json()
    assert [item["ID"] for item in listing["data"]] == [data["ID"]]


def test_create_keeps_calendar_date_of_utc_midnight():
    client, _ = build_app_with_db()

    response = client.post(
        "/api/calendar",
        json={"name": "Quiz", "submit_date": "2024-03-01T00:00:00.000Z", "color": "#00ff00"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["submit_date"] == "2024-03-01T00:00:00"
    assert data["color"] == "#00FF00"


def test_text_fields_round_trip_verbatim():
    client, _ = build_app_with_db()
    body = {
        "name": "A&amp;B <draft>",
        "description": "score <50% and >30% & rising",
        "submit_date": "2024-03-01",
    }

    created = client.post("/api/calendar", json=body)
    assert created.status_code == 201
    assert created.json()["data"]["name"] == body["name"]

    (stored,) = client.get("/api/calendar").json()["data"]
    assert stored["name"] == body["name"]
    assert stored["description"] == body["description"]


def test_create_rejects_invalid_fields():
    client, _ = build_app_with_db()

    response = client.post(
        "/api/calendar", json={"name": "Essay", "submit_date": "someday", "color": "blue"}
    )
    assert response.status_code == 400
    message = response.json()["message"]
    assert message.startswith("Invalid assessment:")
    assert "submit_date" in message
    assert "color" in message


def test_malformed_body_is_bad_request():
    client, _ = build_app_with_db()

    response = client.post(
        "/api/calendar", content="{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.post("/api/calendar", json=["Essay", "2024-03-01"])
    assert response.status_code == 400


def test_list_is_ordered_by_submit_date():
    client, SessionLocal = build_app_with_db()
    seed_rows(
        SessionLocal,
        ("Late", datetime(2024, 5, 1)),
        ("Early", datetime(2024, 2, 1)),
        ("Middle", datetime(2024, 3, 15)),
    )

    response = client.get("/api/calendar")
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Calendar data retrieved successfully"
    assert [item["name"] for item in payload["data"]] == ["Early", "Middle", "Late"]


def test_list_is_idempotent():
    client, SessionLocal = build_app_with_db()
    seed_rows(SessionLocal, ("Essay", datetime(2024, 3, 1)))

    first = client.get("/api/calendar").json()
    second = client.get("/api/calendar").json()
    assert first == second


def test_list_for_date_returns_whole_day_only():
    client, SessionLocal = build_app_with_db()
    seed_rows(
        SessionLocal,
        ("Evening", datetime(2024, 3, 1, 23, 59, 59)),
        ("Morning", datetime(2024, 3, 1, 8, 0)),
        ("Next day", datetime(2024, 3, 2)),
        ("Day before", datetime(2024, 2, 29, 23, 59)),
    )

    response = client.get("/api/calendar/2024-03-01")
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Calendar data for 2024-03-01 retrieved successfully"
    assert [item["name"] for item in payload["data"]] == ["Morning", "Evening"]

    empty = client.get("/api/calendar/2024-04-01").json()
    assert empty["success"] is True
    assert empty["data"] == []


def test_list_for_date_rejects_bad_format():
    client, _ = build_app_with_db()

    response = client.get("/api/calendar/03-01-2024")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_update_replaces_all_fields():
    client, SessionLocal = build_app_with_db()
    created = client.post(
        "/api/calendar",
        json={"name": "Essay", "description": "draft", "submit_date": "2024-03-01", "color": "#123456"},
    ).json()["data"]

    response = client.put(
        f"/api/calendar/{created['ID']}",
        json={"name": "Final essay", "submit_date": "2024-03-08T00:00:00"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Assessment updated successfully"
    assert payload["data"] == {
        "ID": created["ID"],
        "name": "Final essay",
        "description": "",
        "submit_date": "2024-03-08T00:00:00",
        "color": "#FF6B6B",
    }

    with SessionLocal() as session:
        row = session.get(AssessmentORM, created["ID"])
        assert row is not None
        assert row.submit_date == datetime(2024, 3, 8)


def test_update_missing_assessment_is_not_found():
    client, _ = build_app_with_db()

    response = client.put("/api/calendar/999", json={"name": "Essay", "submit_date": "2024-03-01"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Assessment not found"}

    # existence is checked before the body
    response = client.put("/api/calendar/999", json={})
    assert response.status_code == 404


def test_non_numeric_id_is_not_found():
    client, _ = build_app_with_db()

    for response in (
        client.put("/api/calendar/abc", json={"name": "Essay", "submit_date": "2024-03-01"}),
        client.delete("/api/calendar/abc"),
    ):
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Assessment not found"}


def test_update_requires_fields():
    client, SessionLocal = build_app_with_db()
    (assessment_id,) = seed_rows(SessionLocal, ("Essay", datetime(2024, 3, 1)))

    response = client.put(f"/api/calendar/{assessment_id}", json={"name": "Essay"})
    assert response.status_code == 400
    assert response.json()["message"] == "Name and submit_date are required"


def test_delete_removes_row_and_returns_it():
    client, SessionLocal = build_app_with_db()
    keep_id, drop_id = seed_rows(
        SessionLocal, ("Keep", datetime(2024, 3, 1)), ("Drop", datetime(2024, 3, 2))
    )

    response = client.delete(f"/api/calendar/{drop_id}")
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Assessment deleted successfully"
    assert payload["data"]["ID"] == drop_id
    assert payload["data"]["name"] == "Drop"

    remaining = client.get("/api/calendar").json()["data"]
    assert [item["ID"] for item in remaining] == [keep_id]

    again = client.delete(f"/api/calendar/{drop_id}")
    assert again.status_code == 404
    assert again.json()["message"] == "Assessment not found"


def test_database_failure_is_reported():
    client, _ = build_app_with_db(create_tables=False)

    response = client.get("/api/calendar")
    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Error retrieving calendar data"
    assert "no such table" in payload["error"]


def test_health():
    client, _ = build_app_with_db()

    response = client.get("/api/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Calendar API is running"
    assert payload["timestamp"].endswith("Z")


def test_unknown_route_and_method_are_not_found():
    client, _ = build_app_with_db()

    for response in (client.get("/api/nope"), client.patch("/api/calendar", json={})):
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}


def test_service_index():
    client, _ = build_app_with_db()

    response = client.get("/")
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Calendar API Server"
    assert payload["version"] == "1.0.0"
    assert "GET /api/health" in payload["endpoints"]
