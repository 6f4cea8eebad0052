"""
Screen state for the calendar client, independent of any UI toolkit.

``CalendarScreenState`` backs the calendar grid: it holds the 77-day window,
the fetched assessments, the selected day, simulated notification
preferences and note editing. ``ListScreenState`` backs the plain list of
assessments with an inline error and an explicit retry.
"""

from __future__ import annotations

from datetime import date, datetime

from ..domain.models import (
    DAYS_BEFORE_OPTIONS,
    Assessment,
    CalendarDay,
    NotificationPreference,
)
from ..domain.services import (
    assessments_for_day,
    day_color,
    format_date_simple,
    format_window_label,
    generate_calendar_days,
    group_days_into_weeks,
    notification_timing,
)
from ..infrastructure.config import get_settings
from ..infrastructure.exceptions import (
    ApiClientError,
    NotesStorageError,
    create_user_friendly_error_message,
)
from ..infrastructure.logging import get_logger
from .api_client import CalendarApiClient
from .notes_store import NotesStore

logger = get_logger(__name__)


class CalendarScreenState:
    def __init__(
        self,
        client: CalendarApiClient,
        notes: NotesStore,
        today: date | datetime,
        prune_orphaned_notes: bool = False,
    ):
        self.client = client
        self.notes = notes
        self.today = today.date() if isinstance(today, datetime) else today
        self.prune_orphaned_notes = prune_orphaned_notes

        self.days: list[CalendarDay] = generate_calendar_days(self.today)
        self.weeks: list[list[CalendarDay | None]] = group_days_into_weeks(self.days)

        self.assessments: list[Assessment] = []
        self.loading = True
        self.selected_day: CalendarDay | None = None
        self.show_details = False
        self.preferences: dict[int, NotificationPreference] = {}
        self.editing: dict[int, str] = {}

    @property
    def header_label(self) -> str:
        return format_window_label(self.today)

    # ---------- Loading ----------

    def load_notes(self) -> None:
        try:
            self.notes.load()
        except NotesStorageError as e:
            logger.error(f"Error loading notes: {e.message}")

    def refresh(self) -> None:
        """
        Fetch assessments; on failure fall back to an empty list.

        Existing notification preferences survive the refetch. Only new IDs
        get defaults and IDs that disappeared are dropped; a failed fetch
        leaves them untouched.
        """
        self.loading = True
        fetched: list[Assessment] | None = None
        try:
            fetched = self.client.list_assessments()
        except ApiClientError as e:
            logger.error(f"Error fetching assessments: {e.message}")
        finally:
            self.loading = False

        self.assessments = fetched or []
        if fetched is None:
            return

        self._sync_preferences()
        if self.prune_orphaned_notes:
            try:
                self.notes.prune(a.id for a in fetched)
            except NotesStorageError as e:
                logger.error(f"Error pruning notes: {e.message}")

    def _sync_preferences(self) -> None:
        current = {a.id for a in self.assessments}
        self.preferences = {
            assessment_id: self.preferences.get(
                assessment_id, NotificationPreference(assessment_id=assessment_id)
            )
            for assessment_id in sorted(current)
        }

    # ---------- Grid ----------

    def assessments_on(self, day: CalendarDay | date) -> list[Assessment]:
        return assessments_for_day(self.assessments, day)

    def color_for(self, day: CalendarDay | date) -> str | None:
        return day_color(self.assessments, day)

    def select_day(self, day: CalendarDay) -> bool:
        """Open the detail view for ``day`` if anything is due on it."""
        if not self.assessments_on(day):
            return False
        self.selected_day = day
        self.show_details = True
        return True

    def close_details(self) -> None:
        self.show_details = False
        self.selected_day = None

    @property
    def selected_assessments(self) -> list[Assessment]:
        if self.selected_day is None:
            return []
        return self.assessments_on(self.selected_day)

    # ---------- Notification preferences (simulated) ----------

    def preference(self, assessment_id: int) -> NotificationPreference:
        return self.preferences.get(
            assessment_id, NotificationPreference(assessment_id=assessment_id)
        )

    def update_preference(
        self,
        assessment_id: int,
        enabled: bool | None = None,
        days_before: int | None = None,
    ) -> NotificationPreference:
        if days_before is not None and days_before not in DAYS_BEFORE_OPTIONS:
            raise ValueError(f"days_before must be one of {DAYS_BEFORE_OPTIONS}")

        pref = self.preferences.setdefault(
            assessment_id, NotificationPreference(assessment_id=assessment_id)
        )
        if enabled is not None:
            pref.enabled = enabled
        if days_before is not None:
            pref.days_before = days_before
        logger.info(
            f"Notification preference for {assessment_id}: "
            f"enabled={pref.enabled} days_before={pref.days_before}"
        )
        return pref

    def timing_text(self, assessment: Assessment, now: datetime) -> str:
        return notification_timing(
            assessment.submit_date, self.preference(assessment.id).days_before, now
        )

    # ---------- Notes ----------

    def note_for(self, assessment_id: int) -> str:
        return self.notes.get(assessment_id)

    def is_editing(self, assessment_id: int) -> bool:
        return assessment_id in self.editing

    def begin_edit(self, assessment_id: int) -> None:
        self.editing[assessment_id] = self.note_for(assessment_id)

    def edit_text(self, assessment_id: int, text: str) -> None:
        self.editing[assessment_id] = text

    def cancel_edit(self, assessment_id: int) -> None:
        self.editing.pop(assessment_id, None)

    def save_edit(self, assessment_id: int) -> bool:
        """Persist the draft; the draft is closed even if the write fails."""
        text = self.editing.pop(assessment_id, "")
        try:
            self.notes.set(assessment_id, text)
        except NotesStorageError as e:
            logger.error(f"Error saving notes: {e.message}")
            return False
        return True


class ListScreenState:
    def __init__(self, client: CalendarApiClient):
        self.client = client
        self.assessments: list[Assessment] = []
        self.loading = False
        self.error: str | None = None

    def refresh(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.assessments = self.client.list_assessments()
        except ApiClientError as e:
            logger.error(f"Error fetching assessments: {e.message}")
            self.error = create_user_friendly_error_message(e) or "Failed to fetch assessments"
        finally:
            self.loading = False

    def retry(self) -> None:
        self.refresh()

    @property
    def is_empty(self) -> bool:
        return not self.loading and self.error is None and not self.assessments

    @staticmethod
    def display_date(assessment: Assessment) -> str:
        return format_date_simple(assessment.submit_date)


def open_calendar_screen(
    today: date | datetime, client: CalendarApiClient | None = None
) -> CalendarScreenState:
    """Build calendar state from client settings, load notes and fetch once."""
    config = get_settings().client
    state = CalendarScreenState(
        client or CalendarApiClient(),
        NotesStore(config.storage_path),
        today,
        prune_orphaned_notes=config.prune_orphaned_notes,
    )
    state.load_notes()
    state.refresh()
    return state
