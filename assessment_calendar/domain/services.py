"""
Calendar arithmetic shared by the API and the calendar client.

The calendar shows a fixed 77-day window starting 14 days before "today",
packed into Sunday-first week rows. Assessments are matched to days by
comparing ``YYYY-MM-DD`` keys: the key of a calendar day comes from its own
local components and the key of a stored ``submit_date`` is the text before
the time separator, so neither side goes through a timezone conversion.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time, timedelta
from typing import Any

from .models import CalendarDay

DAYS_BEFORE_TODAY = 14
WINDOW_LENGTH = 77
WEEK_LENGTH = 7
NOTIFICATION_HOUR = 9

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def day_of_week(value: date) -> int:
    """Sunday-first weekday index: 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


# ---------- Calendar window ----------


def calendar_window(today: date | datetime) -> tuple[date, date]:
    """First and last date (inclusive) of the window around ``today``."""
    start = _as_date(today) - timedelta(days=DAYS_BEFORE_TODAY)
    return start, start + timedelta(days=WINDOW_LENGTH - 1)


def generate_calendar_days(today: date | datetime) -> list[CalendarDay]:
    """
    Build the 77-day window ``today - 14`` .. ``today + 62`` in ascending order.

    ``today`` is always passed in; a datetime contributes only its own
    calendar date.

    Example:
        >>> days = generate_calendar_days(date(2024, 3, 15))
        >>> days[0].date, days[-1].date
        (datetime.date(2024, 3, 1), datetime.date(2024, 5, 16))
    """
    reference = _as_date(today)
    start, _ = calendar_window(reference)
    days: list[CalendarDay] = []
    for offset in range(WINDOW_LENGTH):
        current = start + timedelta(days=offset)
        days.append(
            CalendarDay(
                day=current.day,
                month=current.month,
                year=current.year,
                is_today=current == reference,
                date=current,
                day_of_week=day_of_week(current),
            )
        )
    return days


def group_days_into_weeks(days: Sequence[CalendarDay]) -> list[list[CalendarDay | None]]:
    """
    Pack consecutive days into rows of seven, Sunday in column 0.

    The first row is left-padded with ``None`` up to the first day's weekday
    and the last row is right-padded with ``None`` to a full week.
    """
    weeks: list[list[CalendarDay | None]] = []
    if not days:
        return weeks

    current: list[CalendarDay | None] = [None] * days[0].day_of_week
    for day in days:
        current.append(day)
        if len(current) == WEEK_LENGTH:
            weeks.append(current)
            current = []

    if current:
        current.extend([None] * (WEEK_LENGTH - len(current)))
        weeks.append(current)
    return weeks


# ---------- Date keys ----------


def to_local_key(value: date | datetime) -> str:
    """
    ``YYYY-MM-DD`` from the value's local calendar components.

    Aware datetimes are moved into the host's local timezone first; naive
    datetimes and dates are taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def extract_key(raw: Any) -> str:
    """
    Date portion of a stored ``submit_date`` value, returned verbatim.

    Strings are cut at the first ``T`` (or, failing that, the first space)
    and never parsed. Date/datetime objects contribute their own components.

    Example:
        >>> extract_key("2024-03-01T10:00:00.000Z")
        '2024-03-01'
        >>> extract_key("2024-03-01 00:00:00")
        '2024-03-01'
    """
    if raw is None:
        return ""
    if isinstance(raw, (date, datetime)):
        return f"{raw.year:04d}-{raw.month:02d}-{raw.day:02d}"

    text = str(raw).strip()
    if "T" in text:
        return text.split("T", 1)[0]
    return text.split(" ", 1)[0]


def _submit_date_of(assessment: Any) -> Any:
    if isinstance(assessment, Mapping):
        return assessment.get("submit_date")
    return getattr(assessment, "submit_date", None)


def assessment_falls_on(assessment: Any, day: CalendarDay | date | datetime) -> bool:
    target = day.date if isinstance(day, CalendarDay) else day
    return extract_key(_submit_date_of(assessment)) == to_local_key(target)


def assessments_for_day(assessments: Iterable[Any], day: CalendarDay | date | datetime) -> list[Any]:
    """Assessments (objects or mappings with ``submit_date``) due on ``day``."""
    return [a for a in assessments if assessment_falls_on(a, day)]


def day_color(assessments: Iterable[Any], day: CalendarDay | date | datetime) -> str | None:
    """Marker color for a calendar cell: the first due assessment's color."""
    matches = assessments_for_day(assessments, day)
    if not matches:
        return None
    first = matches[0]
    if isinstance(first, Mapping):
        return first.get("color")
    return getattr(first, "color", None)


# ---------- Display helpers ----------


def month_name(month: int) -> str:
    """English month name for ``month`` in 1..12."""
    return MONTH_NAMES[month - 1]


def format_date(value: date | datetime) -> str:
    """Header format, e.g. ``1 March, 2024``."""
    value = _as_date(value)
    return f"{value.day} {month_name(value.month)}, {value.year}"


def format_window_label(today: date | datetime) -> str:
    start, end = calendar_window(today)
    return f"{format_date(start)} - {format_date(end)}"


def format_date_simple(raw: Any) -> str:
    """``dd-mm-yyyy`` from a stored submit_date, falling back to the raw text."""
    if raw is None or raw == "":
        return ""
    key = extract_key(raw)
    parts = key.split("-")
    if len(parts) != 3 or not all(parts):
        return str(raw).strip()
    year, month, day = parts
    return f"{day.zfill(2)}-{month.zfill(2)}-{year}"


def is_future_date(value: date | datetime, today: date | datetime) -> bool:
    return _as_date(value) > _as_date(today)


def notification_timing(submit_date: Any, days_before: int, now: datetime) -> str:
    """
    Text describing when a simulated reminder would fire.

    The reminder is set for 09:00 local time ``days_before`` days ahead of the
    due date. Nothing is scheduled.
    """
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    try:
        year, month, day = (int(part) for part in extract_key(submit_date).split("-"))
        due = date(year, month, day)
    except (TypeError, ValueError):
        return "Error calculating timing"

    notify_at = datetime.combine(due - timedelta(days=days_before), time(NOTIFICATION_HOUR, 0))
    if notify_at <= now:
        return "Notification date has passed"

    days_until = math.ceil((notify_at - now).total_seconds() / 86400)
    plural = "s" if days_until > 1 else ""
    return (
        f"Will notify on {notify_at:%a %b %d %Y} at 9:00 AM "
        f"(in {days_until} day{plural})"
    )
