from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

DEFAULT_COLOR = "#FF6B6B"
DAYS_BEFORE_OPTIONS = (1, 2, 3, 5, 7)


@dataclass(slots=True)
class Assessment:
    """An assessment as seen by the client; ``submit_date`` stays the raw wire string."""

    id: int
    name: str
    submit_date: str
    description: str = ""
    color: str = DEFAULT_COLOR

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Assessment:
        raw_id = payload.get("ID", payload.get("id"))
        return cls(
            id=int(raw_id),
            name=str(payload.get("name") or ""),
            submit_date=str(payload.get("submit_date") or ""),
            description=payload.get("description") or "",
            color=payload.get("color") or DEFAULT_COLOR,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "submit_date": self.submit_date,
            "color": self.color,
        }


@dataclass(frozen=True, slots=True)
class CalendarDay:
    day: int
    month: int  # 1..12
    year: int
    is_today: bool
    date: date
    day_of_week: int  # 0=Sunday .. 6=Saturday


@dataclass(slots=True)
class NotificationPreference:
    assessment_id: int
    enabled: bool = False
    days_before: int = 1


@dataclass(slots=True)
class AssessmentNote:
    assessment_id: int
    notes: str = ""

    @classmethod
    def from_storage(cls, payload: dict[str, Any]) -> AssessmentNote:
        return cls(assessment_id=int(payload["assessmentId"]), notes=str(payload.get("notes", "")))

    def to_storage(self) -> dict[str, Any]:
        return {"assessmentId": self.assessment_id, "notes": self.notes}

