"""
Pydantic schemas for input validation of assessment writes.

These schemas check request bodies before they reach the repository. Text
fields are stored exactly as sent; ``submit_date`` is coerced to a naive
datetime that keeps the wall-clock components it was sent with.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .models import DEFAULT_COLOR

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class BaseValidationSchema(BaseModel):
    """Base schema for write payloads; string fields pass through untouched."""

    model_config = {"validate_assignment": True}


def parse_submit_date(value: Any) -> datetime:
    """
    Coerce a submit_date to a naive datetime.

    Offsets and ``Z`` suffixes are dropped rather than applied, so the
    calendar date that was sent is the calendar date that is stored.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("submit_date cannot be empty")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"submit_date '{text}' is not an ISO date or date/time") from e
        return parsed.replace(tzinfo=None)
    raise ValueError("submit_date must be a date or date/time string")


def parse_date_key(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` path value."""
    if not DATE_KEY_RE.match(value or ""):
        raise ValueError(f"Date '{value}' must use the YYYY-MM-DD format")
    return date.fromisoformat(value)


class AssessmentInput(BaseValidationSchema):
    """Validation schema for creating or fully replacing an assessment."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10000)
    submit_date: datetime
    color: str = Field(default=DEFAULT_COLOR)

    @field_validator("name")
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("description", mode="before")
    def default_description(cls, v):
        return "" if v is None else v

    @field_validator("submit_date", mode="before")
    def coerce_submit_date(cls, v):
        return parse_submit_date(v)

    @field_validator("color", mode="before")
    def validate_color(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_COLOR
        if not isinstance(v, str) or not HEX_COLOR_RE.match(v.strip()):
            raise ValueError("Color must be a hex value such as #FF6B6B")
        return v.strip().upper()


class ValidationErrorDetail(BaseModel):
    field: str
    message: str
    value: Any = None


class ValidationResponse(BaseModel):
    success: bool
    errors: list[ValidationErrorDetail] = []
    data: dict[str, Any] | None = None


def validate_input(schema_class: type[BaseModel], data: dict[str, Any]) -> ValidationResponse:
    """
    Centralized validation function that returns structured validation results.

    Example:
        >>> result = validate_input(AssessmentInput, {"name": "Essay", "submit_date": "2024-03-01"})
        >>> result.success
        True
    """
    try:
        validated = schema_class(**data)
        return ValidationResponse(success=True, data=validated.model_dump())
    except Exception as e:
        errors = []
        if hasattr(e, "errors"):  # pydantic ValidationError
            for error in e.errors():
                errors.append(
                    ValidationErrorDetail(
                        field=".".join(str(x) for x in error["loc"]) or "general",
                        message=error["msg"],
                        value=error.get("input"),
                    )
                )
        else:
            errors.append(ValidationErrorDetail(field="general", message=str(e)))

        return ValidationResponse(success=False, errors=errors)
