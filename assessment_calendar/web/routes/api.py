from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assessment_calendar.application import api as app_api
from assessment_calendar.domain.schemas import parse_date_key
from assessment_calendar.infrastructure.exceptions import (
    AssessmentNotFoundError,
    DatabaseError,
    MultipleValidationError,
)
from assessment_calendar.infrastructure.logging import get_logger
from assessment_calendar.infrastructure.models import AssessmentORM
from assessment_calendar.web.dependencies import get_db_session
from assessment_calendar.web.schemas import (
    Assessment,
    AssessmentListResponse,
    AssessmentResponse,
    ErrorResponse,
    HealthResponse,
)

router = APIRouter(prefix="/api", tags=["calendar"])
logger = get_logger(__name__)


def _error_response(
    status_code: int, message: str, error: str | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, error=error).to_content(),
    )


def _database_failure(db: Session, exc: Exception, message: str) -> JSONResponse:
    """Roll back, log and answer 500 with the database error text embedded."""
    db.rollback()
    reason = exc.reason if isinstance(exc, DatabaseError) else str(exc)
    logger.error(f"Database error: {reason}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message, reason)


def _not_found(exc: AssessmentNotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc.user_message)


def _parse_assessment_id(raw: str) -> int:
    """An id that is not an integer cannot match any row."""
    try:
        return int(raw)
    except ValueError as e:
        raise AssessmentNotFoundError(raw) from e


def _to_schema(row: AssessmentORM | dict[str, Any]) -> Assessment:
    data = row if isinstance(row, dict) else app_api.assessment_to_dict(row)
    return Assessment(**data)


@router.get("/calendar", response_model=AssessmentListResponse)
def list_calendar(db: Session = Depends(get_db_session)) -> AssessmentListResponse | JSONResponse:
    try:
        rows = app_api.list_assessments(db)
    except DatabaseError as exc:
        return _database_failure(db, exc, "Error retrieving calendar data")

    return AssessmentListResponse(
        data=[_to_schema(row) for row in rows],
        message="Calendar data retrieved successfully",
    )


@router.get("/calendar/{date_key}", response_model=AssessmentListResponse)
def list_calendar_for_date(
    date_key: str,
    db: Session = Depends(get_db_session),
) -> AssessmentListResponse | JSONResponse:
    try:
        day = parse_date_key(date_key)
    except ValueError as exc:
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    try:
        rows = app_api.list_assessments_for_date(db, day)
    except DatabaseError as exc:
        return _database_failure(db, exc, "Error retrieving calendar data for date")

    return AssessmentListResponse(
        data=[_to_schema(row) for row in rows],
        message=f"Calendar data for {date_key} retrieved successfully",
    )


@router.post(
    "/calendar",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_calendar_item(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
) -> AssessmentResponse | JSONResponse:
    try:
        obj = app_api.create_assessment(db, payload)
        db.commit()
        db.refresh(obj)
    except MultipleValidationError as exc:
        db.rollback()
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.user_message)
    except (DatabaseError, SQLAlchemyError) as exc:
        return _database_failure(db, exc, "Error creating assessment")

    return AssessmentResponse(data=_to_schema(obj), message="Assessment created successfully")


@router.put("/calendar/{assessment_id}", response_model=AssessmentResponse)
def update_calendar_item(
    assessment_id: str,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
) -> AssessmentResponse | JSONResponse:
    try:
        obj = app_api.update_assessment(db, _parse_assessment_id(assessment_id), payload)
        db.commit()
        db.refresh(obj)
    except AssessmentNotFoundError as exc:
        db.rollback()
        return _not_found(exc)
    except MultipleValidationError as exc:
        db.rollback()
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.user_message)
    except (DatabaseError, SQLAlchemyError) as exc:
        return _database_failure(db, exc, "Error updating assessment")

    return AssessmentResponse(data=_to_schema(obj), message="Assessment updated successfully")


@router.delete("/calendar/{assessment_id}", response_model=AssessmentResponse)
def delete_calendar_item(
    assessment_id: str,
    db: Session = Depends(get_db_session),
) -> AssessmentResponse | JSONResponse:
    try:
        deleted = app_api.delete_assessment(db, _parse_assessment_id(assessment_id))
        db.commit()
    except AssessmentNotFoundError as exc:
        db.rollback()
        return _not_found(exc)
    except (DatabaseError, SQLAlchemyError) as exc:
        return _database_failure(db, exc, "Error deleting assessment")

    return AssessmentResponse(data=_to_schema(deleted), message="Assessment deleted successfully")


@router.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    return HealthResponse(
        message="Calendar API is running",
        timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
            "+00:00", "Z"
        ),
    )
