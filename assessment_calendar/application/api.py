"""
Application API layer for assessments.

High-level operations behind the REST endpoints: validation, existence checks
and pass-through persistence. Every function works inside the caller's
session and leaves commit/rollback to the caller.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.models import DEFAULT_COLOR
from ..domain.schemas import AssessmentInput, validate_input
from ..infrastructure.exceptions import (
    AssessmentNotFoundError,
    MultipleValidationError,
    ValidationError,
    handle_database_error,
    log_error_details,
)
from ..infrastructure.logging import get_logger, log_operation, set_context
from ..infrastructure.models import AssessmentORM
from ..infrastructure.repositories import AssessmentRepo

logger = get_logger(__name__)

REQUIRED_FIELDS_MESSAGE = "Name and submit_date are required"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validated_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Check required fields, then run the schema over the whole payload.

    Raises:
        MultipleValidationError: name/submit_date missing, or other fields invalid
    """
    missing = [
        ValidationError(field, "is required")
        for field in ("name", "submit_date")
        if _is_blank(payload.get(field))
    ]
    if missing:
        logger.warning(f"Assessment payload missing required fields: {[e.field for e in missing]}")
        raise MultipleValidationError(missing, user_message=REQUIRED_FIELDS_MESSAGE)

    result = validate_input(
        AssessmentInput,
        {
            "name": payload.get("name"),
            "description": payload.get("description"),
            "submit_date": payload.get("submit_date"),
            "color": payload.get("color") or DEFAULT_COLOR,
        },
    )
    if not result.success or result.data is None:
        errors = [ValidationError(e.field, e.message, e.value) for e in result.errors]
        message = "; ".join(f"{e.field}: {e.message}" for e in result.errors)
        logger.warning(f"Assessment validation failed: {message}")
        raise MultipleValidationError(errors, user_message=f"Invalid assessment: {message}")
    return result.data


@log_operation("list_assessments")
def list_assessments(session: Session) -> list[AssessmentORM]:
    """
    Every assessment ordered by submit_date ascending.

    Raises:
        DatabaseError: If the query fails
    """
    try:
        rows = AssessmentRepo(session).list_all()
    except SQLAlchemyError as e:
        logger.error("Failed to list assessments", extra=log_error_details(e))
        raise handle_database_error(e, "list assessments") from e
    logger.info(f"Retrieved {len(rows)} assessments")
    return rows


@log_operation("list_assessments_for_date")
def list_assessments_for_date(session: Session, day: date) -> list[AssessmentORM]:
    """Assessments due on ``day``, ordered by submit_date ascending."""
    try:
        rows = AssessmentRepo(session).list_for_date(day)
    except SQLAlchemyError as e:
        logger.error(
            "Failed to list assessments for date",
            extra=log_error_details(e, {"date": day.isoformat()}),
        )
        raise handle_database_error(e, "list assessments for date") from e
    logger.info(f"Retrieved {len(rows)} assessments for {day.isoformat()}")
    return rows


@log_operation("create_assessment")
def create_assessment(session: Session, payload: dict[str, Any]) -> AssessmentORM:
    """
    Validate and insert a new assessment.

    Args:
        session: Database session
        payload: Request body with ``name``, ``submit_date`` and optional
            ``description``/``color``

    Returns:
        The flushed AssessmentORM with its generated ID

    Raises:
        MultipleValidationError: If name/submit_date are missing or a field is invalid
        DatabaseError: If the insert fails

    Example:
        >>> obj = create_assessment(session, {"name": "Essay", "submit_date": "2024-03-01"})
        >>> session.commit()
    """
    fields = _validated_fields(payload)
    try:
        obj = AssessmentRepo(session).create(**fields)
    except SQLAlchemyError as e:
        logger.error("Failed to create assessment", extra=log_error_details(e))
        raise handle_database_error(e, "create assessment") from e

    set_context(assessment_id=obj.id)
    logger.info(f"Created assessment '{obj.name}' with ID {obj.id}")
    return obj


@log_operation("update_assessment")
def update_assessment(
    session: Session, assessment_id: int, payload: dict[str, Any]
) -> AssessmentORM:
    """
    Replace every writable field of an existing assessment.

    There is no partial update: an omitted description or color falls back
    to its default.

    Raises:
        AssessmentNotFoundError: If no row has ``assessment_id``
        MultipleValidationError: If the replacement body is invalid
        DatabaseError: If the update fails
    """
    set_context(assessment_id=assessment_id)
    repo = AssessmentRepo(session)
    try:
        obj = repo.get(assessment_id)
    except SQLAlchemyError as e:
        raise handle_database_error(e, "load assessment") from e
    if obj is None:
        logger.warning(f"Update requested for missing assessment {assessment_id}")
        raise AssessmentNotFoundError(assessment_id)

    fields = _validated_fields(payload)
    try:
        obj = repo.update(obj, **fields)
    except SQLAlchemyError as e:
        logger.error("Failed to update assessment", extra=log_error_details(e))
        raise handle_database_error(e, "update assessment") from e

    logger.info(f"Updated assessment {assessment_id}")
    return obj


@log_operation("delete_assessment")
def delete_assessment(session: Session, assessment_id: int) -> dict[str, Any]:
    """
    Permanently delete an assessment.

    Returns:
        The deleted row, serialized before removal

    Raises:
        AssessmentNotFoundError: If no row has ``assessment_id``
        DatabaseError: If the delete fails
    """
    set_context(assessment_id=assessment_id)
    repo = AssessmentRepo(session)
    try:
        obj = repo.get(assessment_id)
        if obj is None:
            logger.warning(f"Delete requested for missing assessment {assessment_id}")
            raise AssessmentNotFoundError(assessment_id)
        snapshot = assessment_to_dict(obj)
        repo.delete(obj)
    except SQLAlchemyError as e:
        logger.error("Failed to delete assessment", extra=log_error_details(e))
        raise handle_database_error(e, "delete assessment") from e

    logger.info(f"Deleted assessment {assessment_id}")
    return snapshot


def assessment_to_dict(obj: AssessmentORM) -> dict[str, Any]:
    """Wire representation of a row (``submit_date`` as an ISO date/time string)."""
    return {
        "id": obj.id,
        "name": obj.name,
        "description": obj.description or "",
        "submit_date": obj.submit_date.isoformat(timespec="seconds"),
        "color": obj.color or DEFAULT_COLOR,
    }
