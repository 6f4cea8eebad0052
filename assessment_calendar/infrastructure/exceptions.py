"""
Custom exception classes for the assessment calendar.

Provides structured error handling with user-friendly messages and error
categorization for the API server and the calendar client.
"""

from __future__ import annotations

from typing import Any


class CalendarAppError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        return "An unexpected error occurred. Please try again."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(CalendarAppError):
    """Raised when input validation fails."""

    def __init__(
        self, field: str, message: str, value: Any = None, details: dict[str, Any] | None = None
    ):
        self.field = field
        self.value = value
        self.reason = message
        super().__init__(
            message=f"Validation failed for field '{field}': {message}",
            details=details or {"field": field, "value": value},
            user_message=f"Invalid {field.replace('_', ' ')}: {message}",
        )


class MultipleValidationError(CalendarAppError):
    """Raised when several fields fail validation at once."""

    def __init__(self, errors: list[ValidationError], user_message: str | None = None):
        self.validation_errors = errors
        messages = [f"{e.field}: {e.reason}" for e in errors]
        super().__init__(
            message=f"Multiple validation errors: {'; '.join(messages)}",
            details={
                "errors": [
                    {"field": e.field, "message": e.reason, "value": e.value} for e in errors
                ]
            },
            user_message=user_message,
        )

    def _get_default_user_message(self) -> str:
        return f"Please correct {len(self.validation_errors)} validation errors and try again."


class DatabaseError(CalendarAppError):
    """Raised when database operations fail."""

    def __init__(self, message: str, operation: str, details: dict[str, Any] | None = None):
        self.operation = operation
        self.reason = message
        super().__init__(
            message=f"Database error during {operation}: {message}",
            details=details or {"operation": operation},
            user_message="A database error occurred. Please try again in a moment.",
        )


class ConnectionError(DatabaseError):
    """Raised when the database cannot be reached."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, operation="connection", details=details)


class IntegrityError(DatabaseError):
    """Raised when database integrity constraints are violated."""

    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.constraint = constraint
        super().__init__(
            message=message,
            operation="integrity_check",
            details=details or {"constraint": constraint},
        )


class AssessmentNotFoundError(CalendarAppError):
    """Raised when an assessment ID does not exist."""

    def __init__(self, assessment_id: int | str):
        self.assessment_id = assessment_id
        super().__init__(
            message=f"Assessment with ID {assessment_id} not found",
            details={"assessment_id": assessment_id},
            user_message="Assessment not found",
        )


class ApiClientError(CalendarAppError):
    """Raised by the calendar client when an API call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        super().__init__(
            message=message,
            details=details or {"status_code": status_code},
            user_message=message,
        )


class NotesStorageError(CalendarAppError):
    """Raised when local note storage cannot be read or written."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(
            message=message,
            details={"path": path},
            user_message="Unable to save your notes. Please try again.",
        )


def handle_database_error(e: Exception, operation: str = "database operation") -> DatabaseError:
    """
    Convert generic database exceptions to appropriate custom exceptions.

    Example:
        >>> try:
        ...     session.commit()
        ... except SQLAlchemyError as e:
        ...     raise handle_database_error(e, "commit transaction")
    """
    error_msg = str(e).lower()

    if "connection" in error_msg or "timeout" in error_msg:
        return ConnectionError(str(e))
    elif "unique constraint" in error_msg or "duplicate" in error_msg:
        return IntegrityError(str(e), constraint="unique")
    elif "check constraint" in error_msg:
        return IntegrityError(str(e), constraint="check")
    else:
        return DatabaseError(str(e), operation)


def create_user_friendly_error_message(error: Exception) -> str:
    """
    Create a user-friendly error message from any exception.

    Example:
        >>> create_user_friendly_error_message(ValidationError("name", "is required"))
        'Invalid name: is required'
    """
    if isinstance(error, CalendarAppError):
        return error.user_message

    messages = {
        "ValueError": "Invalid input provided. Please check your data and try again.",
        "KeyError": "Required information is missing. Please check your input.",
        "TypeError": "Incorrect data type provided. Please check your input format.",
    }
    return messages.get(
        type(error).__name__, "An unexpected error occurred. Please try again or contact support."
    )


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create structured error details for logging."""
    details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    if isinstance(error, CalendarAppError):
        details.update({"user_message": error.user_message, "error_details": error.details})

    return details
