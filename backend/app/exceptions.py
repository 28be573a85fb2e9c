"""
CoverOps - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the application.

Every exception carries a ``retryable`` flag and a short list of
operator-facing suggestions. The print confirmation dialog uses the flag to
decide whether to stay open (retryable) or close (not retryable).

Usage:
    from app.exceptions import NotFoundError, ValidationError

    # In a service
    raise NotFoundError("Order", order_id)

    # With custom message
    raise ValidationError("PO number is too long", field="po_number")
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as SQLAlchemyTimeoutError,
)


class CoverOpsException(Exception):
    """
    Base exception for all CoverOps errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "VALIDATION_ERROR")
        status_code: HTTP status code to return
        details: Additional context for debugging
        retryable: Whether the caller may safely repeat the same operation
        suggestions: Operator-facing hints shown next to the error
    """

    error_code: str = "COVEROPS_ERROR"
    status_code: int = 500
    retryable: bool = False
    default_suggestions: List[str] = ["Try the operation again", "Contact support if the problem persists"]

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retryable: Optional[bool] = None,
    ):
        self.message = message
        self.details = details or {}
        self.suggestions = list(suggestions) if suggestions is not None else list(self.default_suggestions)
        if retryable is not None:
            self.retryable = retryable
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result = {
            "error": self.error_code,
            "message": self.message,
            "retryable": self.retryable,
            "suggestions": self.suggestions,
        }
        if self.details:
            result["details"] = self.details
        return result


# ===================
# 400 Bad Request Errors
# ===================


class ValidationError(CoverOpsException):
    """Raised when input validation fails (empty id lists, malformed ids, bad PO numbers)."""

    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_suggestions = ["Check the data and try again", "Refresh the page if the problem persists"]

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details, suggestions=suggestions)


class InvalidStateError(CoverOpsException):
    """Raised when an operation is invalid for the current state."""

    error_code = "INVALID_STATE"
    status_code = 400
    default_suggestions = ["Refresh and try again"]

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[str] = None,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        details = details or {}
        if current_state:
            details["current_state"] = current_state
        if allowed_states:
            details["allowed_states"] = allowed_states
        super().__init__(message, details=details, suggestions=suggestions)


class InvalidTransitionError(InvalidStateError):
    """Raised when an order cannot move to the requested status."""

    error_code = "INVALID_TRANSITION"
    default_suggestions = [
        "Refresh the order to see its current status",
        "Only pending orders can be approved",
    ]

    def __init__(
        self,
        from_status: str,
        to_status: str,
        *,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["requested_state"] = to_status
        message = f"Order not in approvable status: cannot move from '{from_status}' to '{to_status}'"
        super().__init__(
            message,
            current_state=from_status,
            allowed_states=allowed_states,
            details=details,
        )


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(CoverOpsException):
    """
    Raised when a resource is not found.

    For print queue entries this also covers entries that are no longer
    unprinted, i.e. a concurrent caller printed them first.
    """

    error_code = "NOT_FOUND"
    status_code = 404
    default_suggestions = ["Refresh and try again", "Verify the item still exists"]

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        if message is None:
            message = f"{resource} not found"
            if resource_id is not None:
                message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details, suggestions=suggestions)


# ===================
# 409 Conflict Errors
# ===================


class ConflictError(CoverOpsException):
    """Raised when there's a resource conflict."""

    error_code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str = "Resource conflict",
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message, details=details, suggestions=suggestions)


class DuplicatePOError(ConflictError):
    """Raised in strict mode when a PO number is already used by the customer."""

    error_code = "DUPLICATE_PO"
    default_suggestions = [
        "Verify the PO number with the customer",
        "Use a different PO number",
    ]

    def __init__(
        self,
        po_number: str,
        *,
        conflicts: Optional[list] = None,
        message: Optional[str] = None,
    ):
        details = {"po_number": po_number}
        if conflicts:
            details["conflicts"] = conflicts
        super().__init__(message or f'PO # "{po_number}" is already in use', details=details)


# ===================
# 500 Internal Server Errors
# ===================


class DatabaseError(CoverOpsException):
    """Raised when a database operation fails for a non-transient reason."""

    error_code = "DATABASE_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "Database operation failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)


# ===================
# 503 Service Unavailable Errors
# ===================


class TransientError(CoverOpsException):
    """Raised on persistence timeouts and connection failures. Safe to retry."""

    error_code = "TRANSIENT_ERROR"
    status_code = 503
    retryable = True
    default_suggestions = ["Try again in a few moments", "Contact IT support if the problem persists"]

    def __init__(
        self,
        message: str = "The database is temporarily unavailable",
        *,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details)


def is_transient_db_error(exc: BaseException) -> bool:
    """True for connection drops, lock/statement timeouts and pool exhaustion."""
    if isinstance(exc, (OperationalError, SQLAlchemyTimeoutError, DisconnectionError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return False


def translate_db_error(exc: SQLAlchemyError, operation: str) -> CoverOpsException:
    """Map a SQLAlchemy error raised during ``operation`` onto the CoverOps taxonomy."""
    if is_transient_db_error(exc):
        return TransientError(
            f"Database unavailable during {operation}",
            operation=operation,
            details={"cause": exc.__class__.__name__},
        )
    return DatabaseError(
        f"Database error during {operation}",
        details={"operation": operation, "cause": exc.__class__.__name__},
    )
