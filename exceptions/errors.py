"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details map so
routes can turn it into the standard error response.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "QUEUE_ITEM_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str,
        extra: Optional[dict] = None
    ):
        super().__init__(
            code=f"{resource.upper().replace(' ', '_')}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value, **(extra or {})}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None,
        status_code: int = 503
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=status_code,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# RECORD / STAGING ERRORS
# ===================

class RecordNotFoundError(NotFoundError):
    """Record is unknown to the staging store."""

    def __init__(self, record_id: str):
        super().__init__(
            resource="Record",
            identifier=record_id,
            code="RECORD_NOT_FOUND"
        )


# ===================
# SYNC ERRORS
# ===================

class SyncTransportError(ExternalServiceError):
    """
    The remote sync or fetch call could not complete.

    Network failures, auth rejections and non-2xx responses all land here.
    The call is not retried; retrying is the caller's decision.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="sync_service",
            message=message,
            details={"upstream_status": status, **(details or {})}
        )
        self.upstream_status = status


class MalformedSyncResponseError(ExternalServiceError):
    """The remote call completed but its response has an unexpected shape (502)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="sync_response",
            message=message,
            details=details,
            status_code=502
        )


# ===================
# SYNC QUEUE ERRORS
# ===================

class QueueItemNotFoundError(NotFoundError):
    """Sync queue item not found."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Queue item",
            identifier=item_id,
            code="QUEUE_ITEM_NOT_FOUND"
        )


class QueueItemExistsError(DuplicateError):
    """A queue item with this natural key and direction already exists."""

    def __init__(self, natural_key: str, direction: str):
        super().__init__(
            resource="Queue item",
            field="sku",
            value=natural_key,
            extra={"direction": direction}
        )


# ===================
# SAVED PATTERN ERRORS
# ===================

class PatternNotFoundError(NotFoundError):
    """Saved search pattern not found."""

    def __init__(self, pattern_id: str):
        super().__init__(
            resource="Saved pattern",
            identifier=pattern_id,
            code="PATTERN_NOT_FOUND"
        )


class PatternNameExistsError(DuplicateError):
    """Saved pattern name already taken."""

    def __init__(self, name: str):
        super().__init__(
            resource="Saved pattern",
            field="name",
            value=name
        )
