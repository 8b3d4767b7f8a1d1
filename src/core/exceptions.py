"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    NOTIFICATION_ACCESS_DENIED = "NOTIFICATION_ACCESS_DENIED"

    # Not found errors (404)
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    OUTBOX_JOB_NOT_FOUND = "OUTBOX_JOB_NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CATEGORY = "INVALID_CATEGORY"

    # Conflict errors (409)
    OUTBOX_JOB_NOT_REQUEUEABLE = "OUTBOX_JOB_NOT_REQUEUEABLE"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class NotAMemberError(AppException):
    """User is not a member of the organization."""

    def __init__(self, org_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="Not a member of this organization",
            status_code=403,
            details={"org_id": org_id},
        )


class InsufficientPermissionsError(AppException):
    """User does not have sufficient permissions."""

    def __init__(self, required_role: str = "admin") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required role: {required_role}",
            status_code=403,
            details={"required_role": required_role},
        )


class NotificationNotFoundError(AppException):
    """Notification not found."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOTIFICATION_NOT_FOUND,
            message=f"Notification not found: {notification_id}",
            status_code=404,
            details={"notification_id": notification_id},
        )


class NotificationAccessDeniedError(AppException):
    """Notification belongs to another recipient or organization."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOTIFICATION_ACCESS_DENIED,
            message="Not authorized to update this notification",
            status_code=403,
            details={"notification_id": notification_id},
        )


class InvalidCategoryError(AppException):
    """Unknown notification category."""

    def __init__(self, category: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_CATEGORY,
            message=f"Valid category is required, got: {category}",
            status_code=400,
            details={"category": category},
        )


class EventNotFoundError(AppException):
    """Domain event not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.EVENT_NOT_FOUND,
            message=f"Domain event not found: {event_id}",
            status_code=404,
            details={"event_id": event_id},
        )


class OutboxJobNotFoundError(AppException):
    """Outbox job not found."""

    def __init__(self, job_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.OUTBOX_JOB_NOT_FOUND,
            message=f"Outbox job not found: {job_id}",
            status_code=404,
            details={"job_id": job_id},
        )


class OutboxJobNotRequeueableError(AppException):
    """Only dead-lettered jobs can be requeued."""

    def __init__(self, job_id: str, status: str) -> None:
        super().__init__(
            error_code=ErrorCode.OUTBOX_JOB_NOT_REQUEUEABLE,
            message=f"Outbox job is {status}; only dead jobs can be requeued",
            status_code=409,
            details={"job_id": job_id, "status": status},
        )
