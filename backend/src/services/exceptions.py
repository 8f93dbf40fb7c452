"""
Custom exceptions for the scheduling engine and service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.

Every exception carries a stable machine-readable ``code`` so the transport
layer can map each error kind to a distinct response.

Retryable kinds (after reloading current state): NotFoundError, ConflictError.
All validation kinds are permanent for the given input.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "SERVICE_ERROR"
    retryable = False


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"
    retryable = True

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        self.message = f"{resource} {identifier} not found"
        super().__init__(self.message)


class ConflictError(ServiceError):
    """Raised when a save collides with a concurrent update."""

    code = "CONFLICT"
    retryable = True

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        self.message = message
        self.identifier = identifier
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class MissingTitleError(ValidationError):
    """Raised when an event has an empty or whitespace-only title."""

    code = "MISSING_TITLE"

    def __init__(self):
        super().__init__("Event title is required", field="title")


class MissingProfilesError(ValidationError):
    """Raised when an event is not attached to any profile."""

    code = "MISSING_PROFILES"

    def __init__(self):
        super().__init__("At least one profile is required", field="profiles")


class InvalidTimezoneError(ValidationError):
    """Raised when a timezone is not a resolvable IANA identifier."""

    code = "INVALID_TIMEZONE"

    def __init__(self, timezone: Any, field: str = "timezone"):
        self.timezone = timezone
        super().__init__(f"Invalid IANA timezone: {timezone!r}", field=field)


class InvalidRangeError(ValidationError):
    """Raised when an event's end is not after its start."""

    code = "INVALID_RANGE"

    def __init__(self):
        super().__init__("End date/time must be after start date/time", field="end")


class PastEndError(ValidationError):
    """Raised when an event's end lies before the reference time."""

    code = "PAST_END"

    def __init__(self):
        super().__init__("End date/time cannot be in the past", field="end")


class InvalidLocalTimeError(ValidationError):
    """Raised when a local date/time value is missing or cannot be parsed."""

    code = "INVALID_LOCAL_TIME"

    def __init__(self, value: Any, field: Optional[str] = None):
        self.value = value
        if value is None:
            message = f"{field or 'Date/time'} is required"
        else:
            message = f"Invalid local date/time: {value!r}"
        super().__init__(message, field=field)
