"""
Service layer for business logic.

Service classes are imported from their own modules by the API routers;
this package only re-exports the shared exception types so the engine can
depend on them without pulling in the database layer.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ConflictError,
    ValidationError,
    MissingTitleError,
    MissingProfilesError,
    InvalidTimezoneError,
    InvalidRangeError,
    PastEndError,
    InvalidLocalTimeError,
)

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "MissingTitleError",
    "MissingProfilesError",
    "InvalidTimezoneError",
    "InvalidRangeError",
    "PastEndError",
    "InvalidLocalTimeError",
]
