"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.audit import (
    ActorSummary,
    ChangeResponse,
    AuditEntryResponse,
)
from backend.src.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
)
from backend.src.schemas.profile import (
    ProfileCreate,
    ProfileTimezoneUpdate,
    ProfileResponse,
    ProfileSummary,
)

__all__ = [
    "ActorSummary",
    "ChangeResponse",
    "AuditEntryResponse",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "ProfileCreate",
    "ProfileTimezoneUpdate",
    "ProfileResponse",
    "ProfileSummary",
]
