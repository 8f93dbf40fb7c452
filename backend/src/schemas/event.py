"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation requests
- Partial event update requests (with editor attribution)
- Event API responses rendered for a viewer timezone

Design:
- start/end are local wall-clock ISO 8601 strings interpreted in the
  event's timezone; a trailing "Z" or explicit offset is taken as an instant
- Business rules (title, profiles, timezone, range, past end) are checked by
  the engine so each failure keeps its own error code; the request schemas
  only describe shape
- Responses carry both stored UTC instants and viewer-local strings
- GUIDs are exposed, never internal IDs
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.schemas.audit import ActorSummary, AuditEntryResponse
from backend.src.schemas.profile import ProfileSummary
from backend.src.utils.formatting import format_instant


# ============================================================================
# Request Schemas
# ============================================================================


class EventCreate(BaseModel):
    """
    Schema for creating a new event.

    Required:
        title: Event title
        profiles: Profile GUIDs the event belongs to (at least one)
        timezone: IANA timezone start/end are expressed in
        start: Local start, e.g. "2024-06-01T09:00"
        end: Local end, after start and not in the past

    Optional:
        description: Free-text description
        created_by: Profile GUID of the creator
    """

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    profiles: List[str] = Field(default_factory=list, description="Profile GUIDs (prf_xxx)")
    timezone: Optional[str] = Field(default=None, max_length=64)
    start: Optional[str] = Field(default=None, description="Local start date/time")
    end: Optional[str] = Field(default=None, description="Local end date/time")
    created_by: Optional[str] = Field(default=None, description="Creator profile GUID")

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Quarterly planning",
                "description": "Room 4B",
                "profiles": ["prf_01hgw2bbg0000000000000001"],
                "timezone": "America/New_York",
                "start": "2024-06-01T09:00",
                "end": "2024-06-01T10:30",
                "created_by": "prf_01hgw2bbg0000000000000001",
            }
        }
    }


class EventUpdate(BaseModel):
    """
    Schema for a partial event update.

    Only fields present in the request body are candidates for a change.
    Local start/end are interpreted in ``timezone`` when it is part of the
    same request, otherwise in the event's stored timezone.

    Attribution:
        updated_by: Profile GUID of the editor
        user_timezone: Editor's timezone, recorded in the audit entry
            (default: "UTC")
    """

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    profiles: Optional[List[str]] = Field(default=None)
    timezone: Optional[str] = Field(default=None, max_length=64)
    start: Optional[str] = Field(default=None)
    end: Optional[str] = Field(default=None)

    updated_by: Optional[str] = Field(default=None, description="Editor profile GUID")
    user_timezone: Optional[str] = Field(default=None, max_length=64)

    model_config = {
        "json_schema_extra": {
            "example": {
                "timezone": "Europe/Paris",
                "start": "2024-06-01T15:00",
                "updated_by": "prf_01hgw2bbg0000000000000001",
                "user_timezone": "Europe/London",
            }
        }
    }

    def field_updates(self) -> dict:
        """Return the event fields explicitly set in the request."""
        return self.model_dump(exclude_unset=True, exclude={"updated_by", "user_timezone"})


# ============================================================================
# Response Schemas
# ============================================================================


class EventResponse(BaseModel):
    """
    Event as rendered for a viewer.

    Instants (start, end, created_at, updated_at) are UTC with a "Z" suffix.
    The *_local fields are wall-clock strings in viewer_timezone, which
    defaults to the event's own timezone. Profiles are resolved at render
    time; a deleted profile shows as "Unknown profile" with is_known false.
    """

    guid: str = Field(..., description="Event GUID (evt_xxx)")
    title: str
    description: Optional[str] = None
    profiles: List[ProfileSummary]
    timezone: str
    start: datetime
    end: datetime
    viewer_timezone: str
    start_local: str
    end_local: str
    created_by: ActorSummary
    created_at: datetime
    created_at_local: str
    updated_at: datetime
    updated_at_local: str
    version: int
    audit_log: List[AuditEntryResponse] = Field(default_factory=list)

    @field_serializer("start", "end", "created_at", "updated_at")
    @classmethod
    def serialize_instant(cls, v: datetime) -> str:
        return format_instant(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "guid": "evt_01hgw2bbg0000000000000001",
                "title": "Quarterly planning",
                "description": "Room 4B",
                "profiles": [
                    {
                        "guid": "prf_01hgw2bbg0000000000000001",
                        "name": "Ada Lovelace",
                        "timezone": "Europe/London",
                        "is_known": True,
                    }
                ],
                "timezone": "America/New_York",
                "start": "2024-06-01T13:00:00Z",
                "end": "2024-06-01T14:30:00Z",
                "viewer_timezone": "America/New_York",
                "start_local": "2024-06-01T09:00",
                "end_local": "2024-06-01T10:30",
                "created_by": {
                    "guid": "prf_01hgw2bbg0000000000000001",
                    "name": "Ada Lovelace",
                    "is_known": True,
                },
                "created_at": "2024-05-01T12:00:00Z",
                "created_at_local": "2024-05-01T08:00",
                "updated_at": "2024-05-01T12:00:00Z",
                "updated_at_local": "2024-05-01T08:00",
                "version": 1,
                "audit_log": [],
            }
        }
    }
