"""
Audit trail schemas for API response serialization.

Provides ActorSummary, ChangeResponse and AuditEntryResponse, embedded in
event responses and returned by the history endpoint.

Date-field change values are rendered as local wall-clock strings in the
viewer's timezone; all other values are returned as stored.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.utils.formatting import format_instant


class ActorSummary(BaseModel):
    """
    Minimal profile representation for attribution display.

    Attributes:
        guid: Profile GUID (prf_xxx). Null when no actor was recorded.
        name: Profile display name, or "Unknown profile" when the
            referenced profile no longer exists.
        is_known: False for the unknown-actor sentinel.
    """

    guid: Optional[str] = Field(default=None, description="Profile GUID (prf_xxx)")
    name: str = Field(..., description="Profile display name")
    is_known: bool = Field(default=True, description="Whether the profile still exists")

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "prf_01hgw2bbg0000000000000001",
                "name": "Ada Lovelace",
                "is_known": True,
            }
        },
    }


class ChangeResponse(BaseModel):
    """One field's value before and after an update."""

    field: str = Field(..., description="Changed field name")
    old_value: Any = Field(default=None, description="Value before the update")
    new_value: Any = Field(default=None, description="Value after the update")


class AuditEntryResponse(BaseModel):
    """
    One attributed update in an event's history.

    Attributes:
        updated_by: Editor (unknown-actor sentinel for stale references)
        updated_at: Instant the update was applied (UTC)
        updated_at_local: updated_at in the viewer's timezone
        perceived_timezone: Timezone the editor was working in
        changes: Field changes, in diff order
    """

    updated_by: ActorSummary
    updated_at: datetime
    updated_at_local: str
    perceived_timezone: str
    changes: List[ChangeResponse] = Field(default_factory=list)

    @field_serializer("updated_at")
    @classmethod
    def serialize_updated_at(cls, v: datetime) -> str:
        return format_instant(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "updated_by": {
                    "guid": "prf_01hgw2bbg0000000000000001",
                    "name": "Ada Lovelace",
                    "is_known": True,
                },
                "updated_at": "2024-05-02T08:30:00Z",
                "updated_at_local": "2024-05-02T04:30",
                "perceived_timezone": "Europe/London",
                "changes": [
                    {
                        "field": "start",
                        "old_value": "2024-06-01T09:00",
                        "new_value": "2024-06-01T10:00",
                    }
                ],
            }
        },
    }
