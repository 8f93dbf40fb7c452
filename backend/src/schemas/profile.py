"""
Pydantic schemas for profile API request/response validation.

Name and timezone rules are enforced by ProfileService so that every
failure is reported with its own error code; the request schemas only
describe shape.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.utils.formatting import format_instant


class ProfileCreate(BaseModel):
    """
    Schema for creating a profile.

    Required:
        name: Display name

    Optional:
        timezone: IANA timezone (default: configured default, "UTC")
    """

    name: Optional[str] = Field(default=None, max_length=255)
    timezone: Optional[str] = Field(default=None, max_length=64)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Ada Lovelace",
                "timezone": "Europe/London",
            }
        }
    }


class ProfileTimezoneUpdate(BaseModel):
    """Schema for changing a profile's timezone."""

    timezone: Optional[str] = Field(default=None, max_length=64)

    model_config = {
        "json_schema_extra": {
            "example": {"timezone": "America/New_York"}
        }
    }


class ProfileResponse(BaseModel):
    """Profile as returned by the API."""

    guid: str = Field(..., description="Profile GUID (prf_xxx)")
    name: str
    timezone: str
    created_at: Optional[datetime] = None

    @field_serializer("created_at")
    @classmethod
    def serialize_created_at(cls, v: Optional[datetime]) -> Optional[str]:
        return format_instant(v)

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "prf_01hgw2bbg0000000000000001",
                "name": "Ada Lovelace",
                "timezone": "Europe/London",
                "created_at": "2024-05-01T12:00:00Z",
            }
        },
    }


class ProfileSummary(BaseModel):
    """
    A profile as referenced from an event.

    Attributes:
        guid: Profile GUID (prf_xxx), kept even after the profile is deleted
        name: Display name, or "Unknown profile" for a deleted profile
        timezone: Current IANA timezone; null for a deleted profile
        is_known: False when the referenced profile no longer exists
    """

    guid: str = Field(..., description="Profile GUID (prf_xxx)")
    name: str
    timezone: Optional[str] = None
    is_known: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "guid": "prf_01hgw2bbg0000000000000001",
                "name": "Ada Lovelace",
                "timezone": "Europe/London",
                "is_known": True,
            }
        },
    }
