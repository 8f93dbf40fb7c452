"""
Unit tests for Pydantic API schemas.

Tests cover:
- EventUpdate partial-update semantics
- Instant serialization with a "Z" suffix
- ActorSummary and ProfileResponse construction from records
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from backend.src.engine import UNKNOWN_ACTOR, ProfileRecord
from backend.src.schemas import (
    ActorSummary,
    AuditEntryResponse,
    EventCreate,
    EventResponse,
    EventUpdate,
    ProfileResponse,
)


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestEventUpdate:
    """Tests for EventUpdate."""

    def test_only_set_fields_are_updates(self):
        update = EventUpdate(title="New", updated_by="prf_bob", user_timezone="Europe/Paris")
        assert update.field_updates() == {"title": "New"}

    def test_explicit_null_is_kept(self):
        """Clearing a description is an update, not an omission."""
        update = EventUpdate.model_validate({"description": None})
        assert update.field_updates() == {"description": None}

    def test_empty_body(self):
        assert EventUpdate().field_updates() == {}

    def test_profiles_must_be_a_list(self):
        with pytest.raises(PydanticValidationError):
            EventUpdate(profiles="prf_alice")


class TestEventCreate:
    """Tests for EventCreate."""

    def test_defaults(self):
        data = EventCreate()
        assert data.profiles == []
        assert data.title is None

    def test_title_length_limit(self):
        with pytest.raises(PydanticValidationError):
            EventCreate(title="x" * 256)


class TestEventResponse:
    """Tests for EventResponse serialization."""

    def test_instants_serialize_with_z(self):
        response = EventResponse(
            guid="evt_01hgw2bbg0000000000000001",
            title="Planning",
            profiles=[{"guid": "prf_alice", "name": "Unknown profile", "timezone": None, "is_known": False}],
            timezone="America/New_York",
            start=datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc),
            end=datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc),
            viewer_timezone="Europe/Paris",
            start_local="2024-06-01T15:00",
            end_local="2024-06-01T16:00",
            created_by={"guid": None, "name": "Unknown profile", "is_known": False},
            created_at=NOW,
            created_at_local="2024-05-01T14:00",
            updated_at=NOW + timedelta(hours=1),
            updated_at_local="2024-05-01T15:00",
            version=2,
        )
        data = response.model_dump(mode="json")

        assert data["start"] == "2024-06-01T13:00:00Z"
        assert data["updated_at"] == "2024-05-01T13:00:00Z"
        assert data["created_by"]["is_known"] is False
        assert data["profiles"][0]["timezone"] is None
        assert data["updated_at_local"] == "2024-05-01T15:00"
        assert data["audit_log"] == []


class TestAuditSchemas:
    """Tests for audit response schemas."""

    def test_actor_summary_from_sentinel(self):
        actor = ActorSummary.model_validate(UNKNOWN_ACTOR)
        assert actor.guid is None
        assert actor.name == "Unknown profile"
        assert actor.is_known is False

    def test_audit_entry_serialization(self):
        entry = AuditEntryResponse(
            updated_by={"guid": "prf_bob", "name": "Bob", "is_known": True},
            updated_at=NOW,
            updated_at_local="2024-05-01T14:00",
            perceived_timezone="Europe/Paris",
            changes=[{"field": "profiles", "old_value": ["prf_a"], "new_value": ["prf_a", "prf_b"]}],
        )
        data = entry.model_dump(mode="json")
        assert data["updated_at"] == "2024-05-01T12:00:00Z"
        assert data["changes"][0]["new_value"] == ["prf_a", "prf_b"]


class TestProfileResponse:
    """Tests for ProfileResponse."""

    def test_from_record(self):
        record = ProfileRecord("prf_alice", "Alice", "Europe/London", NOW)
        data = ProfileResponse.model_validate(record).model_dump(mode="json")
        assert data == {
            "guid": "prf_alice",
            "name": "Alice",
            "timezone": "Europe/London",
            "created_at": "2024-05-01T12:00:00Z",
        }
