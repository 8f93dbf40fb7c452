"""
Unit tests for ChangeTracker.

Tests cover:
- Field-appropriate equality (instants, profile sets, plain values)
- Zero-change proposals
- Effective timezone for proposed local dates
- Unknown fields
"""

from datetime import datetime, timezone

import pytest

from backend.src.engine import ChangeTracker, EventPatch
from backend.src.engine.records import UNSET
from backend.src.services.exceptions import InvalidLocalTimeError, InvalidTimezoneError


@pytest.fixture
def tracker(converter):
    return ChangeTracker(converter)


class TestDiffEquality:
    """Tests for which proposals count as changes."""

    def test_proposing_current_values_is_empty(self, tracker, sample_event):
        event = sample_event(description="Room 4B")
        assert tracker.diff(event, event.as_patch()) == []

    def test_empty_proposal_is_empty(self, tracker, sample_event):
        assert tracker.diff(sample_event(), EventPatch()) == []

    def test_title_change(self, tracker, sample_event):
        changes = tracker.diff(sample_event(title="A"), EventPatch(title="B"))
        assert len(changes) == 1
        assert changes[0].field == "title"
        assert changes[0].old_value == "A"
        assert changes[0].new_value == "B"

    def test_profile_reorder_is_not_a_change(self, tracker, sample_event):
        event = sample_event(profiles=["prf_a", "prf_b"])
        assert tracker.diff(event, EventPatch(profiles=["prf_b", "prf_a"])) == []

    def test_profile_duplicates_are_not_a_change(self, tracker, sample_event):
        event = sample_event(profiles=["prf_a", "prf_b"])
        assert tracker.diff(event, EventPatch(profiles=["prf_a", "prf_b", "prf_a"])) == []

    def test_profile_removal_is_a_change(self, tracker, sample_event):
        event = sample_event(profiles=["prf_a", "prf_b"])
        changes = tracker.diff(event, EventPatch(profiles=["prf_a"]))
        assert [c.field for c in changes] == ["profiles"]
        assert changes[0].old_value == ("prf_a", "prf_b")
        assert changes[0].new_value == ("prf_a",)

    def test_same_instant_different_spelling_is_not_a_change(self, tracker, sample_event):
        """Dates are compared as instants, never as strings."""
        event = sample_event()
        assert tracker.diff(event, EventPatch(start="2024-06-01T09:00:00")) == []
        assert tracker.diff(event, EventPatch(start="2024-06-01T13:00:00Z")) == []
        assert tracker.diff(event, EventPatch(start="2024-06-01T15:00+02:00")) == []

    def test_date_change_records_instants(self, tracker, sample_event):
        changes = tracker.diff(sample_event(), EventPatch(end="2024-06-01T11:00"))
        assert len(changes) == 1
        assert changes[0].old_value == datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)
        assert changes[0].new_value == datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc)

    def test_clearing_description(self, tracker, sample_event):
        changes = tracker.diff(sample_event(description="Room 4B"), EventPatch(description=None))
        assert [(c.field, c.old_value, c.new_value) for c in changes] == [
            ("description", "Room 4B", None)
        ]

    def test_changes_follow_field_order(self, tracker, sample_event):
        patch = EventPatch(end="2024-06-01T11:00", title="New", profiles=["prf_z"])
        assert [c.field for c in tracker.diff(sample_event(), patch)] == ["title", "profiles", "end"]


class TestEffectiveTimezone:
    """Tests for interpreting proposed dates in the right zone."""

    def test_dates_use_proposed_timezone(self, tracker, sample_event):
        event = sample_event()
        patch = EventPatch(timezone="Europe/London", start="2024-06-01T13:30")
        changes = {c.field: c for c in tracker.diff(event, patch)}

        assert set(changes) == {"timezone", "start"}
        assert changes["start"].new_value == datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)

    def test_omitted_date_keeps_instant_when_timezone_changes(self, tracker, sample_event):
        event = sample_event()
        changes = tracker.diff(event, EventPatch(timezone="Asia/Tokyo"))
        assert [c.field for c in changes] == ["timezone"]

    def test_dates_use_stored_timezone_without_proposal(self, tracker, sample_event):
        resolved = tracker.resolve(sample_event(), EventPatch(start="2024-06-01T08:00"))
        assert resolved["start"] == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_effective_timezone_ignores_unset_and_none(self, sample_event):
        event = sample_event()
        assert ChangeTracker.effective_timezone(event, {}) == "America/New_York"
        assert ChangeTracker.effective_timezone(event, {"timezone": UNSET}) == "America/New_York"
        assert ChangeTracker.effective_timezone(event, {"timezone": None}) == "America/New_York"
        assert ChangeTracker.effective_timezone(event, {"timezone": "UTC"}) == "UTC"


class TestProposalShapes:
    """Tests for mapping proposals and bad input."""

    def test_mapping_proposal(self, tracker, sample_event):
        changes = tracker.diff(sample_event(), {"title": "Retro"})
        assert [c.field for c in changes] == ["title"]

    def test_unknown_field_rejected(self, tracker, sample_event):
        with pytest.raises(ValueError, match="location"):
            tracker.diff(sample_event(), {"location": "Room 4B"})

    def test_patch_from_mapping_rejects_unknown(self):
        with pytest.raises(ValueError):
            EventPatch.from_mapping({"colour": "red"})

    def test_patch_membership(self):
        patch = EventPatch(description=None)
        assert "description" in patch
        assert "title" not in patch
        assert patch.present() == {"description": None}

    def test_unparseable_date_raises_by_default(self, tracker, sample_event):
        with pytest.raises(InvalidLocalTimeError):
            tracker.resolve(sample_event(), {"start": "not-a-date"})

    def test_unparseable_date_collected_when_requested(self, tracker, sample_event):
        errors = []
        resolved = tracker.resolve(
            sample_event(), {"title": "B", "start": "not-a-date", "timezone": "Bad/Zone", "end": "2024-06-01T10:00"},
            errors=errors,
        )
        assert resolved == {"title": "B", "timezone": "Bad/Zone"}
        assert [type(e) for e in errors] == [InvalidTimezoneError, InvalidTimezoneError]
