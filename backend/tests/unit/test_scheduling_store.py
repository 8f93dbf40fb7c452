"""
Unit tests for SchedulingStore implementations.

Tests cover:
- InMemorySchedulingStore: insert, compare-and-swap, listing, deletion
- SqlSchedulingStore: record round trips, audit persistence, optimistic
  locking, profile storage and weak references
"""

from datetime import datetime, timedelta, timezone

import pytest

from backend.src.engine import Change, ProfileRecord
from backend.src.models import Event, EventAuditEntry, EventProfile
from backend.src.services.exceptions import ConflictError, NotFoundError
from backend.src.services.guid import GuidService
from backend.src.services.scheduling_store import (
    SqlSchedulingStore,
    decode_change,
    encode_change,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestInMemoryStoreEvents:
    """Tests for InMemorySchedulingStore event operations."""

    def test_insert_assigns_version_one(self, memory_store, sample_event):
        saved = memory_store.save_event(sample_event())
        assert saved.version == 1
        assert memory_store.load_event(saved.guid) == saved

    def test_update_bumps_version(self, memory_store, event_engine, sample_event, now):
        saved = memory_store.save_event(sample_event())
        updated = event_engine.update(saved, {"title": "B"}, "prf_bob", "UTC", now)
        assert memory_store.save_event(updated).version == 2

    def test_lost_race_raises_conflict(self, memory_store, event_engine, sample_event, now):
        """Two writers start from version 1; the second save fails."""
        saved = memory_store.save_event(sample_event())
        first = event_engine.update(saved, {"title": "First"}, "prf_a", "UTC", now)
        second = event_engine.update(saved, {"title": "Second"}, "prf_b", "UTC", now)

        memory_store.save_event(first)
        with pytest.raises(ConflictError) as exc_info:
            memory_store.save_event(second)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert exc_info.value.retryable is True
        assert memory_store.load_event(saved.guid).title == "First"

    def test_save_after_delete_is_not_found(self, memory_store, event_engine, sample_event, now):
        saved = memory_store.save_event(sample_event())
        updated = event_engine.update(saved, {"title": "B"}, "prf_a", "UTC", now)
        memory_store.delete_event(saved.guid)
        with pytest.raises(NotFoundError):
            memory_store.save_event(updated)

    def test_lists_are_sorted_by_start(self, memory_store, sample_event):
        late = memory_store.save_event(sample_event(start_local="2024-06-03T09:00", end_local="2024-06-03T10:00"))
        early = memory_store.save_event(sample_event(
            profiles=["prf_carol"], start_local="2024-06-02T09:00", end_local="2024-06-02T10:00"
        ))
        assert [e.guid for e in memory_store.list_events()] == [early.guid, late.guid]
        assert [e.guid for e in memory_store.list_events_by_profile("prf_alice")] == [late.guid]
        assert memory_store.list_events_by_profile("prf_nobody") == []

    def test_load_missing(self, memory_store):
        with pytest.raises(NotFoundError):
            memory_store.load_event("evt_missing")


class TestInMemoryStoreProfiles:
    """Tests for InMemorySchedulingStore profile operations."""

    def test_profiles_newest_first(self, memory_store, now):
        memory_store.save_profile(ProfileRecord("prf_old", "Old", "UTC", now))
        memory_store.save_profile(ProfileRecord("prf_new", "New", "UTC", now + timedelta(days=1)))
        assert [p.guid for p in memory_store.list_profiles()] == ["prf_new", "prf_old"]

    def test_delete_profile(self, memory_store, now):
        memory_store.save_profile(ProfileRecord("prf_a", "A", "UTC", now))
        memory_store.delete_profile("prf_a")
        with pytest.raises(NotFoundError):
            memory_store.load_profile("prf_a")
        with pytest.raises(NotFoundError):
            memory_store.delete_profile("prf_a")


class TestChangeEncoding:
    """Tests for JSON encoding of audit changes."""

    def test_date_values_become_iso_strings(self):
        change = Change("start", utc(2024, 6, 1, 13), utc(2024, 6, 1, 12, 30))
        encoded = encode_change(change)
        assert encoded == {
            "field": "start",
            "old_value": "2024-06-01T13:00:00Z",
            "new_value": "2024-06-01T12:30:00Z",
        }
        assert decode_change(encoded) == change

    def test_profiles_become_lists(self):
        encoded = encode_change(Change("profiles", ("prf_a", "prf_b"), ("prf_a",)))
        assert encoded["old_value"] == ["prf_a", "prf_b"]
        assert decode_change(encoded).new_value == ("prf_a",)

    def test_none_passes_through(self):
        change = Change("description", None, "Room 4B")
        assert decode_change(encode_change(change)) == change


class TestSqlStoreEvents:
    """Tests for SqlSchedulingStore event operations."""

    @pytest.fixture
    def store(self, test_db_session):
        return SqlSchedulingStore(test_db_session)

    def test_insert_and_load(self, store, sample_event):
        record = sample_event(description="Room 4B", profiles=["prf_b", "prf_a"])
        saved = store.save_event(record)

        assert saved.version == 1
        loaded = store.load_event(record.guid)
        assert loaded.guid == record.guid
        assert loaded.title == "Planning"
        assert loaded.description == "Room 4B"
        assert loaded.profiles == ("prf_b", "prf_a")
        assert loaded.start == utc(2024, 6, 1, 13, 0)
        assert loaded.end == utc(2024, 6, 1, 14, 0)
        assert loaded.start.tzinfo is not None
        assert loaded.created_at == record.created_at
        assert loaded.created_by == "prf_alice"

    def test_audit_entries_round_trip(self, store, event_engine, sample_event, now):
        saved = store.save_event(sample_event())
        updated = event_engine.update(
            saved,
            {"timezone": "Europe/London", "start": "2024-06-01T13:30", "profiles": ["prf_alice"]},
            "prf_bob",
            "Europe/Paris",
            now + timedelta(hours=1),
        )
        store.save_event(updated)

        loaded = store.load_event(saved.guid)
        assert loaded.version == 2
        assert loaded.profiles == ("prf_alice",)
        assert len(loaded.audit_log) == 1
        entry = loaded.audit_log[0]
        assert entry.updated_by == "prf_bob"
        assert entry.perceived_timezone == "Europe/Paris"
        assert entry.updated_at == now + timedelta(hours=1)
        assert entry.changes == updated.audit_log[0].changes
        assert loaded.updated_at == now + timedelta(hours=1)

    def test_audit_entries_are_appended_in_order(self, store, test_db_session, event_engine, sample_event, now):
        record = store.save_event(sample_event())
        for i, title in enumerate(["B", "C", "D"]):
            record = event_engine.update(record, {"title": title}, "prf_a", "UTC", now + timedelta(minutes=i))
            record = store.save_event(record)

        rows = test_db_session.query(EventAuditEntry).order_by(EventAuditEntry.sequence).all()
        assert [r.sequence for r in rows] == [0, 1, 2]
        assert [r.changes[0]["new_value"] for r in rows] == ["B", "C", "D"]
        assert record.version == 4

    def test_stale_snapshot_raises_conflict(self, store, event_engine, sample_event, now):
        saved = store.save_event(sample_event())
        first = event_engine.update(saved, {"title": "First"}, "prf_a", "UTC", now)
        second = event_engine.update(saved, {"title": "Second"}, "prf_b", "UTC", now)

        store.save_event(first)
        with pytest.raises(ConflictError):
            store.save_event(second)

        loaded = store.load_event(saved.guid)
        assert loaded.title == "First"
        assert len(loaded.audit_log) == 1

    def test_list_by_profile(self, store, sample_event):
        a = store.save_event(sample_event(profiles=["prf_a"], start_local="2024-06-02T09:00", end_local="2024-06-02T10:00"))
        b = store.save_event(sample_event(profiles=["prf_a", "prf_b"]))
        store.save_event(sample_event(profiles=["prf_c"]))

        assert [e.guid for e in store.list_events_by_profile("prf_a")] == [b.guid, a.guid]
        assert [e.guid for e in store.list_events_by_profile("prf_b")] == [b.guid]
        assert len(store.list_events()) == 3

    def test_delete_cascades_to_children(self, store, test_db_session, event_engine, sample_event, now):
        saved = store.save_event(sample_event())
        store.save_event(event_engine.update(saved, {"title": "B"}, "prf_a", "UTC", now))

        store.delete_event(saved.guid)

        assert test_db_session.query(Event).count() == 0
        assert test_db_session.query(EventProfile).count() == 0
        assert test_db_session.query(EventAuditEntry).count() == 0
        with pytest.raises(NotFoundError):
            store.load_event(saved.guid)

    @pytest.mark.parametrize("guid", ["evt_missing", "not-a-guid", "prf_01hgw2bbg0000000000000000"])
    def test_load_missing_or_malformed(self, store, guid):
        with pytest.raises(NotFoundError):
            store.load_event(guid)


class TestSqlStoreProfiles:
    """Tests for SqlSchedulingStore profile operations."""

    @pytest.fixture
    def store(self, test_db_session):
        return SqlSchedulingStore(test_db_session)

    def test_save_load_and_overwrite(self, store, now):
        guid = GuidService.generate_guid("prf")
        store.save_profile(ProfileRecord(guid, "Ada", "Europe/London", now))
        store.save_profile(ProfileRecord(guid, "Ada", "America/New_York", now))

        loaded = store.load_profile(guid)
        assert loaded.timezone == "America/New_York"
        assert loaded.created_at == now
        assert len(store.list_profiles()) == 1

    def test_list_newest_first(self, store, now):
        old = GuidService.generate_guid("prf")
        new = GuidService.generate_guid("prf")
        store.save_profile(ProfileRecord(old, "Old", "UTC", now))
        store.save_profile(ProfileRecord(new, "New", "UTC", now + timedelta(days=1)))
        assert [p.guid for p in store.list_profiles()] == [new, old]

    def test_delete_profile_leaves_events(self, store, sample_event, now):
        guid = GuidService.generate_guid("prf")
        store.save_profile(ProfileRecord(guid, "Ada", "UTC", now))
        event = store.save_event(sample_event(profiles=[guid], created_by=guid))

        store.delete_profile(guid)

        loaded = store.load_event(event.guid)
        assert loaded.profiles == (guid,)
        assert loaded.created_by == guid
        with pytest.raises(NotFoundError):
            store.load_profile(guid)
