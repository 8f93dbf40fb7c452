"""
Persistence collaborator contract for the scheduling engine.

The engine itself is computation-only; reads, writes and the serialization
of racing updates belong to a store implementing ``SchedulingStore``.

Concurrency:
    ``save_event`` is an optimistic compare-and-swap on ``EventRecord.version``.
    A record loaded at version N can only be saved while the stored copy is
    still at version N; the stored copy then moves to N + 1. A lost race
    raises ConflictError and the caller is expected to reload and retry.

This module provides:

- ``SchedulingStore``: the protocol.
- ``InMemorySchedulingStore``: dict-backed implementation for tests and
  local development.
"""

import threading
from dataclasses import replace
from typing import Dict, List, Protocol

from backend.src.engine.records import EventRecord, ProfileRecord
from backend.src.services.exceptions import ConflictError, NotFoundError


class SchedulingStore(Protocol):
    """Storage operations the engine and services rely on."""

    def load_event(self, guid: str) -> EventRecord: ...

    def save_event(self, record: EventRecord) -> EventRecord: ...

    def list_events(self) -> List[EventRecord]: ...

    def list_events_by_profile(self, profile_guid: str) -> List[EventRecord]: ...

    def delete_event(self, guid: str) -> EventRecord: ...

    def load_profile(self, guid: str) -> ProfileRecord: ...

    def save_profile(self, record: ProfileRecord) -> ProfileRecord: ...

    def list_profiles(self) -> List[ProfileRecord]: ...

    def delete_profile(self, guid: str) -> ProfileRecord: ...


def check_version(stored_version: int, record: EventRecord) -> None:
    """Raise ConflictError unless ``record`` was read at the stored version."""
    if record.version != stored_version:
        raise ConflictError(
            f"Event {record.guid} was modified concurrently "
            f"(expected version {record.version}, found {stored_version})",
            identifier=record.guid,
            expected_version=record.version,
            actual_version=stored_version,
        )


class InMemorySchedulingStore:
    """
    Dict-backed SchedulingStore.

    A single lock makes each compare-and-swap atomic, which is enough to
    serialize concurrent ``save_event`` calls within one process.
    """

    def __init__(self):
        self._events: Dict[str, EventRecord] = {}
        self._profiles: Dict[str, ProfileRecord] = {}
        self._lock = threading.Lock()

    # -- events ---------------------------------------------------------------

    def load_event(self, guid: str) -> EventRecord:
        try:
            return self._events[guid]
        except KeyError:
            raise NotFoundError("Event", guid)

    def save_event(self, record: EventRecord) -> EventRecord:
        with self._lock:
            current = self._events.get(record.guid)
            if current is None:
                if record.version != 0:
                    # Loaded earlier, deleted since
                    raise NotFoundError("Event", record.guid)
                stored = replace(record, version=1)
            else:
                check_version(current.version, record)
                stored = replace(record, version=current.version + 1)
            self._events[record.guid] = stored
            return stored

    def list_events(self) -> List[EventRecord]:
        return sorted(self._events.values(), key=lambda e: e.start)

    def list_events_by_profile(self, profile_guid: str) -> List[EventRecord]:
        return [e for e in self.list_events() if profile_guid in e.profiles]

    def delete_event(self, guid: str) -> EventRecord:
        with self._lock:
            try:
                return self._events.pop(guid)
            except KeyError:
                raise NotFoundError("Event", guid)

    # -- profiles -------------------------------------------------------------

    def load_profile(self, guid: str) -> ProfileRecord:
        try:
            return self._profiles[guid]
        except KeyError:
            raise NotFoundError("Profile", guid)

    def save_profile(self, record: ProfileRecord) -> ProfileRecord:
        with self._lock:
            self._profiles[record.guid] = record
            return record

    def list_profiles(self) -> List[ProfileRecord]:
        # Newest first; insertion order breaks ties
        profiles = list(self._profiles.values())
        profiles.reverse()
        return sorted(
            profiles,
            key=lambda p: p.created_at.timestamp() if p.created_at else 0.0,
            reverse=True,
        )

    def delete_profile(self, guid: str) -> ProfileRecord:
        with self._lock:
            try:
                return self._profiles.pop(guid)
            except KeyError:
                raise NotFoundError("Profile", guid)
