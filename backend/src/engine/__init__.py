"""
Event scheduling and change-tracking engine.

Computation-only core: timezone conversion, validation, field-level diffs
and the append-only audit log. Persistence and transport live outside this
package and talk to it through the records in ``engine.records``.
"""

from backend.src.engine.audit_log import AuditLog
from backend.src.engine.change_tracker import ChangeTracker
from backend.src.engine.converter import (
    StaticZoneConverter,
    TimeZoneConverter,
    ZoneInfoConverter,
    get_converter,
)
from backend.src.engine.event_engine import EventEngine
from backend.src.engine.records import (
    UNKNOWN_ACTOR,
    UNSET,
    ActorRef,
    AuditEntry,
    Change,
    EventCandidate,
    EventPatch,
    EventRecord,
    ProfileRecord,
)
from backend.src.engine.store import InMemorySchedulingStore, SchedulingStore
from backend.src.engine.validator import EventValidator

__all__ = [
    "AuditLog",
    "ChangeTracker",
    "TimeZoneConverter",
    "ZoneInfoConverter",
    "StaticZoneConverter",
    "get_converter",
    "EventEngine",
    "EventValidator",
    "UNKNOWN_ACTOR",
    "UNSET",
    "ActorRef",
    "AuditEntry",
    "Change",
    "EventCandidate",
    "EventPatch",
    "EventRecord",
    "ProfileRecord",
    "SchedulingStore",
    "InMemorySchedulingStore",
]
