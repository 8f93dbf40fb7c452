"""
Plain records exchanged between the scheduling engine and its collaborators.

The engine never sees SQLAlchemy models or Pydantic schemas; persistence and
transport layers convert to and from these frozen dataclasses.

Design:
- Events store absolute UTC instants only; the authoring timezone is kept
  for display and audit purposes.
- An EventRecord is immutable. Every mutation produces a new record through
  ``dataclasses.replace``, which re-runs the ``end > start`` check.
- The audit log is a tuple, so appending means rebuilding; historical entries
  can never be edited in place.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from backend.src.services.exceptions import InvalidRangeError


# Field names tracked by the audit trail, in diff order
TRACKED_FIELDS: Tuple[str, ...] = (
    "title",
    "description",
    "profiles",
    "timezone",
    "start",
    "end",
)

# Fields whose values are absolute instants
DATE_FIELDS = frozenset({"start", "end"})

UNKNOWN_ACTOR_NAME = "Unknown profile"


class _Unset:
    """Marker for fields absent from a partial update."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def normalize_profiles(profiles: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Drop duplicate profile identifiers, keeping first-seen order."""
    if not profiles:
        return ()
    seen = []
    for guid in profiles:
        if guid not in seen:
            seen.append(guid)
    return tuple(seen)


@dataclass(frozen=True)
class Change:
    """One field's old and new value, in the field's stored representation."""

    field: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class AuditEntry:
    """
    Attributed, timestamped bundle of changes applied by a single update.

    Attributes:
        updated_by: Profile GUID of the editor (weak reference, may be stale)
        updated_at: Instant the update was applied
        perceived_timezone: Editor's timezone at the time of the edit
        changes: Ordered changes; an entry is only ever appended when non-empty
    """

    updated_by: Optional[str]
    updated_at: datetime
    perceived_timezone: str
    changes: Tuple[Change, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "changes", tuple(self.changes))

    @property
    def fields_changed(self) -> Tuple[str, ...]:
        return tuple(c.field for c in self.changes)


@dataclass(frozen=True)
class ProfileRecord:
    """A profile: display name plus its current IANA timezone."""

    guid: str
    name: str
    timezone: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EventRecord:
    """
    Canonical, persisted state of an event.

    ``version`` is owned by the persistence collaborator and used for
    optimistic concurrency; the engine carries it through untouched.
    """

    guid: str
    title: str
    profiles: Tuple[str, ...]
    timezone: str
    start: datetime
    end: datetime
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    audit_log: Tuple[AuditEntry, ...] = ()
    version: int = 0

    def __post_init__(self):
        object.__setattr__(self, "profiles", normalize_profiles(self.profiles))
        object.__setattr__(self, "audit_log", tuple(self.audit_log))
        if self.end <= self.start:
            raise InvalidRangeError()

    def field_value(self, name: str) -> Any:
        """Return the current value of a tracked field."""
        if name not in TRACKED_FIELDS:
            raise KeyError(name)
        return getattr(self, name)

    def as_patch(self) -> "EventPatch":
        """Return a patch proposing exactly this event's current values."""
        return EventPatch(**{name: self.field_value(name) for name in TRACKED_FIELDS})


@dataclass(frozen=True)
class EventPatch:
    """
    Partial update proposal.

    Fields left as ``UNSET`` are not part of the proposal and are never
    candidates for a change. ``start``/``end`` may be local wall-clock strings
    or datetimes; naive values are interpreted in the effective timezone.
    ``description`` may be explicitly set to ``None`` to clear it.
    """

    title: Any = UNSET
    description: Any = UNSET
    profiles: Any = UNSET
    timezone: Any = UNSET
    start: Any = UNSET
    end: Any = UNSET

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> "EventPatch":
        """Build a patch from a mapping such as ``model_dump(exclude_unset=True)``."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown event fields: {', '.join(sorted(unknown))}")
        return cls(**values)

    def present(self) -> Dict[str, Any]:
        """Return only the fields included in the proposal, in diff order."""
        return {
            name: getattr(self, name)
            for name in TRACKED_FIELDS
            if getattr(self, name) is not UNSET
        }

    def __contains__(self, name: str) -> bool:
        return getattr(self, name, UNSET) is not UNSET


@dataclass(frozen=True)
class EventCandidate:
    """
    Full candidate state handed to the validator before a record is built.

    ``date_error`` holds a conversion failure for start/end. It is raised by
    the validator only after the title, profile and timezone rules pass.
    """

    title: Optional[str]
    profiles: Tuple[str, ...]
    timezone: Optional[str]
    start: Optional[datetime]
    end: Optional[datetime]
    description: Optional[str] = None
    date_error: Optional[Exception] = None

    @classmethod
    def from_record(cls, record: EventRecord) -> "EventCandidate":
        return cls(
            title=record.title,
            profiles=record.profiles,
            timezone=record.timezone,
            start=record.start,
            end=record.end,
            description=record.description,
        )


@dataclass(frozen=True)
class ActorRef:
    """Display-side resolution of a weak profile reference."""

    guid: Optional[str]
    name: str
    is_known: bool = True


UNKNOWN_ACTOR = ActorRef(guid=None, name=UNKNOWN_ACTOR_NAME, is_known=False)
