"""
SQLAlchemy-backed SchedulingStore.

Maps engine records to and from the Profile/Event/EventProfile/
EventAuditEntry models. The engine works on immutable EventRecords; this
store is the only place they become rows.

Design:
- save_event is a compare-and-swap on Event.version. The explicit check
  catches stale snapshots within one session; version_id_col catches writers
  in other sessions (StaleDataError). Both surface as ConflictError.
- Audit entries already stored are never rewritten; only entries beyond the
  stored count are inserted.
- Profile links are reconciled in place so unchanged links keep their rows.
"""

from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backend.src.engine.converter import parse_local
from backend.src.engine.records import (
    DATE_FIELDS,
    AuditEntry,
    Change,
    EventRecord,
    ProfileRecord,
)
from backend.src.engine.store import check_version
from backend.src.models import Event, EventAuditEntry, EventProfile, Profile
from backend.src.models.mixins.audit import utc_now
from backend.src.services.exceptions import ConflictError, NotFoundError
from backend.src.utils.formatting import format_instant
from backend.src.utils.logging_config import get_logger


logger = get_logger("db")


# =============================================================================
# Change value encoding
# =============================================================================

def encode_change(change: Change) -> Dict[str, Any]:
    """Serialize a Change for the JSON ``changes`` column."""
    return {
        "field": change.field,
        "old_value": _encode_value(change.field, change.old_value),
        "new_value": _encode_value(change.field, change.new_value),
    }


def decode_change(data: Dict[str, Any]) -> Change:
    """Rebuild a Change from its stored JSON form."""
    field = data["field"]
    return Change(
        field=field,
        old_value=_decode_value(field, data.get("old_value")),
        new_value=_decode_value(field, data.get("new_value")),
    )


def _encode_value(field: str, value: Any) -> Any:
    if value is None:
        return None
    if field in DATE_FIELDS:
        return format_instant(value)
    if field == "profiles":
        return list(value)
    return value


def _decode_value(field: str, value: Any) -> Any:
    if value is None:
        return None
    if field in DATE_FIELDS:
        return parse_local(value, field=field)
    if field == "profiles":
        return tuple(value)
    return value


# =============================================================================
# Model <-> record mapping
# =============================================================================

def profile_to_record(profile: Profile) -> ProfileRecord:
    return ProfileRecord(
        guid=profile.guid,
        name=profile.name,
        timezone=profile.timezone,
        created_at=profile.created_at,
    )


def audit_entry_to_record(entry: EventAuditEntry) -> AuditEntry:
    return AuditEntry(
        updated_by=entry.updated_by_guid,
        updated_at=entry.updated_at,
        perceived_timezone=entry.perceived_timezone,
        changes=tuple(decode_change(c) for c in entry.changes or []),
    )


def event_to_record(event: Event) -> EventRecord:
    return EventRecord(
        guid=event.guid,
        title=event.title,
        description=event.description,
        profiles=tuple(event.profile_guids),
        timezone=event.timezone,
        start=event.start_at,
        end=event.end_at,
        created_by=event.created_by_guid,
        created_at=event.created_at,
        updated_at=event.updated_at,
        audit_log=tuple(audit_entry_to_record(e) for e in event.audit_entries),
        version=event.version,
    )


class SqlSchedulingStore:
    """
    SchedulingStore backed by a SQLAlchemy session.

    Usage:
        >>> store = SqlSchedulingStore(db_session)
        >>> saved = store.save_event(engine.create(...))
        >>> saved.version
        1
    """

    def __init__(self, db: Session):
        """
        Initialize the store.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    # =========================================================================
    # Events
    # =========================================================================

    def load_event(self, guid: str) -> EventRecord:
        return event_to_record(self._get_event(guid))

    def save_event(self, record: EventRecord) -> EventRecord:
        """
        Insert (version 0) or compare-and-swap update (version N >= 1).

        Raises:
            NotFoundError: If an update targets an event that no longer exists
            ConflictError: If the stored version moved since ``record`` was read
        """
        try:
            if record.version == 0:
                model = Event(uuid=Event.parse_guid(record.guid))
                self.db.add(model)
            else:
                model = self._get_event(record.guid)
                check_version(model.version, record)

            self._apply_record(model, record)
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning(f"Concurrent update lost for event {record.guid}")
            raise ConflictError(
                f"Event {record.guid} was modified concurrently",
                identifier=record.guid,
                expected_version=record.version,
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to save event {record.guid}: {e}")
            raise ConflictError(f"Event {record.guid} could not be saved", identifier=record.guid)

        self.db.refresh(model)
        return event_to_record(model)

    def list_events(self) -> List[EventRecord]:
        events = self.db.query(Event).order_by(Event.start_at.asc(), Event.id.asc()).all()
        return [event_to_record(e) for e in events]

    def list_events_by_profile(self, profile_guid: str) -> List[EventRecord]:
        events = (
            self.db.query(Event)
            .join(EventProfile, EventProfile.event_id == Event.id)
            .filter(EventProfile.profile_guid == profile_guid)
            .order_by(Event.start_at.asc(), Event.id.asc())
            .all()
        )
        return [event_to_record(e) for e in events]

    def delete_event(self, guid: str) -> EventRecord:
        model = self._get_event(guid)
        record = event_to_record(model)
        self.db.delete(model)
        self.db.commit()
        return record

    def _get_event(self, guid: str) -> Event:
        try:
            uuid_value = Event.parse_guid(guid)
        except ValueError:
            raise NotFoundError("Event", guid)

        event = self.db.query(Event).filter(Event.uuid == uuid_value).first()
        if not event:
            raise NotFoundError("Event", guid)
        return event

    def _apply_record(self, model: Event, record: EventRecord) -> None:
        model.title = record.title
        model.description = record.description
        model.timezone = record.timezone
        model.start_at = record.start
        model.end_at = record.end
        model.created_by_guid = record.created_by
        model.created_at = record.created_at
        model.updated_at = record.updated_at

        if list(model.profile_guids) != list(record.profiles):
            existing = {link.profile_guid: link for link in model.profile_links}
            links = []
            for position, profile_guid in enumerate(record.profiles):
                link = existing.pop(profile_guid, None) or EventProfile(profile_guid=profile_guid)
                link.position = position
                links.append(link)
            model.profile_links = links

        stored = len(model.audit_entries)
        for sequence, entry in enumerate(record.audit_log[stored:], start=stored):
            model.audit_entries.append(
                EventAuditEntry(
                    sequence=sequence,
                    updated_by_guid=entry.updated_by,
                    updated_at=entry.updated_at,
                    perceived_timezone=entry.perceived_timezone,
                    changes=[encode_change(c) for c in entry.changes],
                )
            )

    # =========================================================================
    # Profiles
    # =========================================================================

    def load_profile(self, guid: str) -> ProfileRecord:
        return profile_to_record(self._get_profile(guid))

    def save_profile(self, record: ProfileRecord) -> ProfileRecord:
        """Insert or overwrite a profile's name and timezone."""
        try:
            model = self._get_profile(record.guid)
        except NotFoundError:
            model = Profile(
                uuid=Profile.parse_guid(record.guid),
                created_at=record.created_at or utc_now(),
            )
            self.db.add(model)

        model.name = record.name
        model.timezone = record.timezone
        self.db.commit()
        self.db.refresh(model)
        return profile_to_record(model)

    def list_profiles(self) -> List[ProfileRecord]:
        profiles = self.db.query(Profile).order_by(Profile.created_at.desc(), Profile.id.desc()).all()
        return [profile_to_record(p) for p in profiles]

    def delete_profile(self, guid: str) -> ProfileRecord:
        model = self._get_profile(guid)
        record = profile_to_record(model)
        self.db.delete(model)
        self.db.commit()
        return record

    def _get_profile(self, guid: str) -> Profile:
        try:
            uuid_value = Profile.parse_guid(guid)
        except ValueError:
            raise NotFoundError("Profile", guid)

        profile = self.db.query(Profile).filter(Profile.uuid == uuid_value).first()
        if not profile:
            raise NotFoundError("Profile", guid)
        return profile
