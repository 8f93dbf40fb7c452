"""
Event service for scheduling, editing and rendering events.

Wraps the EventEngine with a SQL-backed SchedulingStore and a clock, and
turns engine records into viewer-zone display payloads.

Design:
- All validation and diffing happens in the engine; this layer only loads,
  saves, timestamps and logs.
- Updates are optimistic: the record loaded here is saved with a
  compare-and-swap on its version, so a racing writer gets ConflictError.
- A no-op update is not saved and does not touch updated_at.
- Profile references are weak. Actors and member profiles are resolved at
  render time and a reference to a deleted profile renders as the
  unknown-actor sentinel.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.engine import (
    UNKNOWN_ACTOR,
    ActorRef,
    AuditEntry,
    EventEngine,
    EventRecord,
    ProfileRecord,
    TimeZoneConverter,
    ZoneInfoConverter,
)
from backend.src.engine.records import DATE_FIELDS, UNKNOWN_ACTOR_NAME, Change
from backend.src.models.mixins.audit import utc_now
from backend.src.services.exceptions import InvalidTimezoneError, NotFoundError
from backend.src.services.scheduling_store import SqlSchedulingStore
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class EventService:
    """
    Service for managing scheduled events.

    Usage:
        >>> service = EventService(db_session)
        >>> event = service.create(
        ...     title="Standup",
        ...     profiles=["prf_01hgw2bbg..."],
        ...     timezone="America/New_York",
        ...     start="2024-06-01T09:00",
        ...     end="2024-06-01T09:30",
        ... )
        >>> service.build_event_response(event, viewer_timezone="Europe/Paris")["start_local"]
        '2024-06-01T15:00'
    """

    def __init__(
        self,
        db: Session,
        converter: Optional[TimeZoneConverter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize event service.

        Args:
            db: SQLAlchemy database session
            converter: Timezone converter (defaults to zoneinfo)
            clock: Returns the current instant (defaults to utc_now)
        """
        self.db = db
        self.store = SqlSchedulingStore(db)
        self.converter = converter or ZoneInfoConverter()
        self.engine = EventEngine(converter=self.converter, store=self.store)
        self.clock = clock or utc_now

    # =========================================================================
    # Queries
    # =========================================================================

    def list(self) -> List[EventRecord]:
        """List all events ordered by start instant."""
        return self.store.list_events()

    def list_by_profile(self, profile_guid: str) -> List[EventRecord]:
        """List the events a profile belongs to, ordered by start instant."""
        return self.store.list_events_by_profile(profile_guid)

    def get_by_guid(self, guid: str) -> EventRecord:
        """
        Get an event by GUID.

        Raises:
            NotFoundError: If the event does not exist
        """
        return self.store.load_event(guid)

    def get_history(self, guid: str, viewer_timezone: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Load an event and render its audit entries, oldest first.

        Raises:
            NotFoundError: If the event does not exist
            InvalidTimezoneError: If viewer_timezone is not a valid IANA zone
        """
        return self.build_history_response(self.get_by_guid(guid), viewer_timezone)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create(
        self,
        title: Optional[str],
        profiles: Optional[List[str]],
        timezone: Optional[str],
        start: Any,
        end: Any,
        created_by: Optional[str] = None,
        description: Optional[str] = None,
    ) -> EventRecord:
        """
        Create and persist a new event.

        Args:
            title: Event title
            profiles: Profile GUIDs the event belongs to
            timezone: IANA zone ``start``/``end`` are expressed in
            start: Local start (ISO 8601 string or datetime)
            end: Local end (ISO 8601 string or datetime)
            created_by: Profile GUID of the creator
            description: Optional description

        Returns:
            Persisted EventRecord (version 1)

        Raises:
            ValidationError subclass: If any event rule is violated
        """
        record = self.engine.create(
            title=title,
            description=description,
            profiles=profiles,
            timezone=timezone,
            start_local=start,
            end_local=end,
            created_by=created_by,
            now=self.clock(),
        )
        saved = self.store.save_event(record)
        logger.info(f"Created event: {saved.guid} - {saved.title}")
        return saved

    def update(
        self,
        guid: str,
        updated_by: Optional[str] = None,
        user_timezone: Optional[str] = None,
        **updates: Any,
    ) -> EventRecord:
        """
        Apply a partial update to an event.

        Args:
            guid: Event GUID
            updated_by: Profile GUID of the editor
            user_timezone: Editor's timezone (defaults to the configured
                default timezone)
            **updates: Any of title, description, profiles, timezone,
                start, end. Omitted fields are left alone.

        Returns:
            The updated EventRecord, or the stored record if nothing changed

        Raises:
            NotFoundError: If the event does not exist
            ConflictError: If another writer saved the event first
            ValidationError subclass: If the resulting event is invalid
        """
        existing = self.store.load_event(guid)
        result = self.engine.update(
            existing,
            updates,
            actor=updated_by,
            actor_timezone=user_timezone or get_settings().default_timezone,
            now=self.clock(),
        )
        if result is existing:
            logger.info(f"Update of event {guid} changed nothing")
            return existing

        saved = self.store.save_event(result)
        fields_changed = ", ".join(saved.audit_log[-1].fields_changed)
        logger.info(f"Updated event: {guid} (fields: {fields_changed}, version: {saved.version})")
        return saved

    def delete(self, guid: str) -> EventRecord:
        """
        Delete an event and its audit history.

        Raises:
            NotFoundError: If the event does not exist
        """
        deleted = self.engine.delete(guid)
        logger.info(f"Deleted event: {guid}")
        return deleted

    # =========================================================================
    # Display
    # =========================================================================

    def resolve_actor(self, profile_guid: Optional[str], cache: Optional[Dict] = None) -> ActorRef:
        """Resolve a weak profile reference to an ActorRef."""
        if not profile_guid:
            return UNKNOWN_ACTOR
        profile = self._lookup_profile(profile_guid, cache)
        if profile is None:
            return ActorRef(guid=profile_guid, name=UNKNOWN_ACTOR_NAME, is_known=False)
        return ActorRef(guid=profile_guid, name=profile.name)

    def resolve_profile(self, profile_guid: str, cache: Optional[Dict] = None) -> Dict[str, Any]:
        """
        Resolve an event's profile reference for display.

        Deleted profiles keep their GUID and render with the unknown-actor
        name and no timezone.
        """
        profile = self._lookup_profile(profile_guid, cache)
        if profile is None:
            return {
                "guid": profile_guid,
                "name": UNKNOWN_ACTOR_NAME,
                "timezone": None,
                "is_known": False,
            }
        return {
            "guid": profile_guid,
            "name": profile.name,
            "timezone": profile.timezone,
            "is_known": True,
        }

    def _lookup_profile(self, profile_guid: str, cache: Optional[Dict]) -> Optional[ProfileRecord]:
        if cache is not None and profile_guid in cache:
            return cache[profile_guid]
        try:
            profile = self.store.load_profile(profile_guid)
        except NotFoundError:
            profile = None
        if cache is not None:
            cache[profile_guid] = profile
        return profile

    def build_event_response(
        self,
        record: EventRecord,
        viewer_timezone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Render an event for a viewer.

        Local start/end, created/updated times, audit timestamps and date
        change values are shown in ``viewer_timezone`` (the event's own zone
        when omitted). Stored instants are returned alongside, unchanged.
        Member profiles resolve to guid, name, timezone and is_known.

        Raises:
            InvalidTimezoneError: If viewer_timezone is not a valid IANA zone
        """
        zone = self._viewer_zone(record, viewer_timezone)
        profiles: Dict[str, Optional[ProfileRecord]] = {}

        return {
            "guid": record.guid,
            "title": record.title,
            "description": record.description,
            "profiles": [self.resolve_profile(g, profiles) for g in record.profiles],
            "timezone": record.timezone,
            "start": record.start,
            "end": record.end,
            "viewer_timezone": zone,
            "start_local": self.converter.format_local(record.start, zone),
            "end_local": self.converter.format_local(record.end, zone),
            "created_by": asdict(self.resolve_actor(record.created_by, profiles)),
            "created_at": record.created_at,
            "created_at_local": self.converter.format_local(record.created_at, zone),
            "updated_at": record.updated_at,
            "updated_at_local": self.converter.format_local(record.updated_at, zone),
            "version": record.version,
            "audit_log": [self._render_entry(e, zone, profiles) for e in record.audit_log],
        }

    def build_history_response(
        self,
        record: EventRecord,
        viewer_timezone: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Render only an event's audit entries for a viewer."""
        zone = self._viewer_zone(record, viewer_timezone)
        profiles: Dict[str, Optional[ProfileRecord]] = {}
        return [
            self._render_entry(e, zone, profiles)
            for e in self.engine.audit_log.history(record)
        ]

    def _viewer_zone(self, record: EventRecord, viewer_timezone: Optional[str]) -> str:
        zone = viewer_timezone or record.timezone
        if not self.converter.is_valid_zone(zone):
            raise InvalidTimezoneError(zone, field="viewer_timezone")
        return zone

    def _render_entry(self, entry: AuditEntry, zone: str, profiles: Dict) -> Dict[str, Any]:
        return {
            "updated_by": asdict(self.resolve_actor(entry.updated_by, profiles)),
            "updated_at": entry.updated_at,
            "updated_at_local": self.converter.format_local(entry.updated_at, zone),
            "perceived_timezone": entry.perceived_timezone,
            "changes": [self._render_change(c, zone) for c in entry.changes],
        }

    def _render_change(self, change: Change, zone: str) -> Dict[str, Any]:
        old_value, new_value = change.old_value, change.new_value
        if change.field in DATE_FIELDS:
            old_value = self.converter.format_local(old_value, zone) if old_value else None
            new_value = self.converter.format_local(new_value, zone) if new_value else None
        elif change.field == "profiles":
            old_value = list(old_value or [])
            new_value = list(new_value or [])
        return {"field": change.field, "old_value": old_value, "new_value": new_value}
