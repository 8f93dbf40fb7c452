"""
Event engine: create and update events with validation and audit tracking.

Orchestrates the converter, validator, change tracker and audit log. Every
operation is synchronous and pure over its inputs; ``now`` is always passed
in by the caller so timestamps are deterministic.

Lifecycle of one event:
    Created -> Updated* -> Deleted

Each update is validated against the full resulting state before anything
is applied. A rejected update leaves the original record untouched and
writes no audit entry.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from backend.src.engine.audit_log import AuditLog
from backend.src.engine.change_tracker import ChangeTracker
from backend.src.engine.converter import TimeZoneConverter, ZoneInfoConverter, ensure_utc
from backend.src.engine.records import (
    TRACKED_FIELDS,
    EventCandidate,
    EventPatch,
    EventRecord,
    normalize_profiles,
)
from backend.src.engine.store import SchedulingStore
from backend.src.engine.validator import EventValidator
from backend.src.services.exceptions import InvalidLocalTimeError, InvalidTimezoneError
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger


logger = get_logger("engine")

DEFAULT_ACTOR_TIMEZONE = "UTC"


def _new_event_guid() -> str:
    return GuidService.generate_guid("evt")


class EventEngine:
    """
    Stable create/update/delete contract for events.

    Usage:
        >>> engine = EventEngine(store=InMemorySchedulingStore())
        >>> event = engine.create(
        ...     title="Standup",
        ...     description=None,
        ...     profiles=["prf_..."],
        ...     timezone="America/New_York",
        ...     start_local="2024-06-01T09:00",
        ...     end_local="2024-06-01T10:00",
        ...     created_by="prf_...",
        ...     now=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ... )
        >>> event.start.isoformat()
        '2024-06-01T13:00:00+00:00'
    """

    def __init__(
        self,
        converter: Optional[TimeZoneConverter] = None,
        store: Optional[SchedulingStore] = None,
        validator: Optional[EventValidator] = None,
        tracker: Optional[ChangeTracker] = None,
        audit_log: Optional[AuditLog] = None,
        id_factory: Callable[[], str] = _new_event_guid,
    ):
        self.converter = converter or ZoneInfoConverter()
        self.store = store
        self.validator = validator or EventValidator(self.converter)
        self.tracker = tracker or ChangeTracker(self.converter)
        self.audit_log = audit_log or AuditLog()
        self.id_factory = id_factory

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        title: Optional[str],
        description: Optional[str],
        profiles: Optional[Iterable[str]],
        timezone: Optional[str],
        start_local: Any,
        end_local: Any,
        created_by: Optional[str],
        now: datetime,
    ) -> EventRecord:
        """
        Build a new, validated event with an empty audit history.

        Args:
            title: Event title
            description: Optional description
            profiles: Profile GUIDs the event belongs to
            timezone: IANA zone the local start/end are expressed in
            start_local: Local wall-clock start (string or datetime)
            end_local: Local wall-clock end (string or datetime)
            created_by: Profile GUID of the creator
            now: Reference instant; becomes created_at and updated_at

        Returns:
            EventRecord at version 0 (not yet persisted)

        Raises:
            ValidationError subclass describing the first violated rule
        """
        profiles = normalize_profiles(profiles)
        title = title.strip() if isinstance(title, str) else title

        start = end = date_error = None
        if self.converter.is_valid_zone(timezone):
            try:
                start = self.converter.to_instant(start_local, timezone, field="start")
                end = self.converter.to_instant(end_local, timezone, field="end")
            except InvalidLocalTimeError as e:
                date_error = e

        candidate = EventCandidate(
            title=title,
            profiles=profiles,
            timezone=timezone,
            start=start,
            end=end,
            description=description,
            date_error=date_error,
        )
        self._validate(candidate, now, "create")

        now = ensure_utc(now)
        return EventRecord(
            guid=self.id_factory(),
            title=title,
            description=description,
            profiles=profiles,
            timezone=timezone,
            start=start,
            end=end,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        existing: EventRecord,
        proposed: Union[EventPatch, Mapping[str, Any]],
        actor: Optional[str],
        actor_timezone: Optional[str],
        now: datetime,
    ) -> EventRecord:
        """
        Apply a partial update to an event.

        Local dates in the proposal are interpreted in the proposed timezone
        when one is given, otherwise in the event's stored timezone. The
        resulting full state is validated before anything is applied.

        Args:
            existing: Consistent snapshot of the stored event
            proposed: Partial update (EventPatch or field mapping)
            actor: Profile GUID of the editor
            actor_timezone: Editor's timezone, recorded for display
            now: Reference instant for validation and the audit timestamp

        Returns:
            ``existing`` unchanged when nothing differs, otherwise a new record
            with the changes applied, one audit entry appended and
            ``updated_at`` advanced to ``now``.

        Raises:
            ValidationError subclass; ``existing`` is never modified
        """
        if isinstance(proposed, Mapping):
            proposed = EventPatch.from_mapping(dict(proposed))

        date_errors = []
        resolved = self.tracker.resolve(existing, proposed, errors=date_errors)
        if isinstance(resolved.get("title"), str):
            resolved["title"] = resolved["title"].strip()

        working = {name: existing.field_value(name) for name in TRACKED_FIELDS}
        working.update(resolved)
        candidate = EventCandidate(**working, date_error=date_errors[0] if date_errors else None)
        self._validate(candidate, now, "update")
        changes = self.tracker.diff(existing, resolved)

        perceived = actor_timezone or DEFAULT_ACTOR_TIMEZONE
        if not self.converter.is_valid_zone(perceived):
            raise InvalidTimezoneError(perceived, field="actor_timezone")

        if not changes:
            logger.debug(f"No changes detected for event {existing.guid}")
            return existing

        updated = replace(existing, **{c.field: c.new_value for c in changes})
        entry = self.audit_log.build_entry(
            changes,
            updated_by=actor,
            updated_at=ensure_utc(now),
            perceived_timezone=perceived,
        )
        return self.audit_log.append(updated, entry)

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, event_id: str) -> EventRecord:
        """
        Remove an event through the persistence collaborator.

        Raises:
            NotFoundError: If the event does not exist (or was already deleted)
        """
        if self.store is None:
            raise RuntimeError("EventEngine.delete requires a store")
        self.store.load_event(event_id)
        return self.store.delete_event(event_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, candidate: EventCandidate, now: datetime, operation: str) -> None:
        try:
            self.validator.validate(candidate, now)
        except Exception as e:
            logger.debug(f"Rejected event {operation}: {type(e).__name__}: {e}")
            raise
