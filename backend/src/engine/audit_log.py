"""
Append-only audit history attached to an event.

Design invariants
-----------------
1.  ``append()`` only extends the history when the entry carries at least
    one change; an empty entry is a no-op and ``updated_at`` stays put.
2.  Insertion order is chronological order. Entries are never re-sorted or
    de-duplicated.
3.  History is immutable. Appending returns a new EventRecord whose
    ``audit_log`` tuple is the old tuple plus the new entry.
"""

from dataclasses import replace
from typing import Iterable, Optional, Tuple

from backend.src.engine.records import AuditEntry, Change, EventRecord
from backend.src.utils.logging_config import get_logger


logger = get_logger("engine")


class AuditLog:
    """Builds and appends audit entries for event records."""

    @staticmethod
    def build_entry(
        changes: Iterable[Change],
        updated_by: Optional[str],
        updated_at,
        perceived_timezone: str,
    ) -> AuditEntry:
        """Bundle a diff with its actor, timestamp and perceived timezone."""
        return AuditEntry(
            updated_by=updated_by,
            updated_at=updated_at,
            perceived_timezone=perceived_timezone,
            changes=tuple(changes),
        )

    def append(self, event: EventRecord, entry: AuditEntry) -> EventRecord:
        """
        Append an entry to an event's history.

        Args:
            event: Current event record
            entry: Entry to append

        Returns:
            A new record with the entry appended and ``updated_at`` advanced to
            ``entry.updated_at``, or ``event`` itself when the entry is empty.
        """
        if not entry.changes:
            logger.debug(f"Skipped empty audit entry for event {event.guid}")
            return event

        return replace(
            event,
            audit_log=event.audit_log + (entry,),
            updated_at=entry.updated_at,
        )

    @staticmethod
    def history(event: EventRecord) -> Tuple[AuditEntry, ...]:
        """Return the event's entries in append order."""
        return event.audit_log
