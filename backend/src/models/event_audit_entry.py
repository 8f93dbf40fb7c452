"""
EventAuditEntry model for the per-event change history.

One row per accepted update that changed at least one field. Rows are
written once and never modified; a before_update listener rejects any
attempt to flush a change to an existing row.

changes holds a JSON list of {"field", "old_value", "new_value"} objects.
Instant values for start/end are stored as ISO 8601 UTC strings.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint, event
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.types import JSONBType, UTCDateTime


class EventAuditEntry(Base):
    """
    Immutable audit entry attached to an event.

    Attributes:
        id: Primary key
        event_id: FK to events (CASCADE on delete)
        sequence: Zero-based append position within the event's history
        updated_by_guid: Profile GUID of the editor (weak reference)
        updated_at: Instant the update was applied
        perceived_timezone: Editor's timezone at the time of the edit
        changes: JSON list of field changes, in diff order
    """

    __tablename__ = "event_audit_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sequence = Column(Integer, nullable=False)

    updated_by_guid = Column(String(30), nullable=True, index=True)
    updated_at = Column(UTCDateTime(), nullable=False)
    perceived_timezone = Column(String(64), nullable=False, default="UTC")

    changes = Column(JSONBType, nullable=False)

    event = relationship("Event", back_populates="audit_entries")

    __table_args__ = (
        UniqueConstraint("event_id", "sequence", name="uq_event_audit_sequence"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventAuditEntry("
            f"event_id={self.event_id}, "
            f"sequence={self.sequence}, "
            f"updated_by='{self.updated_by_guid}'"
            f")>"
        )


@event.listens_for(EventAuditEntry, "before_update")
def _reject_audit_entry_update(mapper, connection, target):
    raise ValueError(
        f"Audit entries are append-only (event_id={target.event_id}, "
        f"sequence={target.sequence})"
    )
