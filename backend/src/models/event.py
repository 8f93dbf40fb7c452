"""
Event model for scheduled events.

Events are stored as absolute UTC instants plus the IANA timezone they were
authored in. Every accepted update that changes at least one field appends
an immutable EventAuditEntry.

Design Rationale:
- start_at/end_at are UTCDateTime, so round-tripping through the database
  never shifts an instant
- CHECK (end_at > start_at) backs up the engine's range validation
- Profile membership is an ordered list of weak GUID references
  (EventProfile), so deleting a profile leaves events and history intact
- version is SQLAlchemy's version_id_col: concurrent updates of the same
  row fail with StaleDataError instead of silently overwriting each other
"""

from typing import List

from sqlalchemy import CheckConstraint, Column, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import AuditMixin, GuidMixin
from backend.src.models.types import UTCDateTime


class Event(Base, GuidMixin, AuditMixin):
    """
    Scheduled event model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)
        title: Event title
        description: Optional free text
        timezone: IANA zone the event was authored in
        start_at: Start instant (UTC)
        end_at: End instant (UTC), strictly after start_at
        version: Optimistic concurrency counter (1 after insert)
        created_by_guid/created_at/updated_at: From AuditMixin

    Relationships:
        profile_links: Ordered profile references (one-to-many, CASCADE)
        audit_entries: Append-only history (one-to-many, CASCADE)

    Indexes:
        - uuid (unique, for GUID lookups)
        - start_at (for chronological listing)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    timezone = Column(String(64), nullable=False)

    start_at = Column(UTCDateTime(), nullable=False)
    end_at = Column(UTCDateTime(), nullable=False)

    version = Column(Integer, nullable=False)

    profile_links = relationship(
        "EventProfile",
        back_populates="event",
        order_by="EventProfile.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    audit_entries = relationship(
        "EventAuditEntry",
        back_populates="event",
        order_by="EventAuditEntry.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_events_end_after_start"),
        Index("idx_events_start_at", "start_at"),
    )

    @property
    def profile_guids(self) -> List[str]:
        """Profile GUIDs in stored order."""
        return [link.profile_guid for link in self.profile_links]

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"title='{self.title}', "
            f"start_at={self.start_at}, "
            f"version={self.version}"
            f")>"
        )
