"""
EventProfile model for event-profile associations.

Junction table listing the profiles an event belongs to, in the order they
were given.

Design Rationale:
- profile_guid is a weak reference: no foreign key, so a deleted profile
  leaves its events untouched
- position preserves the caller's ordering
- Unique (event_id, profile_guid) keeps the list free of duplicates
"""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base


class EventProfile(Base):
    """
    Event-Profile junction model.

    Note: This is a junction table without its own GUID.

    Attributes:
        id: Primary key
        event_id: FK to events (CASCADE on delete)
        profile_guid: Profile GUID (prf_xxx), not enforced
        position: Zero-based position in the event's profile list
    """

    __tablename__ = "event_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    profile_guid = Column(String(30), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="profile_links")

    __table_args__ = (
        UniqueConstraint("event_id", "profile_guid", name="uq_event_profile"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventProfile("
            f"event_id={self.event_id}, "
            f"profile_guid='{self.profile_guid}', "
            f"position={self.position}"
            f")>"
        )
