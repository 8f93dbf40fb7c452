"""
Audit mixin for SQLAlchemy models.

Provides creation/modification timestamps and creator attribution.

Design:
- created_by_guid: Profile GUID, set once on creation, never modified afterward.
- The reference is weak (no foreign key). Deleting a profile leaves the GUID
  in place; readers resolve it to the unknown-actor sentinel.
- created_at/updated_at are aware UTC instants (UTCDateTime).
- updated_at only advances when an update actually changed something, so it
  is set explicitly by the service layer rather than via onupdate.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String

from backend.src.models.types import UTCDateTime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class AuditMixin:
    """
    Mixin providing attribution and timestamp columns.

    Adds:
    - created_by_guid: Profile GUID of the creator (weak reference)
    - created_at: Creation instant
    - updated_at: Instant of the last applied change

    Usage:
        class MyEntity(Base, GuidMixin, AuditMixin):
            __tablename__ = "my_entities"
    """

    created_by_guid = Column(String(30), nullable=True, index=True)

    created_at = Column(UTCDateTime(), default=utc_now, nullable=False)

    updated_at = Column(UTCDateTime(), default=utc_now, nullable=False)
