"""
Profile model.

A profile is a named person or calendar owner with a preferred IANA
timezone. Events and audit entries reference profiles by GUID only, so
deleting a profile never cascades into scheduling history.
"""

from sqlalchemy import Column, Integer, String

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.mixins.audit import utc_now
from backend.src.models.types import UTCDateTime


class Profile(Base, GuidMixin):
    """
    Profile model.

    Attributes:
        id: Primary key (internal only)
        uuid: UUIDv7 backing the public GUID (prf_xxx)
        name: Display name
        timezone: Preferred IANA timezone identifier
        created_at: Creation instant
    """

    __tablename__ = "profiles"

    GUID_PREFIX = "prf"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")

    created_at = Column(UTCDateTime(), default=utc_now, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name='{self.name}', timezone='{self.timezone}')>"
