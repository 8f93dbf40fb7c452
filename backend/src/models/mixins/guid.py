"""
GUID mixin for SQLAlchemy models.

Profiles and events are addressed by GUIDs everywhere outside the database:
URLs, API payloads, and the weak profile references kept on events and audit
entries. The integer primary key never leaves the persistence layer.

GUID Format: {prefix}_{base32_uuid}
Examples:
    - prf_01hgw2bbg0000000000000000 (Profile)
    - evt_01hgw2bbg0000000000000001 (Event)
"""

import uuid as uuid_module
from typing import ClassVar, Optional

from sqlalchemy import Column, TypeDecorator, LargeBinary
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from backend.src.services.guid import GuidService


class UUIDType(TypeDecorator):
    """
    Platform-independent UUID type.

    Native UUID on PostgreSQL, 16-byte LargeBinary on SQLite.
    Always presents as a Python UUID object.
    """

    impl = LargeBinary
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(LargeBinary(16))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid_module.UUID):
            value = uuid_module.UUID(bytes=value) if isinstance(value, bytes) else uuid_module.UUID(str(value))
        return value if dialect.name == 'postgresql' else value.bytes

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid_module.UUID):
            return value
        if isinstance(value, bytes):
            return uuid_module.UUID(bytes=value)
        return uuid_module.UUID(str(value))


class GuidMixin:
    """
    Mixin providing GUID support for entities.

    Adds:
    - uuid: UUIDv7 column, generated on insert unless assigned explicitly
    - guid: Property returning the prefixed Base32 string
    - parse_guid: Class method decoding a GUID back to its UUID

    Usage:
        class Profile(Base, GuidMixin):
            GUID_PREFIX = "prf"

    The engine mints event GUIDs before anything is persisted, so stores
    assign ``uuid`` from ``parse_guid(record.guid)`` on insert.
    """

    GUID_PREFIX: ClassVar[str]

    uuid = Column(
        UUIDType(),
        nullable=False,
        unique=True,
        index=True,
        default=GuidService.generate_uuid,
    )

    @property
    def guid(self) -> Optional[str]:
        """GUID in format {prefix}_{base32_uuid}, or None before flush."""
        if self.uuid is None:
            return None
        return GuidService.encode_uuid(self.uuid, self.GUID_PREFIX)

    @classmethod
    def parse_guid(cls, guid: str) -> uuid_module.UUID:
        """
        Parse a GUID string to a UUID object.

        Raises:
            ValueError: If the format is invalid or the prefix doesn't match
        """
        return GuidService.parse_guid(guid, cls.GUID_PREFIX)
