"""
Custom SQLAlchemy types for cross-database compatibility.

Provides types that work across PostgreSQL and SQLite for testing.
"""

from datetime import timezone

from sqlalchemy import DateTime, JSON, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB


class JSONBType(TypeDecorator):
    """
    Platform-independent JSONB type.

    Uses PostgreSQL's native JSONB type when available,
    otherwise falls back to JSON for SQLite.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware instant stored as naive UTC.

    Values are normalized to UTC and stripped of tzinfo on the way in, and
    re-tagged as UTC on the way out, so Python code always sees aware
    instants while both PostgreSQL and SQLite store plain timestamps.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
