"""
Conversion between profile-local wall-clock time and absolute UTC instants.

The converter is injected into the engine rather than configured globally,
so tests can substitute a fixed zone table.

DST policy:
- Ambiguous local times (fall-back overlap) resolve to the EARLIER instant.
- Nonexistent local times (spring-forward gap) are normalized FORWARD by the
  length of the gap: 02:30 on a 02:00 -> 03:00 transition becomes 03:30
  local time. Both follow from attaching the zone with ``fold=0``.

Naive datetimes are wall-clock values; aware datetimes already denote an
instant and are only normalized to UTC.
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.src.services.exceptions import InvalidLocalTimeError, InvalidTimezoneError


def parse_local(value: Any, field: Optional[str] = None) -> datetime:
    """
    Parse a local date/time value.

    Accepts datetimes, dates (midnight) and ISO 8601 strings such as
    ``2024-06-01T09:00``. A trailing ``Z`` or explicit offset yields an
    aware datetime.

    Raises:
        InvalidLocalTimeError: If the value is missing or not ISO 8601
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidLocalTimeError(None, field=field)
    if not isinstance(value, str):
        raise InvalidLocalTimeError(value, field=field)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise InvalidLocalTimeError(value, field=field)


def ensure_utc(instant: datetime) -> datetime:
    """Normalize an instant to aware UTC (naive values are taken as UTC)."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class TimeZoneConverter:
    """
    Converts local wall-clock values to instants and back.

    Subclasses supply ``resolve_zone``; every other operation is derived from
    it and has no hidden state.
    """

    def resolve_zone(self, zone_id: Any) -> tzinfo:
        """
        Resolve an IANA identifier to a tzinfo.

        Raises:
            InvalidTimezoneError: If the identifier cannot be resolved
        """
        raise NotImplementedError

    def is_valid_zone(self, zone_id: Any) -> bool:
        try:
            self.resolve_zone(zone_id)
        except InvalidTimezoneError:
            return False
        return True

    def to_instant(self, local: Any, zone_id: str, field: Optional[str] = None) -> datetime:
        """
        Convert a local wall-clock value in ``zone_id`` to an aware UTC instant.

        Args:
            local: Naive datetime, date or ISO 8601 string
            zone_id: IANA timezone identifier
            field: Field name reported in parse errors

        Returns:
            Aware datetime in UTC

        Raises:
            InvalidTimezoneError: If zone_id is not resolvable
            InvalidLocalTimeError: If local cannot be parsed
        """
        zone = self.resolve_zone(zone_id)
        value = parse_local(local, field=field)
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value.replace(tzinfo=zone, fold=0).astimezone(timezone.utc)

    def to_local(self, instant: datetime, zone_id: str) -> datetime:
        """
        Convert an instant to the naive wall-clock value observed in ``zone_id``.

        Raises:
            InvalidTimezoneError: If zone_id is not resolvable
        """
        zone = self.resolve_zone(zone_id)
        return ensure_utc(instant).astimezone(zone).replace(tzinfo=None, fold=0)

    def format_local(self, instant: datetime, zone_id: str) -> str:
        """Render an instant as a local ISO string (minutes precision when exact)."""
        local = self.to_local(instant, zone_id)
        if local.second == 0 and local.microsecond == 0:
            return local.isoformat(timespec="minutes")
        return local.isoformat(timespec="seconds")


class ZoneInfoConverter(TimeZoneConverter):
    """Converter backed by the IANA database through ``zoneinfo``."""

    def resolve_zone(self, zone_id: Any) -> tzinfo:
        if not isinstance(zone_id, str) or not zone_id.strip():
            raise InvalidTimezoneError(zone_id)
        try:
            return ZoneInfo(zone_id)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise InvalidTimezoneError(zone_id)


class StaticZoneConverter(TimeZoneConverter):
    """
    Converter over an explicit zone table.

    Used in tests to pin zone rules, e.g.
    ``StaticZoneConverter({"Test/Plus2": timezone(timedelta(hours=2))})``.
    """

    def __init__(self, zones: Mapping[str, tzinfo]):
        self._zones = dict(zones)

    def resolve_zone(self, zone_id: Any) -> tzinfo:
        try:
            return self._zones[zone_id]
        except (KeyError, TypeError):
            raise InvalidTimezoneError(zone_id)


def get_converter() -> TimeZoneConverter:
    """Create the default ZoneInfo converter (FastAPI dependency, overridable in tests)."""
    return ZoneInfoConverter()
