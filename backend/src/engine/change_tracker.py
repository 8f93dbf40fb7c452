"""
Field-level diff between a stored event and a proposed partial update.

Only fields present in the proposal are compared. Date fields are converted
to absolute instants before comparison, using the effective timezone: the
proposed timezone when the proposal carries one, otherwise the event's
stored timezone. A date field absent from the proposal keeps its stored
instant even when the timezone changes.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from backend.src.engine.converter import TimeZoneConverter, ZoneInfoConverter, ensure_utc
from backend.src.engine.records import (
    DATE_FIELDS,
    TRACKED_FIELDS,
    UNSET,
    Change,
    EventPatch,
    EventRecord,
    normalize_profiles,
)
from backend.src.services.exceptions import (
    InvalidLocalTimeError,
    InvalidTimezoneError,
    ValidationError,
)


class ChangeTracker:
    """
    Computes structured change records for an update proposal.

    Usage:
        >>> tracker = ChangeTracker(ZoneInfoConverter())
        >>> tracker.diff(event, EventPatch(title="B"))
        [Change(field='title', old_value='A', new_value='B')]
    """

    def __init__(self, converter: Optional[TimeZoneConverter] = None):
        self.converter = converter or ZoneInfoConverter()

    @staticmethod
    def effective_timezone(existing: EventRecord, proposed: Mapping[str, Any]) -> str:
        """Zone used to interpret proposed local date strings."""
        zone = proposed.get("timezone", UNSET)
        if zone is UNSET or zone is None:
            return existing.timezone
        return zone

    def resolve(
        self,
        existing: EventRecord,
        proposed: Union[EventPatch, Mapping[str, Any]],
        errors: Optional[List[ValidationError]] = None,
    ) -> Dict[str, Any]:
        """
        Convert a proposal into stored representations.

        Local date values become UTC instants in the effective timezone and
        the profile list is de-duplicated. Fields not in the proposal are
        dropped.

        When ``errors`` is given, a date that cannot be converted is left out
        of the result and its error is appended to the list instead of raised.

        Raises:
            InvalidTimezoneError: If a date is proposed and the effective zone is invalid
            InvalidLocalTimeError: If a proposed date cannot be parsed
        """
        values = proposed.present() if isinstance(proposed, EventPatch) else {
            k: v for k, v in proposed.items() if v is not UNSET
        }
        unknown = set(values) - set(TRACKED_FIELDS)
        if unknown:
            raise ValueError(f"Unknown event fields: {', '.join(sorted(unknown))}")

        zone = self.effective_timezone(existing, values)
        resolved = {}
        for name in TRACKED_FIELDS:
            if name not in values:
                continue
            value = values[name]
            if name in DATE_FIELDS:
                try:
                    value = self.converter.to_instant(value, zone, field=name)
                except (InvalidLocalTimeError, InvalidTimezoneError) as e:
                    if errors is None:
                        raise
                    errors.append(e)
                    continue
            elif name == "profiles":
                value = normalize_profiles(value)
            resolved[name] = value
        return resolved

    def diff(
        self,
        existing: EventRecord,
        proposed: Union[EventPatch, Mapping[str, Any]],
    ) -> List[Change]:
        """
        Return the changes a proposal would apply, in field order.

        An empty list means the proposal changes nothing and no audit entry
        is needed.
        """
        resolved = self.resolve(existing, proposed)
        changes = []
        for name, new_value in resolved.items():
            old_value = existing.field_value(name)
            if not self.values_equal(name, old_value, new_value):
                changes.append(Change(field=name, old_value=old_value, new_value=new_value))
        return changes

    @staticmethod
    def values_equal(name: str, old_value: Any, new_value: Any) -> bool:
        """Compare two values of a tracked field with field-appropriate equality."""
        if name in DATE_FIELDS:
            if old_value is None or new_value is None:
                return old_value is new_value
            return ensure_utc(old_value) == ensure_utc(new_value)
        if name == "profiles":
            # Order-independent, content-sensitive
            return set(old_value or ()) == set(new_value or ())
        return old_value == new_value
