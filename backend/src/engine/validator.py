"""
Temporal and referential validation of a candidate event state.

Rules run in a fixed order and the first failure wins:

1. title non-empty            -> MissingTitleError
2. at least one profile       -> MissingProfilesError
3. resolvable IANA timezone   -> InvalidTimezoneError
   (start/end that failed to parse -> InvalidLocalTimeError)
4. end strictly after start   -> InvalidRangeError
5. end not before ``now``     -> PastEndError

Validation is stateless and always covers the full candidate, never just the
fields an update touched.
"""

from datetime import datetime
from typing import Optional

from backend.src.engine.converter import TimeZoneConverter, ZoneInfoConverter, ensure_utc
from backend.src.engine.records import EventCandidate
from backend.src.services.exceptions import (
    InvalidLocalTimeError,
    InvalidRangeError,
    InvalidTimezoneError,
    MissingProfilesError,
    MissingTitleError,
    PastEndError,
)


class EventValidator:
    """
    Validates candidate event states.

    Usage:
        >>> validator = EventValidator(ZoneInfoConverter())
        >>> validator.validate(candidate, now=datetime.now(timezone.utc))
    """

    def __init__(self, converter: Optional[TimeZoneConverter] = None):
        self.converter = converter or ZoneInfoConverter()

    def validate(self, candidate: EventCandidate, now: Optional[datetime] = None) -> None:
        """
        Run every rule against the candidate.

        Args:
            candidate: Full event state (instants already converted)
            now: Reference instant for the past-end rule; skipped when None

        Raises:
            ValidationError subclass for the first rule that fails
        """
        if not candidate.title or not candidate.title.strip():
            raise MissingTitleError()

        if not candidate.profiles:
            raise MissingProfilesError()

        if not self.converter.is_valid_zone(candidate.timezone):
            raise InvalidTimezoneError(candidate.timezone)

        if candidate.date_error is not None:
            raise candidate.date_error
        if candidate.start is None:
            raise InvalidLocalTimeError(None, field="start")
        if candidate.end is None:
            raise InvalidLocalTimeError(None, field="end")

        start = ensure_utc(candidate.start)
        end = ensure_utc(candidate.end)
        if end <= start:
            raise InvalidRangeError()

        if now is not None and end < ensure_utc(now):
            raise PastEndError()
