"""
Unit tests for EventValidator.

Tests cover:
- Each rule in isolation
- Rule ordering (first failure wins)
- Past-end boundary and optional reference instant
"""

from datetime import datetime, timedelta, timezone

import pytest

from backend.src.engine import EventCandidate, EventValidator
from backend.src.services.exceptions import (
    InvalidLocalTimeError,
    InvalidRangeError,
    InvalidTimezoneError,
    MissingProfilesError,
    MissingTitleError,
    PastEndError,
    ValidationError,
)


START = datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc)
END = datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)


def make_candidate(**overrides):
    values = {
        "title": "Planning",
        "profiles": ("prf_alice",),
        "timezone": "America/New_York",
        "start": START,
        "end": END,
    }
    values.update(overrides)
    return EventCandidate(**values)


@pytest.fixture
def validator(converter):
    return EventValidator(converter)


class TestValidatorRules:
    """Tests for individual rules."""

    def test_valid_candidate_passes(self, validator, now):
        validator.validate(make_candidate(), now)

    @pytest.mark.parametrize("title", [None, "", "   \t"])
    def test_missing_title(self, validator, now, title):
        with pytest.raises(MissingTitleError) as exc_info:
            validator.validate(make_candidate(title=title), now)
        assert exc_info.value.field == "title"
        assert exc_info.value.code == "MISSING_TITLE"

    def test_missing_profiles(self, validator, now):
        with pytest.raises(MissingProfilesError):
            validator.validate(make_candidate(profiles=()), now)

    def test_invalid_timezone(self, validator, now):
        with pytest.raises(InvalidTimezoneError) as exc_info:
            validator.validate(make_candidate(timezone="Atlantis/Capital"), now)
        assert exc_info.value.timezone == "Atlantis/Capital"

    def test_missing_start(self, validator, now):
        with pytest.raises(InvalidLocalTimeError) as exc_info:
            validator.validate(make_candidate(start=None), now)
        assert exc_info.value.field == "start"

    def test_end_equal_to_start_is_invalid(self, validator, now):
        with pytest.raises(InvalidRangeError):
            validator.validate(make_candidate(end=START), now)

    def test_end_before_start_is_invalid(self, validator, now):
        with pytest.raises(InvalidRangeError) as exc_info:
            validator.validate(make_candidate(end=START - timedelta(minutes=1)), now)
        assert str(exc_info.value) == "End date/time must be after start date/time"

    def test_past_end(self, validator):
        with pytest.raises(PastEndError):
            validator.validate(make_candidate(), now=END + timedelta(seconds=1))

    def test_end_exactly_now_is_allowed(self, validator):
        validator.validate(make_candidate(), now=END)

    def test_past_end_skipped_without_now(self, validator):
        validator.validate(make_candidate(), now=None)

    def test_all_rules_are_validation_errors(self):
        for error in (MissingTitleError, MissingProfilesError, InvalidRangeError, PastEndError):
            assert issubclass(error, ValidationError)
            assert error.retryable is False


class TestValidatorOrdering:
    """Tests that the first failing rule wins."""

    def test_title_checked_before_everything(self, validator):
        candidate = make_candidate(
            title="", profiles=(), timezone="bad", end=START - timedelta(hours=1)
        )
        with pytest.raises(MissingTitleError):
            validator.validate(candidate, now=END + timedelta(days=1))

    def test_profiles_checked_before_timezone(self, validator, now):
        with pytest.raises(MissingProfilesError):
            validator.validate(make_candidate(profiles=(), timezone="bad"), now)

    def test_timezone_checked_before_range(self, validator, now):
        with pytest.raises(InvalidTimezoneError):
            validator.validate(make_candidate(timezone="bad", end=START), now)

    def test_range_checked_before_past_end(self, validator):
        with pytest.raises(InvalidRangeError):
            validator.validate(make_candidate(end=START), now=END + timedelta(days=1))

    def test_date_error_raised_after_timezone_rule(self, validator, now):
        parse_error = InvalidLocalTimeError("not-a-date", field="start")

        with pytest.raises(MissingTitleError):
            validator.validate(make_candidate(title="", start=None, date_error=parse_error), now)
        with pytest.raises(InvalidTimezoneError):
            validator.validate(make_candidate(timezone="bad", start=None, date_error=parse_error), now)
        with pytest.raises(InvalidLocalTimeError) as exc_info:
            validator.validate(make_candidate(start=None, date_error=parse_error), now)
        assert exc_info.value is parse_error
