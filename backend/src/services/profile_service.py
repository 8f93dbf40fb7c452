"""
Profile service for managing profiles and their timezones.

Design:
- Only the timezone of a profile is mutable after creation
- Changing a timezone never touches stored event instants
- Deleting a profile cascades nothing; events and audit entries keep the
  GUID and render it as the unknown-actor sentinel
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.engine import ProfileRecord, TimeZoneConverter, ZoneInfoConverter
from backend.src.models.mixins.audit import utc_now
from backend.src.services.exceptions import InvalidTimezoneError, ValidationError
from backend.src.services.guid import GuidService
from backend.src.services.scheduling_store import SqlSchedulingStore
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class ProfileService:
    """
    Service for managing profiles.

    Usage:
        >>> service = ProfileService(db_session)
        >>> profile = service.create(name="Ada", timezone="Europe/London")
        >>> service.update_timezone(profile.guid, "America/New_York").timezone
        'America/New_York'
    """

    def __init__(self, db: Session, converter: Optional[TimeZoneConverter] = None):
        """
        Initialize profile service.

        Args:
            db: SQLAlchemy database session
            converter: Timezone converter used to validate zones
        """
        self.db = db
        self.store = SqlSchedulingStore(db)
        self.converter = converter or ZoneInfoConverter()

    def list(self) -> List[ProfileRecord]:
        """List all profiles, newest first."""
        return self.store.list_profiles()

    def get_by_guid(self, guid: str) -> ProfileRecord:
        """
        Get a profile by GUID.

        Raises:
            NotFoundError: If the profile does not exist
        """
        return self.store.load_profile(guid)

    def create(self, name: Optional[str], timezone: Optional[str] = None) -> ProfileRecord:
        """
        Create a new profile.

        Args:
            name: Display name (required, surrounding whitespace is dropped)
            timezone: IANA timezone (defaults to the configured default)

        Raises:
            ValidationError: If name is blank
            InvalidTimezoneError: If timezone is not a valid IANA zone
        """
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            raise ValidationError("Profile name is required", field="name")

        timezone = timezone or get_settings().default_timezone
        self._check_timezone(timezone)

        profile = self.store.save_profile(
            ProfileRecord(
                guid=GuidService.generate_guid("prf"),
                name=name,
                timezone=timezone,
                created_at=utc_now(),
            )
        )
        logger.info(f"Created profile: {profile.name} ({profile.guid})")
        return profile

    def update_timezone(self, guid: str, timezone: Optional[str]) -> ProfileRecord:
        """
        Change a profile's timezone.

        Raises:
            NotFoundError: If the profile does not exist
            InvalidTimezoneError: If timezone is not a valid IANA zone
        """
        current = self.store.load_profile(guid)
        self._check_timezone(timezone)

        if current.timezone == timezone:
            return current

        profile = self.store.save_profile(
            ProfileRecord(
                guid=current.guid,
                name=current.name,
                timezone=timezone,
                created_at=current.created_at,
            )
        )
        logger.info(f"Updated profile timezone: {guid} ({current.timezone} -> {timezone})")
        return profile

    def delete(self, guid: str) -> ProfileRecord:
        """
        Delete a profile. Events referencing it are left untouched.

        Raises:
            NotFoundError: If the profile does not exist
        """
        deleted = self.store.delete_profile(guid)
        logger.info(f"Deleted profile: {deleted.name} ({guid})")
        return deleted

    def _check_timezone(self, timezone: Optional[str]) -> None:
        if not self.converter.is_valid_zone(timezone):
            raise InvalidTimezoneError(timezone)
