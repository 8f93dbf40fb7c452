"""
GUID service for profile and event identifiers.

Profiles and events are addressed by prefixed GUIDs everywhere outside the
database. Events also store profile GUIDs as weak references, so the same
string has to decode back to the row's UUID long after it was minted.

GUID Format: {prefix}_{base32_uuid}
- prefix: prf (Profile) or evt (Event)
- base32_uuid: UUIDv7 as 26 lowercase Crockford Base32 characters
"""

import re
import uuid
from typing import Optional, Tuple, Union

import base32_crockford
from uuid_extensions import uuid7


ENTITY_PREFIXES = {
    "prf": "Profile",
    "evt": "Event",
}

# Crockford Base32 excludes I, L, O and U
GUID_PATTERN = re.compile(
    r"^(prf|evt)_[0-9A-HJKMNP-TV-Za-hjkmnp-tv-z]{26}$",
    re.IGNORECASE
)

GUID_LENGTH = 26


class GuidService:
    """
    Static helpers for minting and reading GUIDs.

    Usage:
        >>> guid = GuidService.generate_guid("evt")
        >>> prefix, value = GuidService.decode_guid(guid)
        >>> GuidService.encode_uuid(value, prefix) == guid
        True
    """

    @staticmethod
    def generate_uuid() -> uuid.UUID:
        """New time-ordered UUIDv7."""
        return uuid7()

    @staticmethod
    def encode_uuid(uuid_value: Union[uuid.UUID, bytes], prefix: str) -> str:
        """
        Render a UUID (or its 16 raw bytes) as a prefixed GUID.

        Raises:
            ValueError: If prefix is not prf or evt
        """
        if prefix not in ENTITY_PREFIXES:
            raise ValueError(
                f"Invalid prefix '{prefix}'. "
                f"Valid prefixes: {', '.join(ENTITY_PREFIXES)}"
            )

        raw = uuid_value if isinstance(uuid_value, bytes) else uuid_value.bytes
        encoded = base32_crockford.encode(int.from_bytes(raw, "big"))
        return f"{prefix}_{encoded.zfill(GUID_LENGTH).lower()}"

    @staticmethod
    def generate_guid(prefix: str) -> str:
        """Mint a GUID for a new entity of type ``prefix``."""
        return GuidService.encode_uuid(GuidService.generate_uuid(), prefix)

    @staticmethod
    def decode_guid(guid: str) -> Tuple[str, uuid.UUID]:
        """
        Split a GUID into its prefix and UUID.

        Raises:
            ValueError: If the string is empty or not a well-formed GUID
        """
        if not guid:
            raise ValueError("GUID cannot be empty")
        if not GUID_PATTERN.match(guid):
            raise ValueError(f"Invalid GUID format: {guid}")

        prefix, encoded = guid[:3].lower(), guid[4:]
        try:
            value = base32_crockford.decode(encoded.upper())
            return prefix, uuid.UUID(bytes=value.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

    @staticmethod
    def validate_guid(guid: object, expected_prefix: Optional[str] = None) -> bool:
        """True if ``guid`` is well formed (and of ``expected_prefix``, when given)."""
        if not isinstance(guid, str) or not GUID_PATTERN.match(guid):
            return False
        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()
        return True

    @staticmethod
    def parse_guid(guid: str, expected_prefix: str) -> uuid.UUID:
        """
        Decode a GUID that must belong to ``expected_prefix``.

        Raises:
            ValueError: If the format is invalid or the prefix doesn't match
        """
        prefix, value = GuidService.decode_guid(guid)
        if prefix != expected_prefix.lower():
            raise ValueError(
                f"GUID prefix mismatch. "
                f"Expected '{expected_prefix}', got '{prefix}'"
            )
        return value
