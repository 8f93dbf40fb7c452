"""
Formatting utilities for API output.

Provides functions for formatting:
- Absolute instants as ISO 8601 strings with an explicit "Z" suffix
"""

from datetime import datetime, timezone
from typing import Optional


def format_instant(value: Optional[datetime]) -> Optional[str]:
    """
    Render an instant as ISO 8601 UTC with a "Z" suffix.

    Naive datetimes are treated as already being in UTC, matching how
    instants are stored in the database.

    Examples:
        >>> format_instant(datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc))
        '2024-06-01T13:00:00Z'
        >>> format_instant(datetime(2024, 6, 1, 13, 0))
        '2024-06-01T13:00:00Z'
        >>> format_instant(None) is None
        True
    """
    if value is None:
        return None

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)

    return value.isoformat().replace("+00:00", "Z")
