"""
Utility modules for the scheduler backend.

This package contains shared utilities used across the application:
- logging_config: Named structured loggers
- formatting: Instant/ISO 8601 rendering helpers
"""

from backend.src.utils.logging_config import get_logger, init_logging
from backend.src.utils.formatting import format_instant

__all__ = [
    "get_logger",
    "init_logging",
    "format_instant",
]
