"""
Configuration module for the scheduler backend.

Provides centralized, environment-driven settings.
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
