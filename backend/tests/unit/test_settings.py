"""
Unit tests for application settings.

Tests cover:
- Defaults
- Environment variable overrides
- Default timezone validation
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from backend.src.config.settings import AppSettings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SCHEDULER_DEFAULT_TIMEZONE", raising=False)
        monkeypatch.delenv("SCHEDULER_CORS_ORIGINS", raising=False)
        settings = AppSettings(_env_file=None)

        assert settings.default_timezone == "UTC"
        assert settings.cors_origins_list == ["http://localhost:3000", "http://127.0.0.1:3000"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SCHEDULER_ENV", "production")
        monkeypatch.setenv("SCHEDULER_DEFAULT_TIMEZONE", "Europe/Paris")
        monkeypatch.setenv("SCHEDULER_CORS_ORIGINS", "https://a.example, ,https://b.example")
        settings = AppSettings(_env_file=None)

        assert settings.is_production is True
        assert settings.default_timezone == "Europe/Paris"
        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_invalid_default_timezone(self, monkeypatch):
        monkeypatch.setenv("SCHEDULER_DEFAULT_TIMEZONE", "Mars/Olympus")
        with pytest.raises(PydanticValidationError):
            AppSettings(_env_file=None)
