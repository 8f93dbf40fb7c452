"""
Application settings configuration for the scheduler backend.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        SCHEDULER_ENV: Environment name (production, development, test)
        SCHEDULER_DEFAULT_TIMEZONE: Zone used when a profile is created without
            one and when an editor does not report their zone (default: "UTC")
        SCHEDULER_CORS_ORIGINS: Comma-separated list of allowed browser origins
    """

    environment: str = Field(
        default="development",
        validation_alias="SCHEDULER_ENV",
    )

    default_timezone: str = Field(
        default="UTC",
        validation_alias="SCHEDULER_DEFAULT_TIMEZONE",
        description="IANA zone applied when a profile or editor omits one",
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="SCHEDULER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        """Reject a default zone that zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"SCHEDULER_DEFAULT_TIMEZONE is not a valid IANA zone: {v}") from e
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get the configured CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
