# backend/parkshare/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the booking engine."""

    model_config = SettingsConfigDict(
        env_prefix="PARKSHARE_",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    # Database
    database_url: str = Field(
        default="sqlite:///./parkshare.db",
        description="SQLAlchemy URL for the bookings database",
    )
    db_echo: bool = False

    # Booking rules
    min_booking_hours: float = Field(default=0.5, gt=0)
    max_booking_hours: float = Field(default=168.0, gt=0)
    cancellation_window_minutes: int = Field(
        default=60, ge=0, description="Renters cannot cancel closer than this to the start"
    )
    schedule_timezone: str = Field(
        default="UTC", description="Timezone used to interpret spot operating hours"
    )
    max_special_instructions_length: int = 500

    # Pagination
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Collaborators
    listing_service_url: str = Field(
        default="http://localhost:8100",
        description="Base URL of the spot/vehicle listing service",
    )
    collaborator_timeout_seconds: float = Field(default=5.0, gt=0)

    metrics_enabled: bool = True

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("listing_service_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if self.min_booking_hours > self.max_booking_hours:
            raise ValueError("min_booking_hours must not exceed max_booking_hours")
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self


settings = Settings()
