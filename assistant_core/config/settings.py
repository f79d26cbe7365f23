"""Runtime settings for the assistant core.

Values come from environment variables (``ASSISTANT_TIMEZONE=Europe/Paris``)
or a ``.env`` file. Components take an explicit ``settings`` argument and
only fall back to ``get_settings()`` when none is injected.
"""

from typing import TYPE_CHECKING, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from assistant_core.protocols import LoggerProtocol


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class AssistantSettings(BaseSettings):
    """Settings shared by the resolution engine, executor and services."""

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = True

    # =========================================================================
    # TIME
    # =========================================================================
    timezone: str = "UTC"
    """IANA zone used for period arithmetic and for rendering time windows."""

    day_start_hour: int = Field(default=0, ge=0, le=23)
    """Hour at which a DAY period starts."""

    week_start_day: str = "monday"

    # =========================================================================
    # QUERIES
    # =========================================================================
    data_sample_limit: int = Field(default=10, ge=1, le=1000)
    data_page_size: int = Field(default=100, ge=1, le=10000)
    prompt_json_indent: int = Field(default=2, ge=0, le=8)

    # =========================================================================
    # MULTI-PHASE SERVICES
    # =========================================================================
    transient_state_max_entries: int = Field(default=128, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="ASSISTANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("week_start_day")
    @classmethod
    def validate_week_start_day(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in WEEKDAYS:
            raise ValueError(f"week_start_day must be one of {', '.join(WEEKDAYS)}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def validate_timezone(self) -> "AssistantSettings":
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def week_start_index(self) -> int:
        """Weekday index of the first day of a week (Monday is 0)."""
        return WEEKDAYS.index(self.week_start_day)

    def log_status(self, logger: "LoggerProtocol") -> None:
        logger.info(
            "assistant_settings_status",
            timezone=self.timezone,
            day_start_hour=self.day_start_hour,
            week_start_day=self.week_start_day,
            data_sample_limit=self.data_sample_limit,
            transient_state_max_entries=self.transient_state_max_entries,
        )


# Lazy initialization - no module-level instantiation
_settings: Optional[AssistantSettings] = None


def get_settings() -> AssistantSettings:
    """Get the global settings instance, creating it on first use."""
    global _settings
    if _settings is None:
        _settings = AssistantSettings()
    return _settings


def set_settings(settings: AssistantSettings) -> None:
    """Set the global settings instance at bootstrap time."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget the global settings; the next ``get_settings()`` rebuilds them."""
    global _settings
    _settings = None


__all__ = [
    "AssistantSettings",
    "WEEKDAYS",
    "get_settings",
    "set_settings",
    "reset_settings",
]
