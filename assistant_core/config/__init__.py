"""Configuration for the assistant core."""

from assistant_core.config.settings import (
    AssistantSettings,
    get_settings,
    reset_settings,
    set_settings,
)

__all__ = [
    "AssistantSettings",
    "get_settings",
    "reset_settings",
    "set_settings",
]
