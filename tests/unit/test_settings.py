"""Tests for AssistantSettings and the global settings accessors."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from assistant_core.config import AssistantSettings, get_settings, reset_settings, set_settings


def test_defaults(settings):
    assert settings.timezone == "UTC"
    assert settings.week_start_index == 0
    assert settings.data_sample_limit == 10
    assert settings.transient_state_max_entries == 128


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ASSISTANT_TIMEZONE", "Europe/Paris")
    monkeypatch.setenv("ASSISTANT_WEEK_START_DAY", " Sunday ")
    monkeypatch.setenv("ASSISTANT_DATA_SAMPLE_LIMIT", "25")

    settings = AssistantSettings(_env_file=None)

    assert settings.tzinfo == ZoneInfo("Europe/Paris")
    assert settings.week_start_index == 6
    assert settings.data_sample_limit == 25


@pytest.mark.parametrize("field, value", [
    ("timezone", "Mars/Olympus"),
    ("week_start_day", "someday"),
    ("day_start_hour", 24),
    ("data_sample_limit", 0),
])
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        AssistantSettings(_env_file=None, **{field: value})


def test_log_level_normalized():
    assert AssistantSettings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_global_accessors(settings):
    assert get_settings() is settings

    custom = AssistantSettings(_env_file=None, data_page_size=5)
    set_settings(custom)
    assert get_settings().data_page_size == 5

    reset_settings()
    assert get_settings() is not custom


def test_log_status(settings, mock_logger):
    settings.log_status(mock_logger)
    mock_logger.info.assert_called_once()
    assert mock_logger.info.call_args.kwargs["timezone"] == "UTC"
