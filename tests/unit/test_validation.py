"""Tests for CommandValidator."""

import pytest

from assistant_core.commands.validation import CommandValidator
from assistant_core.protocols import ExecutableCommand


@pytest.fixture
def validator():
    return CommandValidator()


def test_valid_command(validator):
    assert validator.validate(ExecutableCommand("schemas", "get", {"id": "zone_config"})) == []


def test_missing_required(validator):
    errors = validator.validate(ExecutableCommand("tools", "get", {}))
    assert errors == ["Missing required parameter: tool_instance_id"]


def test_blank_string_is_missing(validator):
    errors = validator.validate(ExecutableCommand("zones", "create", {"name": "   "}))
    assert errors == ["Missing required parameter: name"]


def test_batch_requires_non_empty_list(validator):
    errors = validator.validate(
        ExecutableCommand("tool_data", "batch_create", {"toolInstanceId": "T1", "entries": []})
    )
    assert errors == ["Parameter entries must be a non-empty list"]


def test_inverted_time_window(validator):
    errors = validator.validate(
        ExecutableCommand("tool_data", "get", {"toolInstanceId": "T1", "startTime": 20, "endTime": 10})
    )
    assert errors == ["startTime (20) is after endTime (10)"]


def test_malformed_action(validator):
    assert validator.validate(ExecutableCommand("", "get")) != []


def test_unknown_routes_pass(validator):
    assert validator.validate(ExecutableCommand("notes", "archive", {})) == []


def test_custom_requirements(validator):
    custom = CommandValidator({("notes", "archive"): ["note_id"]})
    assert custom.validate(ExecutableCommand("notes", "archive", {})) == ["Missing required parameter: note_id"]
