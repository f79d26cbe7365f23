"""Parameter validation run before a command reaches the dispatcher."""

from typing import Dict, List, Tuple

from assistant_core.protocols import ExecutableCommand

REQUIRED_PARAMS: Dict[Tuple[str, str], List[str]] = {
    # Queries
    ("schemas", "get"): ["id"],
    ("tools", "get"): ["tool_instance_id"],
    ("tools", "list"): ["zone_id"],
    ("zones", "get"): ["zone_id"],
    ("tool_data", "get"): ["toolInstanceId"],
    ("tool_data", "stats"): ["toolInstanceId"],
    ("tool_executions", "get"): ["toolInstanceId"],
    # Actions
    ("tool_data", "create"): ["toolInstanceId"],
    ("tool_data", "update"): ["id"],
    ("tool_data", "delete"): ["id"],
    ("tool_data", "batch_create"): ["toolInstanceId", "entries"],
    ("tool_data", "batch_update"): ["entries"],
    ("tool_data", "batch_delete"): ["ids"],
    ("zones", "create"): ["name"],
    ("zones", "update"): ["zone_id"],
    ("zones", "delete"): ["zone_id"],
    ("tools", "create"): ["zone_id", "tool_type"],
    ("tools", "update"): ["tool_instance_id"],
    ("tools", "delete"): ["tool_instance_id"],
}

_BATCH_LIST_PARAMS = ("entries", "ids")


class CommandValidator:
    """Checks required parameters and time windows."""

    def __init__(self, required_params: Dict[Tuple[str, str], List[str]] = None):
        self._required = dict(REQUIRED_PARAMS)
        if required_params:
            self._required.update(required_params)

    def validate(self, command: ExecutableCommand) -> List[str]:
        """Return validation errors; an empty list means the command is valid."""
        errors: List[str] = []

        if not command.resource or not command.operation:
            return [f"Malformed command '{command.action}': expected resource.operation"]

        for name in self._required.get((command.resource, command.operation), []):
            value = command.params.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"Missing required parameter: {name}")
            elif name in _BATCH_LIST_PARAMS and not (isinstance(value, list) and value):
                errors.append(f"Parameter {name} must be a non-empty list")

        start = command.params.get("startTime")
        end = command.params.get("endTime")
        if isinstance(start, int) and isinstance(end, int) and start > end:
            errors.append(f"startTime ({start}) is after endTime ({end})")

        return errors


__all__ = ["CommandValidator", "REQUIRED_PARAMS"]
