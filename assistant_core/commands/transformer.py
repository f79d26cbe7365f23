"""Map abstract ``DataCommand``s onto dispatcher routes.

Relative period markers (``period_start`` / ``period_end``) are resolved
here, at execution time, against the transformer's clock.
"""

from typing import Any, Dict, List, Optional, Tuple

from assistant_core.config import AssistantSettings, get_settings
from assistant_core.errors import CommandTransformError
from assistant_core.protocols import (
    ClockProtocol,
    DataCommand,
    DataCommandType,
    ExecutableCommand,
    LoggerProtocol,
)
from assistant_core.utils.clock import SystemClock
from assistant_core.utils.logging import get_component_logger
from assistant_core.utils.periods import PeriodCalculator

# Action command types: (resource, operation, id param renamed from "id")
_ACTION_ROUTES: Dict[DataCommandType, Tuple[str, str, Optional[str]]] = {
    DataCommandType.CREATE_DATA: ("tool_data", "create", None),
    DataCommandType.UPDATE_DATA: ("tool_data", "update", None),
    DataCommandType.DELETE_DATA: ("tool_data", "delete", None),
    DataCommandType.BATCH_CREATE_DATA: ("tool_data", "batch_create", None),
    DataCommandType.BATCH_UPDATE_DATA: ("tool_data", "batch_update", None),
    DataCommandType.BATCH_DELETE_DATA: ("tool_data", "batch_delete", None),
    DataCommandType.CREATE_ZONE: ("zones", "create", None),
    DataCommandType.UPDATE_ZONE: ("zones", "update", "zone_id"),
    DataCommandType.DELETE_ZONE: ("zones", "delete", "zone_id"),
    DataCommandType.CREATE_TOOL: ("tools", "create", None),
    DataCommandType.UPDATE_TOOL: ("tools", "update", "tool_instance_id"),
    DataCommandType.DELETE_TOOL: ("tools", "delete", "tool_instance_id"),
}


def _require(command: DataCommand, key: str) -> Any:
    value = command.params.get(key)
    if value is None or value == "":
        raise CommandTransformError(f"{command.type.value} command {command.id} is missing '{key}'")
    return value


class CommandTransformer:
    """DataCommand to ExecutableCommand."""

    def __init__(
        self,
        settings: Optional[AssistantSettings] = None,
        periods: Optional[PeriodCalculator] = None,
        clock: Optional[ClockProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._settings = settings or get_settings()
        self._periods = periods or PeriodCalculator.from_settings(self._settings)
        self._clock = clock or SystemClock()
        self._logger = get_component_logger("CommandTransformer", logger)

    def transform(self, commands: List[DataCommand]) -> List[ExecutableCommand]:
        return [self.transform_one(c) for c in commands]

    def transform_one(self, command: DataCommand) -> ExecutableCommand:
        command_type = command.type

        if command_type == DataCommandType.SCHEMA:
            return ExecutableCommand("schemas", "get", {"id": _require(command, "id")})

        if command_type == DataCommandType.TOOL_CONFIG:
            return ExecutableCommand("tools", "get", {"tool_instance_id": _require(command, "id")})

        if command_type == DataCommandType.TOOL_DATA:
            params = {"toolInstanceId": _require(command, "id")}
            params.update(self._time_window(command))
            params["limit"] = command.params.get("limit", self._settings.data_page_size)
            if "page" in command.params:
                params["page"] = command.params["page"]
            return ExecutableCommand("tool_data", "get", params)

        if command_type == DataCommandType.TOOL_DATA_SAMPLE:
            return ExecutableCommand("tool_data", "get", {
                "toolInstanceId": _require(command, "id"),
                "limit": command.params.get("limit", self._settings.data_sample_limit),
                "orderBy": "timestamp",
                "orderDirection": "desc",
            })

        if command_type == DataCommandType.TOOL_STATS:
            return ExecutableCommand("tool_data", "stats", {"toolInstanceId": _require(command, "id")})

        if command_type == DataCommandType.TOOL_EXECUTIONS:
            params = {"toolInstanceId": _require(command, "id")}
            params.update(self._time_window(command))
            return ExecutableCommand("tool_executions", "get", params)

        if command_type == DataCommandType.ZONE_CONFIG:
            return ExecutableCommand("zones", "get", {"zone_id": _require(command, "id")})

        if command_type == DataCommandType.ZONES:
            return ExecutableCommand("zones", "list", {})

        if command_type == DataCommandType.TOOL_INSTANCES:
            zone_id = command.params.get("zone_id") or command.params.get("id")
            if zone_id:
                return ExecutableCommand("tools", "list", {"zone_id": zone_id})
            return ExecutableCommand("tools", "list_all", {})

        route = _ACTION_ROUTES.get(command_type)
        if route is None:
            raise CommandTransformError(f"Unhandled command type: {command_type}")
        resource, operation, id_param = route
        params = dict(command.params)
        if id_param and "id" in params and id_param not in params:
            params[id_param] = params.pop("id")
        return ExecutableCommand(resource, operation, params, is_action_command=True)

    def _time_window(self, command: DataCommand) -> Dict[str, int]:
        window: Dict[str, int] = {}
        params = command.params

        if "startTime" in params:
            window["startTime"] = int(params["startTime"])
        elif "period_start" in params:
            window["startTime"] = self._periods.resolve_marker(
                params["period_start"], self._clock.now_ms()
            ).timestamp

        if "endTime" in params:
            window["endTime"] = int(params["endTime"])
        elif "period_end" in params:
            period = self._periods.resolve_marker(params["period_end"], self._clock.now_ms())
            window["endTime"] = self._periods.period_end(period.timestamp, period.type)

        if "period_start" in params or "period_end" in params:
            self._logger.debug(
                "relative_period_resolved",
                command_id=command.id,
                period_start=params.get("period_start"),
                period_end=params.get("period_end"),
                **window,
            )
        return window


__all__ = ["CommandTransformer"]
