"""Prompt titles and bodies for query results.

Every title states, even for an empty result, the resolved name of the
target, the time window applied (where the route takes one), the exact
query that reproduces the result and an explicit trust statement about
the count.
"""

import json
from typing import Any, Dict, Optional

from assistant_core.commands.filtering import extract_count
from assistant_core.config import AssistantSettings, get_settings
from assistant_core.protocols import DispatcherProtocol, ExecutableCommand, LoggerProtocol
from assistant_core.utils.logging import get_component_logger
from assistant_core.utils.periods import PeriodCalculator

TRUST_STATEMENT = "This result is complete and authoritative; do not re-query to verify it."

_TIME_FILTERED = frozenset({"tool_data.get", "tool_executions.get"})

_METADATA_KEYS = (
    "schema_id",
    "tool_instance_id",
    "toolInstanceId",
    "zone_id",
    "name",
    "count",
    "total",
    "startTime",
    "endTime",
)


def reproducible_query(command: ExecutableCommand) -> str:
    return f"{command.action} {json.dumps(command.params, sort_keys=True, default=str)}"


def format_result_data(data: Dict[str, Any], indent: int = 2) -> str:
    """JSON body for the prompt with identifying metadata first."""
    ordered = {k: data[k] for k in _METADATA_KEYS if k in data}
    ordered.update({k: v for k, v in data.items() if k not in ordered})
    return json.dumps(ordered, indent=indent, ensure_ascii=False, default=str)


class DataTitleBuilder:
    """Builds anti-hallucination titles for query results."""

    def __init__(
        self,
        dispatcher: Optional[DispatcherProtocol] = None,
        settings: Optional[AssistantSettings] = None,
        periods: Optional[PeriodCalculator] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._dispatcher = dispatcher
        self._settings = settings or get_settings()
        self._periods = periods or PeriodCalculator.from_settings(self._settings)
        self._logger = get_component_logger("DataTitleBuilder", logger)

    async def build(self, command: ExecutableCommand, data: Optional[Dict[str, Any]]) -> str:
        data = data or {}
        action = command.action
        params = command.params
        count = extract_count(data)
        if count is None and not data:
            count = 0

        if action == "schemas.get":
            head = f'Schema "{data.get("schema_id") or params.get("id")}"'
        elif action == "tools.get":
            head = f'Configuration of tool "{await self._tool_name(params.get("tool_instance_id"), data)}"'
        elif action == "zones.get":
            head = f'Configuration of zone "{await self._zone_name(params.get("zone_id"), data)}"'
        elif action == "tools.list":
            head = f'Tool instances in zone "{await self._zone_name(params.get("zone_id"), {})}"'
        elif action == "tools.list_all":
            head = "All tool instances"
        elif action == "zones.list":
            head = "All zones"
        elif action == "tool_data.get":
            name = await self._tool_name(params.get("toolInstanceId"), data)
            if params.get("orderDirection") == "desc" and "startTime" not in params and "endTime" not in params:
                head = f'Latest entries of tool "{name}" (limit {params.get("limit")})'
            else:
                head = f'Data from tool "{name}"'
        elif action == "tool_data.stats":
            head = f'Statistics of tool "{await self._tool_name(params.get("toolInstanceId"), data)}"'
        elif action == "tool_executions.get":
            head = f'Executions of tool "{await self._tool_name(params.get("toolInstanceId"), data)}"'
        else:
            head = f"Result of {action}"

        parts = [head]
        if action in _TIME_FILTERED:
            parts.append(self.describe_window(params.get("startTime"), params.get("endTime")))
        if count is not None:
            parts.append(f"{count} record{'s' if count != 1 else ''}")
        parts.append(f"query: {reproducible_query(command)}")
        parts.append(TRUST_STATEMENT)
        return " | ".join(parts)

    def describe_window(self, start: Optional[int], end: Optional[int]) -> str:
        fmt = self._periods.format_timestamp
        if start is not None and end is not None:
            return f"period: {fmt(start)} to {fmt(end)} (explicit range)"
        if start is not None:
            return f"period: from {fmt(start)} (open-ended)"
        if end is not None:
            return f"period: until {fmt(end)} (open-ended)"
        return "period: all time (no time filter)"

    async def _tool_name(self, tool_instance_id: Optional[str], data: Dict[str, Any]) -> str:
        embedded = data.get("tool_instance")
        if isinstance(embedded, dict) and embedded.get("name"):
            return str(embedded["name"])
        if data.get("tool_name"):
            return str(data["tool_name"])
        return await self._lookup_name("tools.get", {"tool_instance_id": tool_instance_id}, "tool_instance", tool_instance_id)

    async def _zone_name(self, zone_id: Optional[str], data: Dict[str, Any]) -> str:
        embedded = data.get("zone")
        if isinstance(embedded, dict) and embedded.get("name"):
            return str(embedded["name"])
        return await self._lookup_name("zones.get", {"zone_id": zone_id}, "zone", zone_id)

    async def _lookup_name(self, action: str, params: Dict[str, Any], envelope: str, fallback: Optional[str]) -> str:
        if not fallback:
            return "unknown"
        if self._dispatcher is None:
            return str(fallback)
        try:
            result = await self._dispatcher.dispatch(action, params)
        except Exception as e:
            self._logger.warning("title_name_lookup_failed", action=action, entity_id=fallback, error=str(e))
            return str(fallback)
        if result.success and result.data:
            entity = result.data.get(envelope)
            if isinstance(entity, dict) and entity.get("name"):
                return str(entity["name"])
        self._logger.debug("title_name_unresolved", action=action, entity_id=fallback)
        return str(fallback)


__all__ = [
    "DataTitleBuilder",
    "TRUST_STATEMENT",
    "format_result_data",
    "reproducible_query",
]
