"""Human-readable descriptions of action commands.

Each resource registers a verbalizer; unknown routes fall back to
``"Action: resource.operation"``. Verbalization happens before dispatch
so that a failed or deleted target can still be described.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from assistant_core.protocols import DispatcherProtocol, ExecutableCommand, LoggerProtocol
from assistant_core.utils.logging import get_component_logger

Verbalizer = Callable[[ExecutableCommand, "ActionVerbalizer"], Awaitable[str]]

_NOUNS = {
    "create": "Creation",
    "update": "Update",
    "delete": "Deletion",
}


def _count(params: Dict[str, Any], key: str) -> int:
    value = params.get(key)
    return len(value) if isinstance(value, list) else 0


async def verbalize_zone(command: ExecutableCommand, verbalizer: "ActionVerbalizer") -> str:
    name = command.params.get("name") or await verbalizer.resolve_name("zones.get", {"zone_id": command.params.get("zone_id")}, "zone")
    noun = _NOUNS.get(command.operation)
    if noun is None:
        return verbalizer.fallback(command)
    return f'{noun} of zone "{name}"'


async def verbalize_tool(command: ExecutableCommand, verbalizer: "ActionVerbalizer") -> str:
    name = command.params.get("name") or await verbalizer.resolve_name(
        "tools.get", {"tool_instance_id": command.params.get("tool_instance_id")}, "tool_instance"
    )
    noun = _NOUNS.get(command.operation)
    if noun is None:
        return verbalizer.fallback(command)
    return f'{noun} of tool "{name}"'


async def verbalize_tool_data(command: ExecutableCommand, verbalizer: "ActionVerbalizer") -> str:
    params = command.params
    tool_name = await verbalizer.resolve_name(
        "tools.get", {"tool_instance_id": params.get("toolInstanceId")}, "tool_instance"
    )
    operation = command.operation
    if operation == "create":
        return f'Addition of an entry to tool "{tool_name}"'
    if operation == "update":
        return f'Modification of entry {params.get("id")} in tool "{tool_name}"'
    if operation == "delete":
        return f'Deletion of entry {params.get("id")} from tool "{tool_name}"'
    if operation == "batch_create":
        return f'Addition of {_count(params, "entries")} entries to tool "{tool_name}"'
    if operation == "batch_update":
        return f'Modification of {_count(params, "entries")} entries in tool "{tool_name}"'
    if operation == "batch_delete":
        return f'Deletion of {_count(params, "ids")} entries from tool "{tool_name}"'
    return verbalizer.fallback(command)


DEFAULT_VERBALIZERS: Dict[str, Verbalizer] = {
    "zones": verbalize_zone,
    "tools": verbalize_tool,
    "tool_data": verbalize_tool_data,
}


class ActionVerbalizer:
    """Per-resource action descriptions, with dispatcher-backed name lookup."""

    def __init__(
        self,
        dispatcher: Optional[DispatcherProtocol] = None,
        verbalizers: Optional[Dict[str, Verbalizer]] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._dispatcher = dispatcher
        self._verbalizers = dict(DEFAULT_VERBALIZERS)
        if verbalizers:
            self._verbalizers.update(verbalizers)
        self._logger = get_component_logger("ActionVerbalizer", logger)

    def register(self, resource: str, verbalizer: Verbalizer) -> None:
        self._verbalizers[resource] = verbalizer

    def fallback(self, command: ExecutableCommand) -> str:
        return f"Action: {command.action}"

    async def verbalize(self, command: ExecutableCommand) -> str:
        verbalizer = self._verbalizers.get(command.resource)
        if verbalizer is None:
            return self.fallback(command)
        try:
            return await verbalizer(command, self)
        except Exception as e:
            self._logger.warning("verbalization_failed", command=command.action, error=str(e))
            return self.fallback(command)

    async def resolve_name(self, action: str, params: Dict[str, Any], envelope: str) -> str:
        """Name of the entity ``action`` returns, or its id when unavailable."""
        entity_id = next((v for v in params.values() if v), None)
        if entity_id is None:
            return "unknown"
        if self._dispatcher is None:
            return str(entity_id)

        result = await self._dispatcher.dispatch(action, params)
        if result.success and result.data:
            entity = result.data.get(envelope) or result.data
            name = entity.get("name") if isinstance(entity, dict) else None
            if name:
                return str(name)
        return str(entity_id)


__all__ = [
    "ActionVerbalizer",
    "DEFAULT_VERBALIZERS",
    "verbalize_zone",
    "verbalize_tool",
    "verbalize_tool_data",
]
