"""Enrichment resolution: decide whether an enrichment needs data, and
turn it into abstract fetch commands.

Query policy:

==============  =====================================================
Pointer         unless ``importance == "optional"``; never for GENERIC
Use             always
ModifyConfig    always
Create          never
Organize        never
Document        never
==============  =====================================================

Schema ids of a tool instance are looked up through ``tools.get``. When an
enrichment needs one and it cannot be resolved, ``SchemaResolutionError``
is raised rather than returning a partial bundle.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from assistant_core.enrichments.models import (
    CreateEnrichment,
    EnrichmentType,
    ModifyConfigEnrichment,
    PointerContext,
    PointerEnrichment,
    SelectionLevel,
    UseEnrichment,
    parse_enrichment,
)
from assistant_core.enrichments.temporal import TemporalResolver
from assistant_core.errors import EnrichmentConfigError, SchemaResolutionError
from assistant_core.protocols import (
    DataCommand,
    DataCommandType,
    DispatcherProtocol,
    LoggerProtocol,
)
from assistant_core.utils.logging import get_component_logger

INVALID_ENRICHMENT_LABEL = "invalid enrichment"

# Pointer sub-resources, in generation order
RESOURCE_CONFIG = "config"
RESOURCE_CONFIG_SCHEMA = "config_schema"
RESOURCE_DATA_SCHEMA = "data_schema"
RESOURCE_EXECUTIONS_SCHEMA = "executions_schema"
RESOURCE_DATA = "data"
RESOURCE_DATA_SAMPLE = "data_sample"
RESOURCE_EXECUTIONS = "executions"

SCHEMA_RESOURCES = frozenset({
    RESOURCE_CONFIG_SCHEMA,
    RESOURCE_DATA_SCHEMA,
    RESOURCE_EXECUTIONS_SCHEMA,
})

# Sub-resources each context may fetch; other selections are ignored
CONTEXT_RESOURCES = {
    PointerContext.CONFIG: frozenset({RESOURCE_CONFIG, RESOURCE_CONFIG_SCHEMA}),
    PointerContext.DATA: frozenset({RESOURCE_DATA, RESOURCE_DATA_SAMPLE, RESOURCE_DATA_SCHEMA}),
    PointerContext.EXECUTIONS: frozenset({RESOURCE_EXECUTIONS, RESOURCE_EXECUTIONS_SCHEMA}),
}


def build_command_id(prefix: str, params: Dict[str, Any]) -> str:
    """Deterministic command id: ``prefix.key_value...`` with keys sorted."""
    parts = [f"{key}_{params[key]}" for key in sorted(params)]
    return ".".join([prefix, *parts])


def _command(prefix: str, command_type: DataCommandType, params: Dict[str, Any], is_relative: bool) -> DataCommand:
    return DataCommand(
        id=build_command_id(prefix, params),
        type=command_type,
        params=params,
        is_relative=is_relative,
    )


@dataclass(frozen=True)
class ToolSchemaIds:
    config: Optional[str] = None
    data: Optional[str] = None
    execution: Optional[str] = None

    def require(self, kind: str, tool_instance_id: str) -> str:
        value = getattr(self, kind)
        if not value:
            raise SchemaResolutionError(tool_instance_id, kind, "schema id missing from tool configuration")
        return value


class EnrichmentProcessor:
    """Resolution engine for enrichments."""

    def __init__(
        self,
        dispatcher: Optional[DispatcherProtocol] = None,
        temporal: Optional[TemporalResolver] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._dispatcher = dispatcher
        self._temporal = temporal or TemporalResolver()
        self._logger = get_component_logger("EnrichmentProcessor", logger)

    # =========================================================================
    # QUERY POLICY
    # =========================================================================

    def should_generate_query(
        self,
        enrichment_type: Union[EnrichmentType, str],
        config: Union[str, Dict[str, Any]],
    ) -> bool:
        try:
            enrichment = parse_enrichment(enrichment_type, config)
        except EnrichmentConfigError as e:
            self._logger.warning("enrichment_config_invalid", error=str(e))
            return False

        if isinstance(enrichment, PointerEnrichment):
            return (
                not enrichment.is_optional
                and enrichment.selected_context != PointerContext.GENERIC
            )
        return isinstance(enrichment, (UseEnrichment, ModifyConfigEnrichment))

    # =========================================================================
    # COMMAND GENERATION
    # =========================================================================

    async def generate_commands(
        self,
        enrichment_type: Union[EnrichmentType, str],
        config: Union[str, Dict[str, Any]],
        is_relative: bool = False,
    ) -> List[DataCommand]:
        """Produce the fetch commands an enrichment needs.

        Args:
            enrichment_type: Variant discriminant
            config: Variant configuration (JSON string or dict)
            is_relative: Keep relative time filters unresolved (automation)

        Raises:
            EnrichmentConfigError: configuration cannot be parsed
            SchemaResolutionError: a required schema id cannot be resolved
        """
        enrichment = parse_enrichment(enrichment_type, config)

        if isinstance(enrichment, PointerEnrichment):
            if enrichment.is_optional:
                commands = []
            else:
                commands = await self._pointer_commands(enrichment, is_relative)
        elif isinstance(enrichment, UseEnrichment):
            commands = await self._use_commands(enrichment, is_relative)
        elif isinstance(enrichment, ModifyConfigEnrichment):
            commands = await self._modify_config_commands(enrichment, is_relative)
        else:
            # Create, Organize and Document are orientation only
            commands = []

        self._logger.debug(
            "enrichment_commands_generated",
            enrichment_type=EnrichmentType(enrichment_type).value,
            count=len(commands),
            command_ids=[c.id for c in commands],
        )
        return commands

    async def _pointer_commands(self, enrichment: PointerEnrichment, is_relative: bool) -> List[DataCommand]:
        context = enrichment.selected_context
        if context == PointerContext.GENERIC:
            return []

        if enrichment.selection_level == SelectionLevel.ZONE:
            zone_id = enrichment.target_id("zones")
            if context != PointerContext.CONFIG or not zone_id:
                return []
            resources = enrichment.selected_resources
            if resources and RESOURCE_CONFIG not in resources:
                return []
            return [_command("zone_config", DataCommandType.ZONE_CONFIG, {"id": zone_id}, is_relative)]

        if enrichment.selection_level not in (SelectionLevel.INSTANCE, SelectionLevel.FIELD):
            return []

        tool_id = enrichment.target_id("tools")
        if not tool_id:
            self._logger.warning("pointer_path_without_tool", path=enrichment.selected_path)
            return []

        allowed = CONTEXT_RESOURCES[context]
        selected = set(enrichment.selected_resources) & allowed
        ignored = sorted(set(enrichment.selected_resources) - allowed)
        if ignored:
            self._logger.debug("pointer_resources_ignored", context=context.value, resources=ignored)

        schema_ids = ToolSchemaIds()
        if selected & SCHEMA_RESOURCES:
            schema_ids = await self.resolve_schema_ids(tool_id)

        temporal: Dict[str, Any] = {}
        if context in (PointerContext.DATA, PointerContext.EXECUTIONS):
            temporal = self._temporal.resolve(enrichment.timestamp_selection, is_relative)

        commands: List[DataCommand] = []
        if RESOURCE_CONFIG in selected:
            commands.append(_command("tool_config", DataCommandType.TOOL_CONFIG, {"id": tool_id}, is_relative))
        if RESOURCE_CONFIG_SCHEMA in selected:
            schema_id = schema_ids.require("config", tool_id)
            commands.append(_command("schema_config", DataCommandType.SCHEMA, {"id": schema_id}, is_relative))
        if RESOURCE_DATA_SCHEMA in selected:
            schema_id = schema_ids.require("data", tool_id)
            commands.append(_command("schema_data", DataCommandType.SCHEMA, {"id": schema_id}, is_relative))
        if RESOURCE_EXECUTIONS_SCHEMA in selected:
            schema_id = schema_ids.require("execution", tool_id)
            commands.append(_command("schema_execution", DataCommandType.SCHEMA, {"id": schema_id}, is_relative))
        if RESOURCE_DATA in selected:
            params = {"id": tool_id, **temporal}
            commands.append(_command("tool_data", DataCommandType.TOOL_DATA, params, is_relative))
        elif RESOURCE_DATA_SAMPLE in selected:
            commands.append(_command("tool_data_sample", DataCommandType.TOOL_DATA_SAMPLE, {"id": tool_id}, is_relative))
        if RESOURCE_EXECUTIONS in selected:
            params = {"id": tool_id, **temporal}
            commands.append(_command("tool_executions", DataCommandType.TOOL_EXECUTIONS, params, is_relative))
        return commands

    async def _use_commands(self, enrichment: UseEnrichment, is_relative: bool) -> List[DataCommand]:
        tool_id = enrichment.tool_instance_id
        schema_ids = await self.resolve_schema_ids(tool_id)
        config_schema = schema_ids.require("config", tool_id)
        data_schema = schema_ids.require("data", tool_id)
        params = {"id": tool_id}
        return [
            _command("tool_config", DataCommandType.TOOL_CONFIG, params, is_relative),
            _command("schema_config", DataCommandType.SCHEMA, {"id": config_schema}, is_relative),
            _command("schema_data", DataCommandType.SCHEMA, {"id": data_schema}, is_relative),
            _command("tool_data_sample", DataCommandType.TOOL_DATA_SAMPLE, dict(params), is_relative),
            _command("tool_stats", DataCommandType.TOOL_STATS, dict(params), is_relative),
        ]

    async def _modify_config_commands(self, enrichment: ModifyConfigEnrichment, is_relative: bool) -> List[DataCommand]:
        tool_id = enrichment.tool_instance_id
        schema_ids = await self.resolve_schema_ids(tool_id)
        config_schema = schema_ids.require("config", tool_id)
        return [
            _command("schema_config", DataCommandType.SCHEMA, {"id": config_schema}, is_relative),
            _command("tool_config", DataCommandType.TOOL_CONFIG, {"id": tool_id}, is_relative),
        ]

    async def resolve_schema_ids(self, tool_instance_id: str) -> ToolSchemaIds:
        """Look up the schema ids declared in a tool instance's configuration."""
        if self._dispatcher is None:
            raise SchemaResolutionError(tool_instance_id, "config", "no dispatcher available for tools.get")

        result = await self._dispatcher.dispatch("tools.get", {"tool_instance_id": tool_instance_id})
        if not result.success:
            raise SchemaResolutionError(tool_instance_id, "config", result.error or "tools.get failed")

        instance = (result.data or {}).get("tool_instance") or {}
        raw_config = instance.get("config_json", instance.get("config"))
        if isinstance(raw_config, str):
            try:
                raw_config = json.loads(raw_config)
            except json.JSONDecodeError as e:
                raise SchemaResolutionError(tool_instance_id, "config", f"malformed config_json ({e.msg})") from e
        if not isinstance(raw_config, dict):
            raise SchemaResolutionError(tool_instance_id, "config", "tool instance has no configuration")

        return ToolSchemaIds(
            config=raw_config.get("schema_id"),
            data=raw_config.get("data_schema_id"),
            execution=raw_config.get("execution_schema_id"),
        )

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def generate_summary(
        self,
        enrichment_type: Union[EnrichmentType, str],
        config: Union[str, Dict[str, Any]],
    ) -> str:
        try:
            enrichment = parse_enrichment(enrichment_type, config)
        except EnrichmentConfigError:
            return INVALID_ENRICHMENT_LABEL

        if not isinstance(enrichment, PointerEnrichment):
            return enrichment.display_label()

        parts = [enrichment.display_label()]
        if enrichment.selected_context != PointerContext.GENERIC:
            parts.append(enrichment.selected_context.value.lower())
        if enrichment.timestamp_selection is not None and not enrichment.timestamp_selection.is_empty:
            parts.append(self._temporal.describe(enrichment.timestamp_selection))
        if enrichment.selected_resources:
            parts.append(", ".join(enrichment.selected_resources))
        return " - ".join(parts)


__all__ = [
    "EnrichmentProcessor",
    "ToolSchemaIds",
    "build_command_id",
    "INVALID_ENRICHMENT_LABEL",
]
