"""Integration tests: enrichments through the real Coordinator and services.

Zone and tool services are in-memory doubles; schema lookup goes through
the real SchemaService.
"""

import json
from datetime import datetime, timezone

import pytest

from assistant_core.coordinator import CancellationToken, Coordinator, ServiceRegistry
from assistant_core.enrichments.models import EnrichmentType
from assistant_core.enrichments.processor import INVALID_ENRICHMENT_LABEL
from assistant_core.memory.session_messages import InMemorySessionMessageStore
from assistant_core.pipeline import EnrichmentBlock, EnrichmentPipeline, build_prompt_block
from assistant_core.protocols import (
    CommandStatus,
    DataCommand,
    DataCommandType,
    OperationResult,
    SystemMessageType,
)
from assistant_core.services.schema_service import SchemaService, StaticSchemaProvider
from assistant_core.utils.clock import to_epoch_ms

pytestmark = pytest.mark.integration

TOOLS = {
    "T1": {"name": "Weight", "schema_id": "tracking_config", "data_schema_id": "tracking_data"},
    "T2": {"name": "Mood", "schema_id": "tracking_config"},
}

ENTRIES = [
    {"id": "e1", "value": 72.5, "timestamp": 1705300000000},
    {"id": "e2", "value": 72.1, "timestamp": 1705400000000},
]


class ToolService:
    """Serves ``tools.*`` from TOOLS."""

    async def execute(self, operation, params, token):
        if operation != "get":
            return OperationResult.failure(f"Unknown operation: {operation}")
        tool_id = params.get("tool_instance_id")
        tool = TOOLS.get(tool_id)
        if tool is None:
            return OperationResult.failure(f"Tool instance not found: {tool_id}")
        return OperationResult.ok({
            "tool_instance": {
                "id": tool_id,
                "name": tool["name"],
                "tool_type": "tracking",
                "config_json": json.dumps(tool),
            }
        })


class ToolDataService:
    """Serves ``tool_data.*`` and records query params."""

    def __init__(self):
        self.queries = []

    async def execute(self, operation, params, token):
        if operation == "get":
            self.queries.append(params)
            return OperationResult.ok({"toolInstanceId": params["toolInstanceId"], "entries": ENTRIES})
        if operation == "stats":
            return OperationResult.ok({"toolInstanceId": params["toolInstanceId"], "count": 2, "average": 72.3})
        if operation == "create":
            return OperationResult.ok({"entry": {"id": "e3", "timestamp": 1705500000000, **params["data"]}})
        return OperationResult.failure(f"Unknown operation: {operation}")


@pytest.fixture
def tool_data_service():
    return ToolDataService()


@pytest.fixture
def coordinator(tool_data_service, mock_logger):
    registry = ServiceRegistry(logger=mock_logger)
    registry.register("tools", ToolService())
    registry.register("tool_data", tool_data_service)
    registry.register("schemas", SchemaService(
        tooltype_providers={"tracking": StaticSchemaProvider({
            "tracking_config": {"type": "object", "title": "Tracking configuration"},
            "tracking_data": {"type": "object", "title": "Tracking entry"},
        })},
        logger=mock_logger,
    ))
    return Coordinator(registry, logger=mock_logger)


@pytest.fixture
def store(clock):
    return InMemorySessionMessageStore(clock)


@pytest.fixture
def pipeline(coordinator, store, settings, clock, mock_logger):
    return EnrichmentPipeline.create(coordinator, store, settings=settings, clock=clock, logger=mock_logger)


def use(tool_id: str) -> EnrichmentBlock:
    return EnrichmentBlock(EnrichmentType.USE, json.dumps({"toolInstanceId": tool_id}))


# =============================================================================
# ENRICHMENTS
# =============================================================================

class TestEnrichmentTurns:

    @pytest.mark.asyncio
    async def test_use_enrichment_first_turn(self, pipeline, store):
        result = await pipeline.execute_enrichments("s1", [use("T1")])

        records = result.system_message.command_results
        assert [r.command for r in records] == [
            "tools.get",
            "schemas.get",
            "schemas.get",
            "tool_data.get",
            "tool_data.stats",
        ]
        assert all(r.status == CommandStatus.SUCCESS for r in records)
        assert result.system_message.summary == "All 5 queries succeeded"

        persisted = await store.load_system_messages("s1")
        assert len(persisted) == 1
        assert persisted[0].formatted_data == build_prompt_block(result.prompt_results)
        assert persisted[0].formatted_data.startswith('# Configuration of tool "Weight"')

    @pytest.mark.asyncio
    async def test_schemas_cached_on_second_turn(self, pipeline, store):
        await pipeline.execute_enrichments("s1", [use("T1")])

        second = await pipeline.execute_enrichments("s1", [use("T1")])

        statuses = [r.status for r in second.system_message.command_results]
        assert statuses == [
            CommandStatus.SUCCESS,
            CommandStatus.CACHED,
            CommandStatus.CACHED,
            CommandStatus.SUCCESS,
            CommandStatus.SUCCESS,
        ]
        assert second.system_message.summary == "All 5 queries succeeded (2 already available in conversation)"
        assert len(second.prompt_results) == 3
        assert len(await store.load_system_messages("s1")) == 2

    @pytest.mark.asyncio
    async def test_other_session_fetches_again(self, pipeline):
        await pipeline.execute_enrichments("s1", [use("T1")])
        other = await pipeline.execute_enrichments("s2", [use("T1")])
        assert CommandStatus.CACHED not in [r.status for r in other.system_message.command_results]

    @pytest.mark.asyncio
    async def test_shared_commands_deduplicated(self, pipeline):
        result = await pipeline.execute_enrichments("s1", [use("T1"), use("T1")])
        assert len(result.system_message.command_results) == 5

    @pytest.mark.asyncio
    async def test_schema_resolution_failure_is_recorded(self, pipeline):
        result = await pipeline.execute_enrichments("s1", [use("T2"), use("T1")])

        records = result.system_message.command_results
        assert records[0].command == "enrichment.use"
        assert records[0].status == CommandStatus.FAILED
        assert records[0].details == "create entries T2"
        assert "data schema" in records[0].error
        assert result.success_count == 5
        assert result.system_message.summary == "5 of 6 queries succeeded, 1 failed"

    @pytest.mark.asyncio
    async def test_nothing_to_query_is_not_persisted(self, pipeline, store):
        optional_pointer = EnrichmentBlock(
            EnrichmentType.POINTER,
            {"selectedPath": "tools.T1", "selectionLevel": "INSTANCE", "selectedContext": "DATA", "importance": "optional"},
        )
        create = EnrichmentBlock(EnrichmentType.CREATE, {"toolType": "tracking", "zoneName": "Health"})

        result = await pipeline.execute_enrichments("s1", [optional_pointer, create])

        assert result.system_message.command_results == []
        assert await store.load_system_messages("s1") == []

    @pytest.mark.asyncio
    async def test_invalid_enrichment_config_is_recorded(self, pipeline, store):
        result = await pipeline.execute_enrichments(
            "s1", [EnrichmentBlock(EnrichmentType.USE, '{"toolInstanceId": ""}')]
        )

        records = result.system_message.command_results
        assert len(records) == 1
        assert records[0].command == "enrichment.use"
        assert records[0].status == CommandStatus.FAILED
        assert records[0].details == INVALID_ENRICHMENT_LABEL
        assert "Invalid USE enrichment config" in records[0].error
        assert result.system_message.summary == "All 1 queries failed"
        assert len(await store.load_system_messages("s1")) == 1

    @pytest.mark.asyncio
    async def test_relative_window_resolved_at_execution(self, pipeline, tool_data_service):
        pointer = EnrichmentBlock(EnrichmentType.POINTER, {
            "selectedPath": "tools.T1",
            "selectionLevel": "INSTANCE",
            "selectedContext": "DATA",
            "selectedResources": ["data"],
            "timestampSelection": {"minRelativePeriod": {"offset": -1, "type": "WEEK"}},
        })

        result = await pipeline.execute_enrichments("s1", [pointer], is_relative=True)

        assert tool_data_service.queries == [{
            "toolInstanceId": "T1",
            "startTime": to_epoch_ms(datetime(2024, 1, 8, tzinfo=timezone.utc)),
            "limit": 100,
        }]
        assert "(open-ended)" in result.prompt_results[0].data_title

    @pytest.mark.asyncio
    async def test_cancelled_turn(self, pipeline, store):
        token = CancellationToken()
        token.cancel()

        result = await pipeline.execute_enrichments("s1", [use("T1")], token=token)

        records = result.system_message.command_results
        assert records and all(r.status == CommandStatus.CANCELLED for r in records)


# =============================================================================
# ACTIONS
# =============================================================================

class TestActions:

    @pytest.mark.asyncio
    async def test_action_batch_persisted(self, pipeline, store):
        command = DataCommand(
            id="create_data.T1",
            type=DataCommandType.CREATE_DATA,
            params={"toolInstanceId": "T1", "data": {"value": 71.9}},
        )

        result = await pipeline.execute_actions("s1", [command])

        record = result.system_message.command_results[0]
        assert record.status == CommandStatus.SUCCESS
        assert record.is_action_command
        assert record.details == 'Addition of an entry to tool "Weight"'
        assert record.data == {"id": "e3"}

        persisted = await store.load_system_messages("s1")
        assert persisted[0].type == SystemMessageType.ACTIONS_EXECUTED

    @pytest.mark.asyncio
    async def test_untransformable_action_recorded(self, pipeline, store):
        command = DataCommand(id="tool_config.x", type=DataCommandType.TOOL_CONFIG, params={})

        result = await pipeline.execute_actions("s1", [command])

        assert result.all_failed
        assert result.system_message.summary == "All 1 actions failed"
        assert len(await store.load_system_messages("s1")) == 1
