"""Tests for action verbalization and query titles."""

import pytest

from assistant_core.commands.titles import (
    TRUST_STATEMENT,
    DataTitleBuilder,
    format_result_data,
    reproducible_query,
)
from assistant_core.commands.verbalizer import ActionVerbalizer
from assistant_core.protocols import ExecutableCommand, OperationResult
from fixtures.dispatchers import tool_instance_result


# =============================================================================
# VERBALIZER
# =============================================================================

class TestActionVerbalizer:

    @pytest.fixture
    def verbalizer(self, dispatcher, mock_logger):
        dispatcher.on("tools.get", tool_instance_result())
        return ActionVerbalizer(dispatcher, logger=mock_logger)

    @pytest.mark.asyncio
    async def test_tool_data_operations(self, verbalizer):
        cases = [
            ("create", {}, 'Addition of an entry to tool "Weight"'),
            ("update", {"id": "e1"}, 'Modification of entry e1 in tool "Weight"'),
            ("delete", {"id": "e1"}, 'Deletion of entry e1 from tool "Weight"'),
            ("batch_create", {"entries": [{}, {}]}, 'Addition of 2 entries to tool "Weight"'),
            ("batch_delete", {"ids": ["a", "b", "c"]}, 'Deletion of 3 entries from tool "Weight"'),
        ]
        for operation, extra, expected in cases:
            params = {"toolInstanceId": "T1", **extra}
            text = await verbalizer.verbalize(ExecutableCommand("tool_data", operation, params))
            assert text == expected

    @pytest.mark.asyncio
    async def test_name_from_params_skips_lookup(self, verbalizer, dispatcher):
        text = await verbalizer.verbalize(ExecutableCommand("tools", "update", {"tool_instance_id": "T1", "name": "Mass"}))
        assert text == 'Update of tool "Mass"'
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_unresolved_name_falls_back_to_id(self, verbalizer):
        text = await verbalizer.verbalize(ExecutableCommand("zones", "delete", {"zone_id": "Z7"}))
        assert text == 'Deletion of zone "Z7"'

    @pytest.mark.asyncio
    async def test_unknown_resource(self, verbalizer):
        text = await verbalizer.verbalize(ExecutableCommand("backups", "create"))
        assert text == "Action: backups.create"

    @pytest.mark.asyncio
    async def test_crashing_lookup_falls_back(self, dispatcher, mock_logger):
        def crash(params):
            raise ConnectionError("tool service down")

        dispatcher.on("tools.get", crash)
        verbalizer = ActionVerbalizer(dispatcher, logger=mock_logger)

        text = await verbalizer.verbalize(ExecutableCommand("tool_data", "create", {"toolInstanceId": "T1"}))

        assert text == "Action: tool_data.create"
        mock_logger.warning.assert_called()

    @pytest.mark.asyncio
    async def test_registered_verbalizer(self, verbalizer):
        async def notes(command, _):
            return f"Archiving note {command.params['note_id']}"

        verbalizer.register("notes", notes)

        text = await verbalizer.verbalize(ExecutableCommand("notes", "archive", {"note_id": "n1"}))
        assert text == "Archiving note n1"


# =============================================================================
# TITLES
# =============================================================================

class TestDataTitleBuilder:

    @pytest.fixture
    def builder(self, dispatcher, settings, mock_logger):
        dispatcher.on("tools.get", tool_instance_result())
        dispatcher.on("zones.get", OperationResult.ok({"zone": {"id": "Z1", "name": "Health"}}))
        return DataTitleBuilder(dispatcher, settings=settings, logger=mock_logger)

    @pytest.mark.asyncio
    async def test_explicit_range(self, builder):
        command = ExecutableCommand("tool_data", "get", {"toolInstanceId": "T1", "startTime": 0, "endTime": 86_399_999})

        title = await builder.build(command, {"entries": [{"value": 1}]})

        assert title.split(" | ") == [
            'Data from tool "Weight"',
            "period: 1970-01-01 00:00 to 1970-01-01 23:59 (explicit range)",
            "1 record",
            f"query: {reproducible_query(command)}",
            TRUST_STATEMENT,
        ]

    @pytest.mark.asyncio
    async def test_open_ended_windows(self, builder):
        assert builder.describe_window(0, None) == "period: from 1970-01-01 00:00 (open-ended)"
        assert builder.describe_window(None, 0) == "period: until 1970-01-01 00:00 (open-ended)"
        assert builder.describe_window(None, None) == "period: all time (no time filter)"

    @pytest.mark.asyncio
    async def test_sample_title(self, builder):
        command = ExecutableCommand(
            "tool_data", "get",
            {"toolInstanceId": "T1", "limit": 10, "orderBy": "timestamp", "orderDirection": "desc"},
        )

        title = await builder.build(command, {"entries": []})

        assert title.startswith('Latest entries of tool "Weight" (limit 10)')
        assert "0 records" in title

    @pytest.mark.asyncio
    async def test_embedded_name_avoids_lookup(self, builder, dispatcher):
        command = ExecutableCommand("zones", "get", {"zone_id": "Z1"})

        title = await builder.build(command, {"zone": {"id": "Z1", "name": "Sleep"}})

        assert title.startswith('Configuration of zone "Sleep"')
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_tools_list_resolves_zone(self, builder):
        command = ExecutableCommand("tools", "list", {"zone_id": "Z1"})
        title = await builder.build(command, {"tool_instances": [{}, {}]})
        assert title.startswith('Tool instances in zone "Health" | 2 records')

    @pytest.mark.asyncio
    async def test_lookup_error_uses_id(self, dispatcher, settings, mock_logger):
        def crash(params):
            raise TimeoutError("slow")

        dispatcher.on("tools.get", crash)
        builder = DataTitleBuilder(dispatcher, settings=settings, logger=mock_logger)

        title = await builder.build(ExecutableCommand("tool_data", "stats", {"toolInstanceId": "T1"}), {})

        assert title.startswith('Statistics of tool "T1"')

    @pytest.mark.asyncio
    async def test_unknown_route(self, builder):
        title = await builder.build(ExecutableCommand("notes", "get", {"id": "n1"}), None)
        assert title == f'Result of notes.get | 0 records | query: notes.get {{"id": "n1"}} | {TRUST_STATEMENT}'

    @pytest.mark.asyncio
    async def test_empty_payload_states_zero_records(self, builder):
        command = ExecutableCommand("tool_data", "get", {"toolInstanceId": "T1"})

        title = await builder.build(command, {})

        assert title.split(" | ")[:3] == [
            'Data from tool "Weight"',
            "period: all time (no time filter)",
            "0 records",
        ]


def test_format_result_data_puts_metadata_first():
    body = format_result_data({"entries": [], "count": 0, "toolInstanceId": "T1"}, indent=None)
    assert body == '{"toolInstanceId": "T1", "count": 0, "entries": []}'
