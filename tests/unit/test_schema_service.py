"""Tests for SchemaService."""

import pytest

from assistant_core.coordinator import CancellationToken
from assistant_core.services.schema_service import (
    ZONE_CONFIG_SCHEMA,
    SchemaService,
    StaticSchemaProvider,
)

TRACKING = StaticSchemaProvider({
    "tracking_config": {"type": "object", "title": "Tracking configuration"},
    "tracking_data": {"type": "object", "title": "Tracking entry"},
})


class BrokenProvider:
    def get_schema(self, schema_id):
        raise OSError("schema file unreadable")

    def schema_ids(self):
        raise OSError("schema dir unreadable")


@pytest.fixture
def service(mock_logger):
    return SchemaService(tooltype_providers={"tracking": TRACKING}, logger=mock_logger)


@pytest.mark.asyncio
async def test_get_system_schema(service):
    result = await service.execute("get", {"id": "zone_config"}, CancellationToken())
    assert result.data == {"schema_id": "zone_config", "content": ZONE_CONFIG_SCHEMA}


@pytest.mark.asyncio
async def test_get_tooltype_schema(service):
    result = await service.execute("get", {"id": "tracking_data"}, CancellationToken())
    assert result.data["content"]["title"] == "Tracking entry"


@pytest.mark.asyncio
async def test_not_found(service):
    result = await service.execute("get", {"id": "nope_config"}, CancellationToken())
    assert result.error == "Schema not found: nope_config"


@pytest.mark.asyncio
async def test_missing_id(service):
    result = await service.execute("get", {}, CancellationToken())
    assert result.error == "Missing required parameter: id"


@pytest.mark.asyncio
async def test_list(service):
    result = await service.execute("list", {}, CancellationToken())
    assert result.data == {
        "schema_ids": ["tracking_config", "tracking_data", "zone_config"],
        "count": 3,
    }


@pytest.mark.asyncio
async def test_unknown_operation(service):
    result = await service.execute("delete", {"id": "zone_config"}, CancellationToken())
    assert not result.success


def test_system_prefix_must_match(mock_logger):
    service = SchemaService(
        system_providers={"zone_": StaticSchemaProvider({"tracking_data": {"shadow": True}})},
        tooltype_providers={"tracking": TRACKING},
        logger=mock_logger,
    )
    assert service.get_schema("tracking_data") == {"type": "object", "title": "Tracking entry"}


def test_broken_provider_is_skipped(mock_logger):
    service = SchemaService(tooltype_providers={"broken": BrokenProvider()}, logger=mock_logger)
    service.register_tooltype("tracking", TRACKING)

    assert service.get_schema("tracking_config")["title"] == "Tracking configuration"
    assert "tracking_config" in service.list_schema_ids()
    assert mock_logger.warning.call_count == 2
