"""Schema registry service (``schemas.get``, ``schemas.list``).

Schema ids follow ``<domain>_<kind>`` (``zone_config``, ``tracking_data``).
Lookup tries the system providers whose prefix matches first, then every
tooltype provider. A provider that raises is logged and skipped.
"""

from typing import Any, Dict, List, Optional

from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.protocols import LoggerProtocol, OperationResult, SchemaProviderProtocol
from assistant_core.utils.logging import get_component_logger


class StaticSchemaProvider:
    """Provider over a fixed ``schema_id -> schema`` mapping."""

    def __init__(self, schemas: Dict[str, Dict[str, Any]]):
        self._schemas = dict(schemas)

    def get_schema(self, schema_id: str) -> Optional[Dict[str, Any]]:
        return self._schemas.get(schema_id)

    def schema_ids(self) -> List[str]:
        return list(self._schemas)


ZONE_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "title": "Zone configuration",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 60},
        "description": {"type": "string", "maxLength": 250},
        "icon_name": {"type": "string"},
        "color": {"type": "string"},
    },
    "required": ["name"],
    "additionalProperties": False,
}


def default_system_providers() -> Dict[str, SchemaProviderProtocol]:
    return {"zone_": StaticSchemaProvider({"zone_config": ZONE_CONFIG_SCHEMA})}


class SchemaService:
    """Resolves schema ids through system then tooltype providers."""

    def __init__(
        self,
        system_providers: Optional[Dict[str, SchemaProviderProtocol]] = None,
        tooltype_providers: Optional[Dict[str, SchemaProviderProtocol]] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._system = system_providers if system_providers is not None else default_system_providers()
        self._tooltypes = dict(tooltype_providers or {})
        self._logger = get_component_logger("SchemaService", logger)

    def register_tooltype(self, tool_type: str, provider: SchemaProviderProtocol) -> None:
        self._tooltypes[tool_type] = provider

    async def execute(
        self,
        operation: str,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> OperationResult:
        if operation == "get":
            schema_id = params.get("id")
            if not schema_id:
                return OperationResult.failure("Missing required parameter: id")
            schema = self.get_schema(str(schema_id))
            if schema is None:
                return OperationResult.failure(f"Schema not found: {schema_id}")
            return OperationResult.ok({"schema_id": schema_id, "content": schema})

        if operation == "list":
            ids = self.list_schema_ids()
            return OperationResult.ok({"schema_ids": ids, "count": len(ids)})

        return OperationResult.failure(f"Unknown operation: {operation}")

    def get_schema(self, schema_id: str) -> Optional[Dict[str, Any]]:
        for prefix, provider in self._system.items():
            if not schema_id.startswith(prefix):
                continue
            schema = self._safe_get(f"system:{prefix}", provider, schema_id)
            if schema is not None:
                return schema

        for tool_type, provider in self._tooltypes.items():
            schema = self._safe_get(tool_type, provider, schema_id)
            if schema is not None:
                return schema

        self._logger.debug("schema_not_found", schema_id=schema_id)
        return None

    def list_schema_ids(self) -> List[str]:
        ids = set()
        for name, provider in [*self._system.items(), *self._tooltypes.items()]:
            try:
                ids.update(provider.schema_ids())
            except Exception as e:
                self._logger.warning("schema_provider_list_failed", provider=name, error=str(e))
        return sorted(ids)

    def _safe_get(self, name: str, provider: SchemaProviderProtocol, schema_id: str) -> Optional[Dict[str, Any]]:
        try:
            return provider.get_schema(schema_id)
        except Exception as e:
            self._logger.warning(
                "schema_provider_failed",
                provider=name,
                schema_id=schema_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None


__all__ = [
    "SchemaService",
    "StaticSchemaProvider",
    "ZONE_CONFIG_SCHEMA",
    "default_system_providers",
]
