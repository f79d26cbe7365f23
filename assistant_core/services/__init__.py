"""Resource services reachable through the coordinator."""

from assistant_core.services.backup_service import BackupService
from assistant_core.services.multi_phase import MultiPhaseService, TransientStateStore
from assistant_core.services.schema_service import SchemaService, StaticSchemaProvider

__all__ = [
    "BackupService",
    "MultiPhaseService",
    "SchemaService",
    "StaticSchemaProvider",
    "TransientStateStore",
]
