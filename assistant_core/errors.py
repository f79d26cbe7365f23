"""Exception hierarchy for the assistant core.

Dispatcher and service failures are returned as ``OperationResult``
values. Exceptions here cover caller mistakes and resolution failures.
"""

from typing import Optional


class AssistantCoreError(Exception):
    """Base class for all assistant core errors."""


class EnrichmentConfigError(AssistantCoreError):
    """Enrichment configuration could not be parsed or validated."""

    def __init__(self, enrichment_type: str, message: str):
        self.enrichment_type = enrichment_type
        super().__init__(f"Invalid {enrichment_type} enrichment config: {message}")


class SchemaResolutionError(AssistantCoreError):
    """A schema id required to build commands could not be resolved."""

    def __init__(self, tool_instance_id: str, schema_kind: str, reason: Optional[str] = None):
        self.tool_instance_id = tool_instance_id
        self.schema_kind = schema_kind
        self.reason = reason
        message = f"Cannot resolve {schema_kind} schema for tool instance {tool_instance_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TemporalSelectionError(AssistantCoreError):
    """Time filter is malformed or mixes encodings on one side."""


class CommandTransformError(AssistantCoreError):
    """A data command lacks what is needed to build its dispatcher route."""


class OperationCancelledError(AssistantCoreError):
    """Raised inside long-running phases when the token is cancelled."""


class TransientStoreFullError(AssistantCoreError):
    """Bounded transient state store refused a new operation."""

    def __init__(self, max_entries: int):
        self.max_entries = max_entries
        super().__init__(f"Transient state store is full ({max_entries} operations in flight)")


__all__ = [
    "AssistantCoreError",
    "EnrichmentConfigError",
    "SchemaResolutionError",
    "TemporalSelectionError",
    "CommandTransformError",
    "OperationCancelledError",
    "TransientStoreFullError",
]
