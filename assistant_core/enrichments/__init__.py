"""Enrichment models and the resolution engine."""

from assistant_core.enrichments.models import (
    EnrichmentType,
    PointerContext,
    SelectionLevel,
    TimestampSelection,
    parse_enrichment,
)
from assistant_core.enrichments.processor import EnrichmentProcessor, build_command_id
from assistant_core.enrichments.temporal import TemporalResolver

__all__ = [
    "EnrichmentType",
    "PointerContext",
    "SelectionLevel",
    "TimestampSelection",
    "parse_enrichment",
    "EnrichmentProcessor",
    "build_command_id",
    "TemporalResolver",
]
