"""Enrichment payloads: one immutable pydantic model per variant.

The wire format is camelCase JSON; fields are exposed in snake_case and
accept both spellings. ``config_schema()`` is the machine description of
a variant's configuration shape handed to the AI.
"""

import json
from abc import abstractmethod
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from assistant_core.errors import EnrichmentConfigError, TemporalSelectionError
from assistant_core.utils.periods import PeriodType


class EnrichmentType(str, Enum):
    POINTER = "POINTER"
    USE = "USE"
    CREATE = "CREATE"
    MODIFY_CONFIG = "MODIFY_CONFIG"
    ORGANIZE = "ORGANIZE"
    DOCUMENT = "DOCUMENT"


class SelectionLevel(str, Enum):
    ZONE = "ZONE"
    INSTANCE = "INSTANCE"
    FIELD = "FIELD"


class PointerContext(str, Enum):
    GENERIC = "GENERIC"
    CONFIG = "CONFIG"
    DATA = "DATA"
    EXECUTIONS = "EXECUTIONS"


class _EnrichmentModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=False,
    )

    @classmethod
    def config_schema(cls) -> Dict[str, Any]:
        return cls.model_json_schema(by_alias=True)

    @abstractmethod
    def display_label(self) -> str:
        """Short human label used in enrichment summaries."""


# =============================================================================
# TIME FILTER
# =============================================================================

class RelativePeriodSpec(BaseModel):
    """Period counted from the current one: offset -1 with WEEK is last week."""
    model_config = ConfigDict(frozen=True)

    offset: int
    type: PeriodType


class PeriodSpec(BaseModel):
    """Concrete period identified by its start timestamp."""
    model_config = ConfigDict(frozen=True)

    timestamp: int
    type: PeriodType


class TimestampSelection(BaseModel):
    """Start/end filter. Each side is relative or absolute, never both."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    min_relative_period: Optional[RelativePeriodSpec] = Field(default=None, alias="minRelativePeriod")
    max_relative_period: Optional[RelativePeriodSpec] = Field(default=None, alias="maxRelativePeriod")
    min_period: Optional[PeriodSpec] = Field(default=None, alias="minPeriod")
    max_period: Optional[PeriodSpec] = Field(default=None, alias="maxPeriod")
    min_custom_date_time: Optional[int] = Field(default=None, alias="minCustomDateTime")
    max_custom_date_time: Optional[int] = Field(default=None, alias="maxCustomDateTime")

    @model_validator(mode="after")
    def check_single_encoding_per_side(self) -> "TimestampSelection":
        if self.min_relative_period and (self.min_period or self.min_custom_date_time is not None):
            raise TemporalSelectionError("start of period mixes relative and absolute encodings")
        if self.max_relative_period and (self.max_period or self.max_custom_date_time is not None):
            raise TemporalSelectionError("end of period mixes relative and absolute encodings")
        return self

    @property
    def is_empty(self) -> bool:
        return not any((
            self.min_relative_period,
            self.max_relative_period,
            self.min_period,
            self.max_period,
            self.min_custom_date_time is not None,
            self.max_custom_date_time is not None,
        ))


# =============================================================================
# VARIANTS
# =============================================================================

class PointerEnrichment(_EnrichmentModel):
    """Reference to existing data: a zone, a tool instance or one of its fields."""

    selected_path: str = Field(default="", alias="selectedPath")
    selection_level: Optional[SelectionLevel] = Field(default=None, alias="selectionLevel")
    selected_context: PointerContext = Field(default=PointerContext.GENERIC, alias="selectedContext")
    selected_resources: List[str] = Field(default_factory=list, alias="selectedResources")
    importance: str = "important"
    timestamp_selection: Optional[TimestampSelection] = Field(default=None, alias="timestampSelection")
    zone_name: Optional[str] = Field(default=None, alias="selectedZoneName")
    tool_name: Optional[str] = Field(default=None, alias="selectedToolName")

    @property
    def is_optional(self) -> bool:
        return self.importance.strip().lower() == "optional"

    @property
    def path_segments(self) -> List[str]:
        return [s for s in self.selected_path.replace("/", ".").split(".") if s]

    def target_id(self, kind: str) -> Optional[str]:
        """Id following ``kind`` in the path: ``tools.T1`` gives T1 for "tools"."""
        segments = self.path_segments
        for i, segment in enumerate(segments[:-1]):
            if segment == kind:
                return segments[i + 1]
        return None

    def display_label(self) -> str:
        if self.selection_level == SelectionLevel.ZONE:
            return f"Zone {self.zone_name or self.target_id('zones') or self.selected_path}"
        name = self.tool_name or self.target_id("tools") or self.selected_path
        return f"Tool {name}" if name else "Pointer"


class UseEnrichment(_EnrichmentModel):
    tool_instance_id: str = Field(alias="toolInstanceId", min_length=1)
    operation: str = "create"
    timestamp: Optional[int] = None

    def display_label(self) -> str:
        return f"{self.operation} entries {self.tool_instance_id}"


class CreateEnrichment(_EnrichmentModel):
    tool_type: str = Field(default="", alias="toolType")
    zone_name: str = Field(default="", alias="zoneName")
    suggested_name: Optional[str] = Field(default=None, alias="suggestedName")

    def display_label(self) -> str:
        name = self.suggested_name or self.tool_type or "tool"
        return f"create {name} in zone {self.zone_name}".rstrip()


class ModifyConfigEnrichment(_EnrichmentModel):
    tool_instance_id: str = Field(alias="toolInstanceId", min_length=1)
    aspect: str = "config"
    description: Optional[str] = None

    def display_label(self) -> str:
        return f"modify {self.aspect} of {self.tool_instance_id}"


class OrganizeEnrichment(_EnrichmentModel):
    action: Literal["move", "reorder", "group", "archive"] = "move"
    element_id: str = Field(default="", alias="elementId")
    target_id: Optional[str] = Field(default=None, alias="targetId")

    def display_label(self) -> str:
        label = f"{self.action} {self.element_id}"
        if self.target_id:
            label += f" to {self.target_id}"
        return label


class DocumentEnrichment(_EnrichmentModel):
    element_type: str = Field(default="tool", alias="elementType")
    element_id: str = Field(default="", alias="elementId")
    doc_type: str = Field(default="description", alias="docType")

    def display_label(self) -> str:
        return f"document {self.doc_type} of {self.element_type} {self.element_id}"


Enrichment = Union[
    PointerEnrichment,
    UseEnrichment,
    CreateEnrichment,
    ModifyConfigEnrichment,
    OrganizeEnrichment,
    DocumentEnrichment,
]

ENRICHMENT_MODELS: Dict[EnrichmentType, Type[_EnrichmentModel]] = {
    EnrichmentType.POINTER: PointerEnrichment,
    EnrichmentType.USE: UseEnrichment,
    EnrichmentType.CREATE: CreateEnrichment,
    EnrichmentType.MODIFY_CONFIG: ModifyConfigEnrichment,
    EnrichmentType.ORGANIZE: OrganizeEnrichment,
    EnrichmentType.DOCUMENT: DocumentEnrichment,
}


def parse_enrichment(
    enrichment_type: Union[EnrichmentType, str],
    config: Union[str, Dict[str, Any], BaseModel],
) -> Enrichment:
    """Build the typed payload for ``enrichment_type`` from JSON or a dict.

    Raises:
        EnrichmentConfigError: unknown type, malformed JSON or invalid fields
    """
    try:
        enrichment_type = EnrichmentType(enrichment_type)
    except ValueError as e:
        raise EnrichmentConfigError(str(enrichment_type), "unknown enrichment type") from e

    model = ENRICHMENT_MODELS[enrichment_type]
    if isinstance(config, model):
        return config

    if isinstance(config, str):
        try:
            config = json.loads(config) if config.strip() else {}
        except json.JSONDecodeError as e:
            raise EnrichmentConfigError(enrichment_type.value, f"malformed JSON ({e.msg})") from e
    if not isinstance(config, dict):
        raise EnrichmentConfigError(enrichment_type.value, "configuration must be a JSON object")

    try:
        return model.model_validate(config)
    except TemporalSelectionError as e:
        raise EnrichmentConfigError(enrichment_type.value, str(e)) from e
    except ValidationError as e:
        raise EnrichmentConfigError(enrichment_type.value, str(e)) from e


__all__ = [
    "EnrichmentType",
    "SelectionLevel",
    "PointerContext",
    "RelativePeriodSpec",
    "PeriodSpec",
    "TimestampSelection",
    "PointerEnrichment",
    "UseEnrichment",
    "CreateEnrichment",
    "ModifyConfigEnrichment",
    "OrganizeEnrichment",
    "DocumentEnrichment",
    "Enrichment",
    "ENRICHMENT_MODELS",
    "parse_enrichment",
]
