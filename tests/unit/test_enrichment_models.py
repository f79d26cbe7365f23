"""Tests for enrichment payload models."""

import inspect

import pytest

from assistant_core.enrichments.models import (
    ENRICHMENT_MODELS,
    CreateEnrichment,
    EnrichmentType,
    OrganizeEnrichment,
    PointerContext,
    PointerEnrichment,
    SelectionLevel,
    UseEnrichment,
    _EnrichmentModel,
    parse_enrichment,
)
from assistant_core.errors import EnrichmentConfigError


# =============================================================================
# PARSING
# =============================================================================

class TestParseEnrichment:

    def test_camel_case_json(self):
        pointer = parse_enrichment(
            "POINTER",
            '{"selectedPath": "zones.Z1.tools.T1", "selectionLevel": "INSTANCE", "selectedContext": "DATA"}',
        )

        assert isinstance(pointer, PointerEnrichment)
        assert pointer.selection_level == SelectionLevel.INSTANCE
        assert pointer.target_id("zones") == "Z1"
        assert pointer.target_id("tools") == "T1"

    def test_snake_case_dict(self):
        use = parse_enrichment(EnrichmentType.USE, {"tool_instance_id": "T1"})
        assert use.tool_instance_id == "T1"

    def test_model_instance_passes_through(self):
        use = UseEnrichment(toolInstanceId="T1")
        assert parse_enrichment(EnrichmentType.USE, use) is use

    def test_context_defaults_to_generic(self):
        assert parse_enrichment("POINTER", {}).selected_context == PointerContext.GENERIC

    def test_extra_fields_ignored(self):
        create = parse_enrichment("CREATE", {"toolType": "tracking", "zoneName": "Health", "color": "red"})
        assert create == CreateEnrichment(toolType="tracking", zoneName="Health")

    @pytest.mark.parametrize("config, fragment", [
        ("{broken", "malformed JSON"),
        ("[1, 2]", "JSON object"),
        ({}, "toolInstanceId"),
        ({"toolInstanceId": ""}, "toolInstanceId"),
    ])
    def test_invalid_use_config(self, config, fragment):
        with pytest.raises(EnrichmentConfigError, match=fragment) as exc_info:
            parse_enrichment(EnrichmentType.USE, config)
        assert exc_info.value.enrichment_type == "USE"

    def test_unknown_type(self):
        with pytest.raises(EnrichmentConfigError, match="unknown enrichment type"):
            parse_enrichment("SUMMARIZE", {})

    def test_mixed_encoding_on_one_side(self):
        config = {
            "timestampSelection": {
                "minRelativePeriod": {"offset": -1, "type": "WEEK"},
                "minCustomDateTime": 1000,
            }
        }
        with pytest.raises(EnrichmentConfigError, match="start of period"):
            parse_enrichment("POINTER", config)

    def test_mixed_encoding_across_sides_allowed(self):
        pointer = parse_enrichment("POINTER", {
            "timestampSelection": {
                "minRelativePeriod": {"offset": -1, "type": "WEEK"},
                "maxCustomDateTime": 1000,
            }
        })
        assert not pointer.timestamp_selection.is_empty

    def test_literal_action(self):
        with pytest.raises(EnrichmentConfigError):
            parse_enrichment("ORGANIZE", {"action": "explode"})


# =============================================================================
# LABELS AND SCHEMAS
# =============================================================================

class TestLabels:

    def test_pointer_zone_label(self):
        pointer = PointerEnrichment(selectionLevel="ZONE", selectedPath="zones.Z1", selectedZoneName="Health")
        assert pointer.display_label() == "Zone Health"

    def test_pointer_tool_label_falls_back_to_id(self):
        assert PointerEnrichment(selectedPath="tools.T1").display_label() == "Tool T1"

    def test_optional_is_case_insensitive(self):
        assert PointerEnrichment(importance=" Optional ").is_optional

    def test_organize_label(self):
        label = OrganizeEnrichment(action="move", elementId="T1", targetId="Z2").display_label()
        assert label == "move T1 to Z2"


@pytest.mark.parametrize("enrichment_type", list(EnrichmentType))
def test_every_variant_publishes_a_config_schema(enrichment_type):
    schema = ENRICHMENT_MODELS[enrichment_type].config_schema()
    assert schema["type"] == "object"


@pytest.mark.parametrize("enrichment_type", list(EnrichmentType))
def test_every_variant_implements_display_label(enrichment_type):
    assert not inspect.isabstract(ENRICHMENT_MODELS[enrichment_type])


def test_base_payload_cannot_be_instantiated():
    assert inspect.isabstract(_EnrichmentModel)
    with pytest.raises(TypeError):
        _EnrichmentModel()


def test_config_schema_uses_wire_names():
    properties = PointerEnrichment.config_schema()["properties"]
    assert "selectedPath" in properties
    assert "selected_path" not in properties
