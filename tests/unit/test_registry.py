"""
Unit Tests for Report Definitions and the Definition Registry
"""
import json

import pytest
from pydantic import ValidationError

from healthreport.core.registry import ReportDefinitionRegistry
from healthreport.models import (
    ClassificationRange,
    ReportDefinition,
    SectionDefinition,
    SectionKind,
)
from healthreport.utils import ConfigMissingError, DefinitionLoadError


def _definition(type_id: str = "as_test", **overrides) -> dict:
    payload = {
        "assessment_type_id": type_id,
        "title": "Test Report",
        "sections": [
            {
                "id": "main",
                "title": "Main",
                "fields": [{"id": "hr", "label": "Heart Rate", "data_path": "vitalsMap.vitals.heart_rate"}],
            }
        ],
    }
    payload.update(overrides)
    return payload


class TestDefinitionSchemas:

    def test_defaults(self):
        definition = ReportDefinition.model_validate(_definition())
        section = definition.sections[0]
        assert section.layout_kind == SectionKind.CUSTOM
        assert definition.subtitle == "Comprehensive Health Assessment Report"
        assert section.fields[0].paths == ["vitalsMap.vitals.heart_rate"]

    def test_invalid_color_rejected(self):
        with pytest.raises(ValidationError):
            ClassificationRange(min=0, label="Bad", color="red")

    def test_min_greater_than_max_rejected(self):
        with pytest.raises(ValidationError):
            ClassificationRange(min=10, max=5, label="Bad", color="#000000")

    def test_duplicate_field_ids_rejected(self):
        with pytest.raises(ValidationError):
            SectionDefinition(
                id="s",
                title="S",
                fields=[
                    {"id": "a", "label": "A", "data_path": "x"},
                    {"id": "a", "label": "A again", "data_path": "y"},
                ],
            )

    def test_duplicate_section_ids_rejected(self):
        section = {"id": "dup", "title": "Dup"}
        with pytest.raises(ValidationError):
            ReportDefinition.model_validate(_definition(sections=[section, section]))

    def test_unknown_layout_kind_rejected(self):
        with pytest.raises(ValidationError):
            SectionDefinition(id="s", title="S", layout_kind="carousel")

    def test_definitions_are_frozen(self):
        definition = ReportDefinition.model_validate(_definition())
        with pytest.raises(ValidationError):
            definition.title = "Changed"


class TestReportDefinitionRegistry:

    def test_bundled_table(self, registry):
        assert set(registry.assessment_types()) >= {"as_hr_02", "as_card_01", "as_fit_01"}
        assert "as_hr_02" in registry
        assert len(registry) == len(list(registry))

    def test_bundled_sections_in_order(self, registry):
        definition = registry.require("as_hr_02")
        assert [s.id for s in definition.sections] == [
            "overall_health", "key_vitals", "body_composition", "fitness_levels",
        ]

    def test_fitness_definition_uses_specialised_kinds(self, registry):
        kinds = {s.layout_kind for s in registry.require("as_fit_01").sections}
        assert kinds == set(SectionKind) - {SectionKind.CUSTOM}

    def test_lookup_unknown(self, registry):
        assert registry.lookup("as_unknown_99") is None

    def test_require_unknown_raises_config_missing(self, registry):
        with pytest.raises(ConfigMissingError) as exc_info:
            registry.require("as_unknown_99")
        assert exc_info.value.code == "CONFIG_MISSING"
        assert "as_unknown_99" in exc_info.value.message

    def test_duplicate_assessment_type_rejected(self):
        with pytest.raises(DefinitionLoadError):
            ReportDefinitionRegistry.from_dict({"definitions": [_definition(), _definition()]})

    def test_schema_errors_reported(self):
        bad = _definition(sections=[{"id": "s", "title": "S", "layout_kind": "nope"}])
        with pytest.raises(DefinitionLoadError) as exc_info:
            ReportDefinitionRegistry.from_dict({"definitions": [bad]})
        assert exc_info.value.details["errors"]

    def test_from_file_malformed_json(self, tmp_path):
        path = tmp_path / "defs.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DefinitionLoadError):
            ReportDefinitionRegistry.from_file(path)

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(DefinitionLoadError):
            ReportDefinitionRegistry.from_file(tmp_path / "missing.json")

    def test_from_file_round_trip(self, tmp_path):
        path = tmp_path / "defs.json"
        path.write_text(json.dumps({"definitions": [_definition("as_a"), _definition("as_b")]}), encoding="utf-8")
        registry = ReportDefinitionRegistry.from_file(path)
        assert registry.assessment_types() == ["as_a", "as_b"]
        assert registry.source == str(path)

    def test_registry_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry._definitions["as_new"] = None
