"""
Unit Tests for the Report Service and Assessment Repositories
"""
import json

import pytest

from healthreport.services import (
    AssessmentRepository,
    InMemoryAssessmentRepository,
    JsonAssessmentRepository,
    ReportService,
)
from healthreport.utils import ConfigMissingError, DataMissingError, DefinitionLoadError


class TestRepositories:

    def test_in_memory(self, sample_records):
        repository = InMemoryAssessmentRepository(sample_records)
        assert isinstance(repository, AssessmentRepository)
        assert repository.get("session_002")["assessment_id"] == "as_card_01"
        assert repository.get("missing") is None
        assert len(repository.list_sessions()) == len(sample_records)

    def test_record_without_session_id(self):
        with pytest.raises(ValueError):
            InMemoryAssessmentRepository([{"assessment_id": "as_hr_02"}])

    def test_json_file(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps([
            {"session_id": "a", "assessment_id": "as_hr_02"},
            {"assessment_id": "no-session"},
            "not a record",
        ]), encoding="utf-8")

        repository = JsonAssessmentRepository(path)
        assert len(repository) == 1
        assert repository.get("a")["assessment_id"] == "as_hr_02"

    def test_json_file_must_be_a_list(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps({"session_id": "a"}), encoding="utf-8")
        with pytest.raises(DefinitionLoadError):
            JsonAssessmentRepository(path)

    def test_json_file_missing(self, tmp_path):
        with pytest.raises(DefinitionLoadError):
            JsonAssessmentRepository(tmp_path / "missing.json")


class TestReportService:

    def test_generate(self, report_service, output_dir):
        result = report_service.generate("session_001")

        assert result.assessment_type_id == "as_hr_02"
        assert result.artifact.file_path == output_dir / "report_session_001.pdf"
        assert result.artifact.file_path.exists()
        assert result.to_dict()["file_name"] == "report_session_001.pdf"

    def test_generate_twice_renders_once(self, report_service, mock_renderer):
        first = report_service.generate("session_003")
        second = report_service.generate("session_003")

        assert not first.artifact.reused
        assert second.artifact.reused
        assert mock_renderer.session.call_count == 1

    def test_unknown_session(self, report_service, output_dir):
        with pytest.raises(DataMissingError) as exc_info:
            report_service.generate("session_999")
        assert exc_info.value.details["session_id"] == "session_999"
        assert not output_dir.exists()

    def test_unknown_assessment_type_writes_nothing(self, report_service, mock_renderer, output_dir):
        with pytest.raises(ConfigMissingError) as exc_info:
            report_service.generate("session_004")

        assert exc_info.value.details["assessment_type_id"] == "as_unknown_99"
        mock_renderer.build.assert_not_called()
        assert not output_dir.exists()

    def test_build_document(self, report_service):
        document = report_service.build_document("session_002")
        assert document.title == "Cardiac Assessment Report"
        assert document.patient_info.age == 47

    def test_list_sessions(self, report_service):
        sessions = {s["session_id"]: s for s in report_service.list_sessions()}
        assert sessions["session_001"]["accuracy"] == 82.46
        assert sessions["session_003"]["accuracy"] is None
        assert set(sessions["session_002"]) == {"session_id", "assessment_id", "timestamp", "accuracy"}

    def test_injected_repository(self, registry, pipeline):
        repository = InMemoryAssessmentRepository([
            {"session_id": "custom_1", "assessment_id": "as_card_01", "accuracy": 91},
        ])
        service = ReportService(repository, registry, pipeline)
        assert service.generate("custom_1").artifact.file_name == "report_custom_1.pdf"
