"""
Report Service

Ties the record store, the definition registry and the artifact pipeline
together:

    service = ReportService(repository, registry, pipeline)
    result = service.generate("session_001")
    result.artifact.file_path   # generated-reports/report_session_001.pdf
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from healthreport.core.classifier import coerce_number
from healthreport.core.registry import ReportDefinitionRegistry
from healthreport.core.reports.assembler import assemble_document
from healthreport.core.reports.document import RenderableDocument, ReportArtifact
from healthreport.core.reports.fields import stringify
from healthreport.core.reports.pipeline import ReportPipeline
from healthreport.utils import DataMissingError, get_logger, session_logger
from .repository import AssessmentRepository, Record

logger = get_logger(__name__)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else stringify(value)


@dataclass(frozen=True)
class GenerationResult:
    artifact: ReportArtifact
    assessment_type_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assessment_type_id": self.assessment_type_id,
            **self.artifact.to_dict(),
        }


class ReportService:
    """Generates per-session PDF reports on request."""

    def __init__(
        self,
        repository: AssessmentRepository,
        registry: ReportDefinitionRegistry,
        pipeline: ReportPipeline,
    ):
        self.repository = repository
        self.registry = registry
        self.pipeline = pipeline

    def _record(self, session_id: str) -> Record:
        record = self.repository.get(session_id)
        if record is None:
            raise DataMissingError(f"Assessment data not found for session {session_id}", session_id=session_id)
        return record

    def build_document(self, session_id: str, today: Optional[date] = None) -> RenderableDocument:
        """Assemble a session's document without rendering it."""
        record = self._record(session_id)
        definition = self.registry.require(str(record.get("assessment_id", "")))
        return assemble_document(record, definition, today=today)

    def generate(self, session_id: str, today: Optional[date] = None) -> GenerationResult:
        """
        Produce (or reuse) the PDF for a session.

        Raises:
            DataMissingError: no record for the session
            ConfigMissingError: the record's assessment type has no definition
            RenderFailureError / ArtifactIOError: from the pipeline
        """
        session_logger(logger, session_id).info("Report requested")
        record = self._record(session_id)
        assessment_type_id = str(record.get("assessment_id", ""))
        definition = self.registry.require(assessment_type_id)

        artifact = self.pipeline.generate(record, definition, today=today)
        return GenerationResult(artifact=artifact, assessment_type_id=assessment_type_id)

    def list_sessions(self) -> List[Dict[str, Any]]:
        """Summaries for listing; record values are normalised, never validated."""
        return [
            {
                "session_id": stringify(record.get("session_id", "")),
                "assessment_id": _optional_text(record.get("assessment_id")),
                "timestamp": record.get("timestamp"),
                "accuracy": coerce_number(record.get("accuracy")),
            }
            for record in self.repository.list_sessions()
        ]
