"""
Pytest Configuration and Fixtures

Shared fixtures for report engine tests.
"""
import copy
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from healthreport.config import DEFAULT_ASSESSMENTS_PATH, DEFAULT_DEFINITIONS_PATH
from healthreport.core.registry import ReportDefinitionRegistry
from healthreport.core.reports.pipeline import ReportPipeline
from healthreport.services import InMemoryAssessmentRepository, ReportService


@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """The bundled sample assessment records (a fresh copy per test)."""
    with open(DEFAULT_ASSESSMENTS_PATH, "r", encoding="utf-8") as f:
        return copy.deepcopy(json.load(f))


@pytest.fixture
def records_by_session(sample_records) -> Dict[str, Dict[str, Any]]:
    return {record["session_id"]: record for record in sample_records}


@pytest.fixture
def health_record(records_by_session) -> Dict[str, Any]:
    """as_hr_02 record with accuracy, wellness and a date of birth."""
    return records_by_session["session_001"]


@pytest.fixture
def cardiac_record(records_by_session) -> Dict[str, Any]:
    """as_card_01 record with epoch-ms timestamp and physio-only height/weight."""
    return records_by_session["session_002"]


@pytest.fixture
def fitness_record(records_by_session) -> Dict[str, Any]:
    """as_fit_01 record with exercises and no direct overall score."""
    return records_by_session["session_003"]


@pytest.fixture(scope="session")
def registry() -> ReportDefinitionRegistry:
    """Registry loaded from the bundled definitions table."""
    return ReportDefinitionRegistry.from_file(DEFAULT_DEFINITIONS_PATH)


@pytest.fixture
def output_dir(tmp_path) -> Path:
    """Report output directory (not yet created)."""
    return tmp_path / "generated-reports"


class FakeSession:
    """Render session that writes a tiny PDF-looking file."""

    def __init__(self):
        self.loaded = None
        self.settled = None
        self.closed = False

    def load(self, content):
        self.loaded = content

    def settle(self, delay):
        self.settled = delay

    def write(self, path, page_options):
        Path(path).write_bytes(b"%PDF-1.4\n%fake\n")
        return Path(path)


@pytest.fixture
def mock_renderer() -> MagicMock:
    """
    Renderer double: ``build`` and ``session`` are MagicMocks so tests can
    count launches; sessions are real FakeSession objects.
    """
    renderer = MagicMock()
    renderer.build.return_value = ["story"]
    renderer.sessions = []

    @contextmanager
    def session():
        fake = FakeSession()
        renderer.sessions.append(fake)
        try:
            yield fake
        finally:
            fake.closed = True

    renderer.session.side_effect = session
    return renderer


@pytest.fixture
def pipeline(output_dir, mock_renderer) -> ReportPipeline:
    return ReportPipeline(output_dir=output_dir, renderer=mock_renderer, settle_delay=0, timeout=5)


@pytest.fixture
def report_service(sample_records, registry, pipeline) -> ReportService:
    return ReportService(InMemoryAssessmentRepository(sample_records), registry, pipeline)
