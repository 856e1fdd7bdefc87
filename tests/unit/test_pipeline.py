"""
Unit Tests for the Render-to-Artifact Pipeline
"""
import time
from contextlib import contextmanager
from datetime import datetime

import pytest

from healthreport.core.reports.assembler import assemble_document
from healthreport.core.reports.pipeline import (
    ArtifactNaming,
    RenderJob,
    RenderState,
    ReportPipeline,
    is_safe_file_name,
)
from healthreport.core.reports.renderer import PageOptions
from healthreport.utils import (
    ArtifactIOError,
    ArtifactNotFoundError,
    InvalidFileNameError,
    RenderFailureError,
)


class BrokenWriteSession:
    """Leaves a partial file behind, then fails."""

    closed = False

    def load(self, content):
        pass

    def settle(self, delay):
        pass

    def write(self, path, page_options):
        path.write_bytes(b"partial")
        raise OSError("disk full")


class SlowWriteSession:
    """Writes a complete file, but only after ``delay`` seconds."""

    closed = False
    written = False

    def __init__(self, delay):
        self.delay = delay

    def load(self, content):
        pass

    def settle(self, delay):
        pass

    def write(self, path, page_options):
        time.sleep(self.delay)
        path.write_bytes(b"%PDF-1.4\n")
        self.written = True


@pytest.fixture
def document(registry, health_record):
    return assemble_document(health_record, registry.require("as_hr_02"), generated_at=datetime(2025, 3, 14))


class TestRenderJob:
    """Tests for the render state machine."""

    def test_happy_path(self):
        job = RenderJob("s1", timeout=5)
        for state in (
            RenderState.BUILDING,
            RenderState.AWAITING_LAYOUT,
            RenderState.PAGINATING,
            RenderState.WRITTEN,
            RenderState.CLOSED,
        ):
            job.transition(state)
        assert job.history[0] == RenderState.IDLE
        assert job.state == RenderState.CLOSED

    def test_skipping_a_stage_is_illegal(self):
        job = RenderJob("s1", timeout=5)
        with pytest.raises(RuntimeError):
            job.transition(RenderState.PAGINATING)

    def test_fail_from_any_active_state(self):
        job = RenderJob("s1", timeout=5)
        job.transition(RenderState.BUILDING)
        job.transition(RenderState.AWAITING_LAYOUT)
        assert job.fail() == RenderState.AWAITING_LAYOUT
        assert job.state == RenderState.FAILED

    def test_deadline(self):
        now = [0.0]
        job = RenderJob("s1", timeout=2, clock=lambda: now[0])
        assert job.remaining() == 2
        now[0] = 1.5
        job.check_deadline()
        now[0] = 2.5
        assert job.remaining() == 0
        with pytest.raises(RenderFailureError):
            job.check_deadline()


class TestNaming:

    def test_session_scheme(self, pipeline):
        assert pipeline.file_name_for("session_001") == "report_session_001.pdf"

    def test_timestamp_scheme(self, output_dir, mock_renderer):
        pipeline = ReportPipeline(
            output_dir, renderer=mock_renderer, naming="session_timestamp", now_ms=lambda: 1741945200000,
        )
        assert pipeline.naming is ArtifactNaming.SESSION_TIMESTAMP
        assert pipeline.file_name_for("s1") == "report_s1_1741945200000.pdf"

    @pytest.mark.parametrize("session_id", ["../etc", "a/b", "", "sess 1", "x.pdf"])
    def test_unsafe_session_ids_rejected(self, pipeline, session_id):
        with pytest.raises(InvalidFileNameError):
            pipeline.file_name_for(session_id)

    @pytest.mark.parametrize("name,safe", [
        ("report_session_001.pdf", True),
        ("report_s1_1741945200000.pdf", True),
        ("../report_s1.pdf", False),
        ("report_s1.pdf/..", False),
        ("report_..pdf", False),
        ("other.pdf", False),
        ("report_s1.txt", False),
        ("", False),
    ])
    def test_is_safe_file_name(self, name, safe):
        assert is_safe_file_name(name) is safe


class TestPageOptions:

    def test_defaults(self):
        options = PageOptions()
        assert options.page_size == "A4"
        assert (options.margin_top, options.margin_right, options.margin_bottom, options.margin_left) == (20, 15, 20, 15)
        assert options.print_background is True
        assert options.display_header_footer is False

    def test_content_width(self):
        # A4 is 595.28pt wide; 30mm of side margins is ~85.04pt
        assert PageOptions().content_width == pytest.approx(510.24, abs=0.1)


class TestRender:

    def test_writes_artifact(self, pipeline, mock_renderer, document, output_dir):
        artifact = pipeline.render(document, "session_001")

        assert artifact.file_name == "report_session_001.pdf"
        assert artifact.file_path == output_dir / "report_session_001.pdf"
        assert artifact.file_path.read_bytes().startswith(b"%PDF")
        assert not artifact.reused
        mock_renderer.build.assert_called_once_with(document, pipeline.page_options)

        session = mock_renderer.sessions[0]
        assert session.loaded == ["story"]
        assert session.closed

    def test_output_dir_created_lazily(self, pipeline, document, output_dir):
        assert not output_dir.exists()
        pipeline.render(document, "session_001")
        assert output_dir.is_dir()

    def test_repeat_render_reuses_file(self, pipeline, mock_renderer, document):
        first = pipeline.render(document, "session_001")
        second = pipeline.render(document, "session_001")

        assert second.reused
        assert second.file_path == first.file_path
        assert mock_renderer.build.call_count == 1
        assert mock_renderer.session.call_count == 1

    def test_existing_file_is_never_overwritten(self, pipeline, mock_renderer, document, output_dir):
        output_dir.mkdir(parents=True)
        existing = output_dir / "report_session_001.pdf"
        existing.write_bytes(b"%PDF-original")

        artifact = pipeline.render(document, "session_001")

        assert artifact.reused
        assert existing.read_bytes() == b"%PDF-original"
        mock_renderer.build.assert_not_called()

    def test_concurrent_winner_is_kept(self, pipeline, mock_renderer, document, output_dir):
        """A file that appears while rendering wins; the duplicate is discarded."""
        target = output_dir / "report_session_001.pdf"

        def build(doc, options):
            target.write_bytes(b"%PDF-winner")
            return ["story"]

        mock_renderer.build.side_effect = build
        artifact = pipeline.render(document, "session_001")

        assert artifact.reused
        assert target.read_bytes() == b"%PDF-winner"
        assert list(output_dir.iterdir()) == [target]

    def test_temp_files_removed(self, pipeline, document, output_dir):
        pipeline.render(document, "session_001")
        assert [p.name for p in output_dir.iterdir()] == ["report_session_001.pdf"]

    def test_settle_delay_capped_by_timeout(self, output_dir, mock_renderer, document):
        pipeline = ReportPipeline(output_dir, renderer=mock_renderer, settle_delay=60, timeout=5)
        pipeline.render(document, "session_001")
        assert 0 < mock_renderer.sessions[0].settled <= 5

    def test_settle_delay_passed_through(self, output_dir, mock_renderer, document):
        pipeline = ReportPipeline(output_dir, renderer=mock_renderer, settle_delay=1.0, timeout=30)
        pipeline.render(document, "session_001")
        assert mock_renderer.sessions[0].settled == 1.0


class TestRenderFailures:

    def test_build_failure(self, pipeline, mock_renderer, document, output_dir):
        mock_renderer.build.side_effect = ValueError("bad story")

        with pytest.raises(RenderFailureError) as exc_info:
            pipeline.render(document, "session_001")

        assert exc_info.value.details["state"] == RenderState.BUILDING.value
        assert not (output_dir / "report_session_001.pdf").exists()
        mock_renderer.session.assert_not_called()

    def test_write_failure_tears_down_session(self, pipeline, mock_renderer, document, output_dir):
        @contextmanager
        def session():
            broken = BrokenWriteSession()
            mock_renderer.sessions.append(broken)
            try:
                yield broken
            finally:
                broken.closed = True

        mock_renderer.session.side_effect = session

        with pytest.raises(RenderFailureError) as exc_info:
            pipeline.render(document, "session_001")

        assert exc_info.value.details["state"] == RenderState.PAGINATING.value
        assert mock_renderer.sessions[0].closed
        assert list(output_dir.iterdir()) == []

    def test_timeout(self, output_dir, mock_renderer, document):
        pipeline = ReportPipeline(output_dir, renderer=mock_renderer, settle_delay=0, timeout=0)
        with pytest.raises(RenderFailureError) as exc_info:
            pipeline.render(document, "session_001")
        assert "timed out" in exc_info.value.message
        assert mock_renderer.sessions[0].closed
        assert not (output_dir / "report_session_001.pdf").exists()

    def test_slow_write_overrun_is_reported_after_it_returns(self, output_dir, mock_renderer, document):
        pipeline = ReportPipeline(output_dir, renderer=mock_renderer, settle_delay=0, timeout=0.05)

        @contextmanager
        def session():
            slow = SlowWriteSession(delay=0.1)
            mock_renderer.sessions.append(slow)
            try:
                yield slow
            finally:
                slow.closed = True

        mock_renderer.session.side_effect = session

        with pytest.raises(RenderFailureError) as exc_info:
            pipeline.render(document, "session_001")

        assert "timed out" in exc_info.value.message
        assert exc_info.value.details["state"] == RenderState.PAGINATING.value
        # the write ran to completion, but its output was not published
        assert mock_renderer.sessions[0].written
        assert mock_renderer.sessions[0].closed
        assert list(output_dir.iterdir()) == []

    def test_unwritable_output_dir(self, tmp_path, mock_renderer, document):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        pipeline = ReportPipeline(blocker / "reports", renderer=mock_renderer, settle_delay=0)

        with pytest.raises(ArtifactIOError):
            pipeline.render(document, "session_001")
        mock_renderer.build.assert_not_called()


class TestResolveArtifact:

    def test_existing(self, pipeline, document):
        artifact = pipeline.render(document, "session_001")
        assert pipeline.resolve_artifact("report_session_001.pdf") == artifact.file_path

    def test_missing(self, pipeline):
        with pytest.raises(ArtifactNotFoundError):
            pipeline.resolve_artifact("report_nobody.pdf")

    def test_traversal(self, pipeline):
        with pytest.raises(InvalidFileNameError):
            pipeline.resolve_artifact("../secrets.pdf")


class TestGenerate:

    def test_existing_artifact_skips_assembly(self, pipeline, mock_renderer, registry, health_record, output_dir):
        output_dir.mkdir(parents=True)
        (output_dir / "report_session_001.pdf").write_bytes(b"%PDF-cached")

        artifact = pipeline.generate(health_record, registry.require("as_hr_02"))

        assert artifact.reused
        mock_renderer.build.assert_not_called()

    def test_generate_renders_assembled_document(self, pipeline, mock_renderer, registry, fitness_record):
        artifact = pipeline.generate(fitness_record, registry.require("as_fit_01"))

        assert artifact.file_name == "report_session_003.pdf"
        document = mock_renderer.build.call_args[0][0]
        assert document.title == "Fitness Screening Report"
        assert document.overall_score.display == "85%"
