"""
Render-to-Artifact Pipeline

Serialises a RenderableDocument through the rendering engine and persists
it as one PDF per session under the output directory.

State machine for one render:

    IDLE → BUILDING → AWAITING_LAYOUT → PAGINATING → WRITTEN → CLOSED
      └──────────────┴─────────────────┴────────────→ FAILED

Caching: the file name is derived from the session id alone (or session id
plus generation time under the timestamped scheme). When the file already
exists it is returned as-is and the engine is never launched.

Concurrent renders of the same session are not serialised. Each render
writes a private temp file and publishes it with an atomic create-if-absent
link; the first writer wins and later duplicates are discarded.

The timeout is enforced between stages: the settle wait is capped by the
time left, and a build or write that overruns fails the render when it
returns, before anything is published.
"""
from __future__ import annotations

import os
import re
import time
import uuid
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Union

from healthreport.models.definitions import ReportDefinition
from healthreport.utils import (
    ArtifactIOError,
    ArtifactNotFoundError,
    InvalidFileNameError,
    RenderFailureError,
    ReportEngineError,
    get_logger,
    session_logger,
)
from .assembler import assemble_document
from .document import RenderableDocument, ReportArtifact
from .renderer import DocumentRenderer, PageOptions, ReportlabRenderer

logger = get_logger(__name__)

FILE_PREFIX = "report_"
FILE_EXTENSION = ".pdf"

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_FILE_NAME_RE = re.compile(r"^report_[A-Za-z0-9_-]+\.pdf$")


class RenderState(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    AWAITING_LAYOUT = "awaiting_layout"
    PAGINATING = "paginating"
    WRITTEN = "written"
    CLOSED = "closed"
    FAILED = "failed"


_TRANSITIONS = {
    RenderState.IDLE: {RenderState.BUILDING},
    RenderState.BUILDING: {RenderState.AWAITING_LAYOUT},
    RenderState.AWAITING_LAYOUT: {RenderState.PAGINATING},
    RenderState.PAGINATING: {RenderState.WRITTEN},
    RenderState.WRITTEN: {RenderState.CLOSED},
    RenderState.CLOSED: set(),
    RenderState.FAILED: set(),
}

_TERMINAL = {RenderState.WRITTEN, RenderState.CLOSED, RenderState.FAILED}


class ArtifactNaming(str, Enum):
    """How artifact file names are derived."""
    SESSION = "session"                        # report_<sid>.pdf
    SESSION_TIMESTAMP = "session_timestamp"    # report_<sid>_<epoch-ms>.pdf


class RenderJob:
    """
    Tracks the state and deadline of a single render.

    The deadline is checked after each engine stage returns. A stage that
    blocks is not interrupted; its overrun is reported as a timeout once it
    finishes, and the partial output is discarded.
    """

    def __init__(self, session_id: str, timeout: float, clock: Callable[[], float] = time.monotonic):
        self.session_id = session_id
        self.timeout = timeout
        self._clock = clock
        self._started = clock()
        self.state = RenderState.IDLE
        self.history: List[RenderState] = [RenderState.IDLE]
        self.log = session_logger(logger, session_id)

    def transition(self, new_state: RenderState) -> None:
        if new_state is RenderState.FAILED:
            if self.state in _TERMINAL:
                raise RuntimeError(f"cannot fail a render in state {self.state.value}")
        elif new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"illegal render transition {self.state.value} -> {new_state.value}"
            )
        self.log.debug(f"render {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def fail(self) -> RenderState:
        """Move to FAILED; returns the state the failure happened in."""
        failed_in = self.state
        if failed_in not in _TERMINAL:
            self.transition(RenderState.FAILED)
        return failed_in

    def remaining(self) -> float:
        return max(0.0, self.timeout - (self._clock() - self._started))

    def check_deadline(self) -> None:
        if self.remaining() <= 0:
            raise RenderFailureError(
                f"PDF generation timed out after {self.timeout:.1f}s",
                session_id=self.session_id,
                state=self.state.value,
            )


def is_safe_file_name(file_name: str) -> bool:
    """True only for names this engine itself produces (no paths, no traversal)."""
    if not file_name or ".." in file_name or "/" in file_name or "\\" in file_name:
        return False
    return bool(_FILE_NAME_RE.match(file_name))


class ReportPipeline:
    """
    Generates and caches report PDFs.

    Args:
        output_dir: Directory holding one file per generated report
        renderer: Rendering engine (reportlab by default)
        page_options: Fixed page contract for the engine
        naming: File naming scheme
        settle_delay: Wait after loading content, before pagination
        timeout: Cap on one render, settle delay included
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        renderer: Optional[DocumentRenderer] = None,
        page_options: Optional[PageOptions] = None,
        naming: Union[ArtifactNaming, str] = ArtifactNaming.SESSION,
        settle_delay: float = 1.0,
        timeout: float = 30.0,
        now_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self.output_dir = Path(output_dir)
        self.renderer = renderer or ReportlabRenderer()
        self.page_options = page_options or PageOptions()
        self.naming = ArtifactNaming(naming)
        self.settle_delay = settle_delay
        self.timeout = timeout
        self._now_ms = now_ms

    # ── Naming ───────────────────────────────────────────────────────────

    def file_name_for(self, session_id: str) -> str:
        if not _SESSION_ID_RE.match(str(session_id)):
            raise InvalidFileNameError(
                f"Session id {session_id!r} cannot be used in a report file name",
                file_name=str(session_id),
            )
        if self.naming is ArtifactNaming.SESSION_TIMESTAMP:
            return f"{FILE_PREFIX}{session_id}_{self._now_ms()}{FILE_EXTENSION}"
        return f"{FILE_PREFIX}{session_id}{FILE_EXTENSION}"

    def find_existing(self, session_id: str) -> Optional[ReportArtifact]:
        """The already-rendered artifact for this session, if any."""
        if self.naming is ArtifactNaming.SESSION_TIMESTAMP:
            # Every timestamped name is new
            return None
        file_name = self.file_name_for(session_id)
        path = self.output_dir / file_name
        if path.is_file():
            return ReportArtifact(file_name=file_name, file_path=path, session_id=session_id, reused=True)
        return None

    def resolve_artifact(self, file_name: str) -> Path:
        """Path of a stored artifact for the read-only download interface."""
        if not is_safe_file_name(file_name):
            raise InvalidFileNameError("Invalid file name", file_name=file_name)
        path = self.output_dir / file_name
        if not path.is_file():
            raise ArtifactNotFoundError("File not found", file_name=file_name)
        return path

    # ── Generation ───────────────────────────────────────────────────────

    def generate(
        self,
        record: Mapping[str, Any],
        definition: ReportDefinition,
        today: Optional[date] = None,
    ) -> ReportArtifact:
        """Assemble and render a record, unless its artifact already exists."""
        session_id = str(record.get("session_id", ""))
        existing = self.find_existing(session_id)
        if existing is not None:
            logger.info(f"PDF already exists: {existing.file_path}")
            return existing

        document = assemble_document(record, definition, generated_at=datetime.now(), today=today)
        return self.render(document, session_id)

    def _ensure_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactIOError(
                f"Cannot create output directory: {e}", path=str(self.output_dir)
            ) from e

    def _publish(self, tmp_path: Path, path: Path, session_id: str) -> ReportArtifact:
        try:
            os.link(tmp_path, path)
        except FileExistsError:
            session_logger(logger, session_id).warning(
                f"{path.name} was written concurrently; duplicate render discarded"
            )
            return ReportArtifact(file_name=path.name, file_path=path, session_id=session_id, reused=True)
        except OSError as e:
            raise ArtifactIOError(f"Cannot write report file: {e}", path=str(path)) from e
        return ReportArtifact(file_name=path.name, file_path=path, session_id=session_id)

    def render(self, document: RenderableDocument, session_id: str) -> ReportArtifact:
        """
        Render ``document`` to this session's artifact.

        Raises:
            RenderFailureError: the engine failed or exceeded the timeout
            ArtifactIOError: the output directory or file could not be written
        """
        file_name = self.file_name_for(session_id)
        path = self.output_dir / file_name
        if path.is_file():
            logger.info(f"PDF already exists: {path}")
            return ReportArtifact(file_name=file_name, file_path=path, session_id=session_id, reused=True)

        self._ensure_output_dir()

        job = RenderJob(session_id, self.timeout)
        tmp_path = self.output_dir / f".{file_name}.{uuid.uuid4().hex}.tmp"
        try:
            job.transition(RenderState.BUILDING)
            content = self.renderer.build(document, self.page_options)

            with self.renderer.session() as session:
                job.transition(RenderState.AWAITING_LAYOUT)
                session.load(content)
                session.settle(min(self.settle_delay, job.remaining()))
                job.check_deadline()

                job.transition(RenderState.PAGINATING)
                session.write(tmp_path, self.page_options)
                job.check_deadline()

            artifact = self._publish(tmp_path, path, session_id)
            job.transition(RenderState.WRITTEN)
        except ReportEngineError:
            failed_in = job.fail()
            job.log.error(f"PDF generation failed in state {failed_in.value}")
            raise
        except Exception as e:
            failed_in = job.fail()
            job.log.error(f"PDF generation failed in state {failed_in.value}: {e}")
            raise RenderFailureError(
                f"PDF generation failed: {e}",
                session_id=session_id,
                state=failed_in.value,
            ) from e
        finally:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove temp file {tmp_path}: {e}")

        job.transition(RenderState.CLOSED)
        if not artifact.reused:
            job.log.info(f"PDF generated successfully: {path}")
        return artifact
