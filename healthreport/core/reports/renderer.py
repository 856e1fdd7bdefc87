"""
Document Renderer

Narrow interface around the heavyweight layout/rasterisation engine:

    content = renderer.build(document, page_options)     # templating
    with renderer.session() as session:                  # scoped engine
        session.load(content)
        session.settle(delay)
        session.write(path, page_options)

The session is torn down on every exit path. Any engine (reportlab here, a
headless browser elsewhere) can sit behind the same two protocols.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ContextManager, Iterator, List, Optional, Protocol, runtime_checkable

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate

from healthreport.utils import get_logger
from .document import RenderableDocument
from .layout import ReportLayout

logger = get_logger(__name__)

_PAGE_SIZES = {"A4": A4, "LETTER": LETTER}


@dataclass(frozen=True)
class PageOptions:
    """Fixed page contract handed to the engine (margins in millimetres)."""
    page_size: str = "A4"
    margin_top: float = 20
    margin_right: float = 15
    margin_bottom: float = 20
    margin_left: float = 15
    print_background: bool = True
    display_header_footer: bool = False

    @property
    def page_dimensions(self) -> tuple:
        return _PAGE_SIZES[self.page_size.upper()]

    @property
    def content_width(self) -> float:
        """Usable width in points."""
        return self.page_dimensions[0] - (self.margin_left + self.margin_right) * mm


@runtime_checkable
class RenderSession(Protocol):
    def load(self, content: Any) -> None:
        """Hand the built content to the engine."""
        ...

    def settle(self, delay: float) -> None:
        """Best-effort wait for asynchronous resources (fonts) to finish loading."""
        ...

    def write(self, path: Path, page_options: PageOptions) -> Path:
        """Lay out, paginate and write the file; returns the path written."""
        ...


@runtime_checkable
class DocumentRenderer(Protocol):
    def build(self, document: RenderableDocument, page_options: PageOptions) -> Any:
        ...

    def session(self) -> ContextManager[RenderSession]:
        ...


class ReportlabSession:
    """One engine instance; holds the story between load and write."""

    def __init__(self, author: str = "HealthPro Analytics"):
        self.author = author
        self._story: Optional[List[Any]] = None
        self.closed = False

    def load(self, content: Any) -> None:
        if not isinstance(content, list) or not content:
            raise ValueError("reportlab session expects a non-empty story")
        self._story = content

    def settle(self, delay: float) -> None:
        if delay > 0:
            time.sleep(delay)

    def _page_number(self, canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(
            doc.pagesize[0] - doc.rightMargin, doc.bottomMargin / 2, f"Page {doc.page}"
        )
        canvas.restoreState()

    def write(self, path: Path, page_options: PageOptions) -> Path:
        if self._story is None:
            raise RuntimeError("nothing loaded into the render session")

        doc = SimpleDocTemplate(
            str(path),
            pagesize=page_options.page_dimensions,
            topMargin=page_options.margin_top * mm,
            rightMargin=page_options.margin_right * mm,
            bottomMargin=page_options.margin_bottom * mm,
            leftMargin=page_options.margin_left * mm,
            author=self.author,
        )
        if page_options.display_header_footer:
            doc.build(self._story, onFirstPage=self._page_number, onLaterPages=self._page_number)
        else:
            doc.build(self._story)
        return Path(path)

    def close(self) -> None:
        self._story = None
        self.closed = True


class ReportlabRenderer:
    """Default engine: reportlab platypus layout written straight to PDF."""

    def build(self, document: RenderableDocument, page_options: PageOptions) -> List[Any]:
        layout = ReportLayout(
            content_width=page_options.content_width,
            print_background=page_options.print_background,
        )
        return layout.build(document)

    @contextmanager
    def session(self) -> Iterator[ReportlabSession]:
        session = ReportlabSession()
        logger.debug("Render session opened")
        try:
            yield session
        finally:
            session.close()
            logger.debug("Render session closed")
