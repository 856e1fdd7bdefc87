"""
Report Generation Module

Assessment record + report definition → RenderableDocument → PDF artifact.
- assembler/sections/fields: pure document assembly
- layout/renderer: reportlab templating and the scoped render session
- pipeline: state machine, caching and atomic publication of artifacts
"""
from .document import (
    NOT_AVAILABLE,
    DisplayUnit,
    ExerciseCard,
    OverallScore,
    PatientInfo,
    RenderableDocument,
    RenderableSection,
    ReportArtifact,
)
from .assembler import assemble_document, resolve_overall_score, score_color
from .sections import assemble_section
from .renderer import DocumentRenderer, PageOptions, ReportlabRenderer, RenderSession
from .pipeline import ArtifactNaming, RenderJob, RenderState, ReportPipeline, is_safe_file_name

__all__ = [
    "NOT_AVAILABLE",
    "DisplayUnit",
    "ExerciseCard",
    "OverallScore",
    "PatientInfo",
    "RenderableDocument",
    "RenderableSection",
    "ReportArtifact",
    "assemble_document",
    "resolve_overall_score",
    "score_color",
    "assemble_section",
    "DocumentRenderer",
    "PageOptions",
    "ReportlabRenderer",
    "RenderSession",
    "ArtifactNaming",
    "RenderJob",
    "RenderState",
    "ReportPipeline",
    "is_safe_file_name",
]
