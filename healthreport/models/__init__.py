"""
Schemas - report definitions and API payloads
"""
from .definitions import (
    SectionKind,
    FieldFormat,
    ClassificationRange,
    ClassificationSpec,
    FieldDefinition,
    SectionDefinition,
    ReportDefinition,
    DefinitionTable,
)
from .api import (
    ReportRequest,
    ReportResponse,
    SessionSummary,
    AssessmentTypeSummary,
    HealthResponse,
)

__all__ = [
    "SectionKind",
    "FieldFormat",
    "ClassificationRange",
    "ClassificationSpec",
    "FieldDefinition",
    "SectionDefinition",
    "ReportDefinition",
    "DefinitionTable",
    "ReportRequest",
    "ReportResponse",
    "SessionSummary",
    "AssessmentTypeSummary",
    "HealthResponse",
]
