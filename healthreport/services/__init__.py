"""
Services - record lookup and report orchestration
"""
from .repository import AssessmentRepository, InMemoryAssessmentRepository, JsonAssessmentRepository
from .report_service import GenerationResult, ReportService

__all__ = [
    "AssessmentRepository",
    "InMemoryAssessmentRepository",
    "JsonAssessmentRepository",
    "GenerationResult",
    "ReportService",
]
