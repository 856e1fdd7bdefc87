"""
Report Engine Core

Usage:
    from healthreport.core import ReportDefinitionRegistry, resolve, classify

    registry = ReportDefinitionRegistry.from_file(path)
    definition = registry.require(record["assessment_id"])
"""
from .resolver import ABSENT, resolve, resolve_first
from .classifier import Classification, classify, coerce_number
from .registry import ReportDefinitionRegistry

__all__ = [
    "ABSENT",
    "resolve",
    "resolve_first",
    "Classification",
    "classify",
    "coerce_number",
    "ReportDefinitionRegistry",
]
