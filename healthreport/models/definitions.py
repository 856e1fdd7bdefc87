"""
Report Definition Schemas

Strongly-typed declarative description of a report: which sections to show
for an assessment type, which fields each section holds, and how numeric
values are banded. Loaded once from a static table and validated up front.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class SectionKind(str, Enum):
    """Layout variants a section can request."""
    VITALS = "vitals"
    BODY_COMPOSITION = "body_composition"
    EXERCISES = "exercises"
    CARDIOVASCULAR = "cardiovascular"
    GLUCOSE = "glucose"
    RISK_ASSESSMENT = "risk_assessment"
    CUSTOM = "custom"


class FieldFormat(str, Enum):
    PLAIN = "plain"
    PERCENTAGE = "percentage"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ClassificationRange(_Frozen):
    """One labelled band. Omitted bounds are open-ended; bounds are inclusive."""
    min: Optional[float] = None
    max: Optional[float] = None
    label: str
    color: str = Field(pattern=HEX_COLOR_PATTERN)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ClassificationRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"range '{self.label}' has min {self.min} > max {self.max}")
        return self


class ClassificationSpec(_Frozen):
    """Ordered ranges; the first range containing the value wins."""
    ranges: List[ClassificationRange] = Field(default_factory=list)


class FieldDefinition(_Frozen):
    id: str
    label: str
    data_path: str = Field(min_length=1)
    unit: Optional[str] = None
    format: FieldFormat = FieldFormat.PLAIN
    classification: Optional[ClassificationSpec] = None
    # Tried in order when data_path does not resolve
    fallback_paths: List[str] = Field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [self.data_path, *self.fallback_paths]


class SectionDefinition(_Frozen):
    id: str
    title: str
    layout_kind: SectionKind = SectionKind.CUSTOM
    # Only used by list-structured kinds (exercises)
    source_path: Optional[str] = None
    fields: List[FieldDefinition] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def _unique_field_ids(cls, fields: List[FieldDefinition]) -> List[FieldDefinition]:
        seen = set()
        for f in fields:
            if f.id in seen:
                raise ValueError(f"duplicate field id '{f.id}'")
            seen.add(f.id)
        return fields


class ReportDefinition(_Frozen):
    assessment_type_id: str = Field(min_length=1)
    title: str
    subtitle: str = "Comprehensive Health Assessment Report"
    sections: List[SectionDefinition] = Field(default_factory=list)

    @field_validator("sections")
    @classmethod
    def _unique_section_ids(cls, sections: List[SectionDefinition]) -> List[SectionDefinition]:
        seen = set()
        for s in sections:
            if s.id in seen:
                raise ValueError(f"duplicate section id '{s.id}'")
            seen.add(s.id)
        return sections


class DefinitionTable(_Frozen):
    """On-disk shape of the definitions file."""
    definitions: List[ReportDefinition]
