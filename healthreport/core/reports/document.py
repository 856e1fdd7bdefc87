"""
Renderable Document Model

In-memory, fully resolved representation of one report. Built fresh for
every render pass and handed to the layout stage; nothing here is persisted
except the ReportArtifact reference.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from healthreport.core.classifier import Classification
from healthreport.models.definitions import FieldDefinition, SectionKind

NOT_AVAILABLE = "N/A"

Score = Union[int, float, str]


@dataclass(frozen=True)
class ResolvedField:
    """One field after path resolution and classification."""
    definition: FieldDefinition
    value: Any                                  # ABSENT when the path did not resolve
    classification: Optional[Classification] = None


@dataclass(frozen=True)
class DisplayUnit:
    """A field as shown in a grid: label, formatted value, optional badge."""
    field_id: str
    label: str
    display_value: str
    badge: Optional[Classification] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_id": self.field_id,
            "label": self.label,
            "display_value": self.display_value,
            "badge": self.badge.to_dict() if self.badge else None,
        }


@dataclass(frozen=True)
class ExerciseCard:
    """One entry of a list-structured section."""
    name: str
    score_display: str                          # "85%" or "N/A"
    analysis: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    completed_reps: Any = 0
    assigned_reps: Any = 0
    sets: Any = 0

    @property
    def reps_display(self) -> str:
        return f"{self.completed_reps}/{self.assigned_reps}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score_display,
            "analysis": list(self.analysis),
            "recommendations": list(self.recommendations),
            "reps": self.reps_display,
            "sets": self.sets,
        }


@dataclass(frozen=True)
class RenderableSection:
    """
    A section ready for layout.

    Exactly one of the content shapes is populated: ``units`` for grids,
    ``cards`` for list-structured content, or ``placeholder`` when there is
    no data to show.
    """
    section_id: str
    title: str
    kind: SectionKind
    units: List[DisplayUnit] = field(default_factory=list)
    cards: List[ExerciseCard] = field(default_factory=list)
    placeholder: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.placeholder is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "section_id": self.section_id,
            "title": self.title,
            "kind": self.kind.value,
            "units": [u.to_dict() for u in self.units],
            "cards": [c.to_dict() for c in self.cards],
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True)
class PatientInfo:
    session_id: str
    assessment_type: str
    gender: str = NOT_AVAILABLE
    age: Union[int, str] = NOT_AVAILABLE
    height: Any = NOT_AVAILABLE
    weight: Any = NOT_AVAILABLE
    bmi: Any = NOT_AVAILABLE
    assessment_date: str = NOT_AVAILABLE

    def display_items(self) -> List[tuple]:
        """(label, value) pairs in the order they appear on the report."""
        def with_unit(value: Any, unit: str) -> str:
            return NOT_AVAILABLE if value == NOT_AVAILABLE else f"{value} {unit}"

        return [
            ("Session ID", str(self.session_id)),
            ("Assessment Type", str(self.assessment_type)),
            ("Patient Gender", str(self.gender)),
            ("Age", str(self.age)),
            ("Height", with_unit(self.height, "cm")),
            ("Weight", with_unit(self.weight, "kg")),
            ("BMI", str(self.bmi)),
            ("Assessment Date", self.assessment_date),
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "assessment_type": self.assessment_type,
            "gender": self.gender,
            "age": self.age,
            "height": self.height,
            "weight": self.weight,
            "bmi": self.bmi,
            "assessment_date": self.assessment_date,
        }


@dataclass(frozen=True)
class OverallScore:
    """Headline score: numeric or "N/A", with the badge colour."""
    value: Score
    color: str

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)

    @property
    def display(self) -> str:
        if self.is_numeric:
            return f"{self.value}%"
        return str(self.value)


@dataclass(frozen=True)
class RenderableDocument:
    title: str
    subtitle: str
    patient_info: PatientInfo
    overall_score: OverallScore
    sections: List[RenderableSection]
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "patient_info": self.patient_info.to_dict(),
            "overall_score": self.overall_score.display,
            "sections": [s.to_dict() for s in self.sections],
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class ReportArtifact:
    """Reference to a persisted report file."""
    file_name: str
    file_path: Path
    session_id: str
    reused: bool = False            # True when an existing file was returned

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_path": str(self.file_path),
            "session_id": self.session_id,
            "reused": self.reused,
        }
