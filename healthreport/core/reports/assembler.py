"""
Report Assembler

Composes patient/session metadata, the headline score and every section of
a report definition into one RenderableDocument.
"""
from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, List, Mapping, Optional, Union

from healthreport.core.classifier import coerce_number
from healthreport.core.resolver import ABSENT, resolve, resolve_first
from healthreport.models.definitions import ReportDefinition
from healthreport.utils import get_logger
from .document import NOT_AVAILABLE, OverallScore, PatientInfo, RenderableDocument, Score
from .fields import stringify
from .sections import assemble_section

logger = get_logger(__name__)

_PHYSIO = "vitalsMap.metadata.physiological_scores"

# Headline badge colours
SCORE_GOOD = "#10b981"
SCORE_WARNING = "#f59e0b"
SCORE_BAD = "#ef4444"
SCORE_NEUTRAL = "#64748b"


def _parse_date(value: Any) -> date:
    """Parse an ISO date/datetime string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            # Full timestamps with offsets, e.g. "2000-06-15T00:00:00Z"
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    raise ValueError(f"unsupported date value: {value!r}")


def calculate_age(dob: Any, today: Optional[date] = None) -> Union[int, str]:
    """
    Exact calendar age: year difference, minus one if this year's birthday
    has not happened yet. Any parse failure yields "N/A".
    """
    try:
        born = _parse_date(dob)
    except (TypeError, ValueError) as e:
        logger.debug(f"Unparseable date of birth {dob!r}: {e}")
        return NOT_AVAILABLE

    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    raise ValueError(f"unsupported timestamp: {value!r}")


def format_assessment_date(timestamp: Any) -> str:
    """en-US locale date string (M/D/YYYY), or "N/A"."""
    try:
        moment = _parse_timestamp(timestamp)
    except (TypeError, ValueError, OverflowError, OSError):
        return NOT_AVAILABLE
    return f"{moment.month}/{moment.day}/{moment.year}"


def _or_na(value: Any) -> Any:
    return NOT_AVAILABLE if value is ABSENT else value


def extract_patient_info(record: Mapping[str, Any], today: Optional[date] = None) -> PatientInfo:
    dob = resolve(record, f"{_PHYSIO}.dob")
    if dob is not ABSENT:
        age = calculate_age(dob, today=today)
    else:
        age = _or_na(resolve(record, "bodyCompositionData.Age"))

    return PatientInfo(
        session_id=stringify(record.get("session_id", NOT_AVAILABLE)),
        assessment_type=stringify(record.get("assessment_id", NOT_AVAILABLE)),
        gender=stringify(_or_na(resolve(record, "gender"))),
        age=age,
        height=_or_na(resolve_first(record, ["height", f"{_PHYSIO}.height"])),
        weight=_or_na(resolve_first(record, ["weight", f"{_PHYSIO}.weight"])),
        bmi=_or_na(resolve_first(record, ["bodyCompositionData.BMI", f"{_PHYSIO}.bmi"])),
        assessment_date=format_assessment_date(record.get("timestamp")),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def collect_sub_scores(record: Mapping[str, Any]) -> List[float]:
    """Every exercise score plus the wellness sub-score, when present."""
    scores = []
    exercises = resolve(record, "exercises")
    if isinstance(exercises, (list, tuple)):
        for exercise in exercises:
            if isinstance(exercise, Mapping):
                score = coerce_number(exercise.get("analysisScore"))
                if score is not None:
                    scores.append(score)

    wellness = coerce_number(resolve(record, "vitalsMap.wellness_score"))
    if wellness is not None:
        scores.append(wellness)
    return scores


def resolve_overall_score(record: Mapping[str, Any]) -> Score:
    """
    accuracy → vitalsMap.wellness_score → finalScore → rounded mean of the
    sub-scores → "N/A".
    """
    for path in ("accuracy", "vitalsMap.wellness_score", "finalScore"):
        value = resolve(record, path)
        number = coerce_number(value)
        if number is not None:
            return value if isinstance(value, (int, float)) else number

    scores = collect_sub_scores(record)
    if scores:
        return _round_half_up(sum(scores) / len(scores))
    return NOT_AVAILABLE


def score_color(score: Score) -> str:
    number = coerce_number(score)
    if number is None:
        return SCORE_NEUTRAL
    if number >= 80:
        return SCORE_GOOD
    if number >= 60:
        return SCORE_WARNING
    return SCORE_BAD


def assemble_document(
    record: Mapping[str, Any],
    definition: ReportDefinition,
    generated_at: Optional[datetime] = None,
    today: Optional[date] = None,
) -> RenderableDocument:
    """Build the full document; sections keep the definition's order."""
    score = resolve_overall_score(record)
    sections = [assemble_section(section, record) for section in definition.sections]

    logger.debug(
        f"Assembled '{definition.assessment_type_id}' document with {len(sections)} section(s), "
        f"overall score {score}"
    )

    return RenderableDocument(
        title=definition.title,
        subtitle=definition.subtitle,
        patient_info=extract_patient_info(record, today=today),
        overall_score=OverallScore(value=score, color=score_color(score)),
        sections=sections,
        generated_at=generated_at or datetime.now(),
    )
