"""
Section Assembler

One pure function per SectionKind, each (SectionDefinition, record) ->
RenderableSection, registered in _SECTION_ASSEMBLERS below.

Grid kinds share one rule: fields whose value is absent are dropped, and a
section with nothing left shows a "no data" placeholder instead of an empty
grid. Specialised kinds bring default field sets (used when the definition
declares no fields of its own) and a scope path whose absence short-circuits
to a kind-specific placeholder.

Adding a new kind:
    1. Add the value to SectionKind
    2. Write assemble_<kind>(section, record) -> RenderableSection
    3. Register it in _SECTION_ASSEMBLERS
"""
from __future__ import annotations

from collections.abc import Mapping as MappingABC
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from healthreport.core.classifier import coerce_number
from healthreport.core.resolver import ABSENT, resolve
from healthreport.models.definitions import FieldDefinition, SectionDefinition, SectionKind
from healthreport.utils import get_logger
from .document import NOT_AVAILABLE, DisplayUnit, ExerciseCard, RenderableSection
from .fields import render_field, resolve_field, stringify

logger = get_logger(__name__)

Record = Mapping[str, Any]
SectionAssembler = Callable[[SectionDefinition, Record], RenderableSection]

NO_DATA = "No data available for this section"
NO_CONFIG = "No section configuration available"

_PHYSIO = "vitalsMap.metadata.physiological_scores"


def _f(field_id: str, label: str, path: str, unit: Optional[str] = None, *fallbacks: str) -> FieldDefinition:
    return FieldDefinition(id=field_id, label=label, data_path=path, unit=unit, fallback_paths=list(fallbacks))


# ── Default field sets ───────────────────────────────────────────────────────

VITALS_FIELDS = [
    _f("heart_rate", "Heart Rate", "vitalsMap.vitals.heart_rate", "bpm"),
    _f("oxygen_saturation", "Oxygen Saturation", "vitalsMap.vitals.oxy_sat_prcnt", "%"),
    _f("respiratory_rate", "Respiratory Rate", "vitalsMap.vitals.resp_rate", "breaths/min"),
]

BODY_COMPOSITION_FIELDS = [
    _f("bmi", "BMI", "bodyCompositionData.BMI", "kg/m²", f"{_PHYSIO}.bmi"),
    _f("body_fat", "Body Fat %", "bodyCompositionData.BFC", "%", f"{_PHYSIO}.bodyfat"),
    _f("muscle_age", "Muscle Age", "bodyCompositionData.M_Age", "years"),
    _f("bmr", "Basal Metabolic Rate", "bodyCompositionData.BMR", "kcal"),
    _f("lean_mass", "Lean Mass", "bodyCompositionData.LM", "kg"),
    _f("fat_mass", "Fat Mass", "bodyCompositionData.FM", "kg"),
    _f("whr", "Waist-to-Hip Ratio", "bodyCompositionData.WHR"),
    _f("total_body_water", "Total Body Water", f"{_PHYSIO}.tbwp", "%"),
]

CARDIOVASCULAR_FIELDS = [
    _f("cardiac_output", "Cardiac Output", "vitalsMap.metadata.cardiovascular.cardiac_out", "L/min"),
    _f("mean_arterial_pressure", "Mean Arterial Pressure", "vitalsMap.metadata.cardiovascular.map", "mmHg"),
    _f("prq", "PRQ", "vitalsMap.metadata.cardiovascular.prq"),
    _f("vo2max", "VO2 Max", f"{_PHYSIO}.vo2max", "ml/kg/min"),
]

GLUCOSE_FIELDS = [
    _f("diabetes_control_score", "Diabetes Control Score", "vitalsMap.metadata.glucose_info.diabetes_control_score"),
    _f("hba1c", "HbA1c", "vitalsMap.metadata.glucose_info.hba1c", "%"),
    _f("glucose_status", "Status", "vitalsMap.metadata.glucose_info.status"),
]

RISK_ASSESSMENT_FIELDS = [
    _f("health_risk_score", "Health Risk Score", "vitalsMap.health_risk_score"),
    _f("stress_index", "Stress Index", "vitalsMap.metadata.heart_scores.stress_index"),
    _f("sdnn", "Heart Rate Variability", "vitalsMap.metadata.heart_scores.sdnn", "ms"),
    _f("rmssd", "RMSSD", "vitalsMap.metadata.heart_scores.rmssd", "ms"),
    _f("pnn50", "pNN50", "vitalsMap.metadata.heart_scores.pNN50_per", "%"),
]


# ── Shared helpers ───────────────────────────────────────────────────────────

def _section(section: SectionDefinition, **content: Any) -> RenderableSection:
    return RenderableSection(
        section_id=section.id,
        title=section.title,
        kind=section.layout_kind,
        **content,
    )


def _placeholder(section: SectionDefinition, text: str) -> RenderableSection:
    return _section(section, placeholder=text)


def render_units(fields: Sequence[FieldDefinition], record: Record) -> List[DisplayUnit]:
    """Resolve, classify and format each field; absent fields are dropped."""
    units = []
    for definition in fields:
        unit = render_field(resolve_field(definition, record))
        if unit is None:
            logger.debug(f"Field '{definition.id}' absent at {definition.data_path}, omitted")
            continue
        units.append(unit)
    return units


def _grid(section: SectionDefinition, units: List[DisplayUnit]) -> RenderableSection:
    if not units:
        return _placeholder(section, NO_DATA)
    return _section(section, units=units)


def _scoped_grid(
    section: SectionDefinition,
    record: Record,
    defaults: Sequence[FieldDefinition],
    scope_path: Optional[str] = None,
    missing_text: str = NO_DATA,
) -> RenderableSection:
    if scope_path and resolve(record, scope_path) is ABSENT:
        return _placeholder(section, missing_text)
    return _grid(section, render_units(section.fields or defaults, record))


# ── Assemblers ───────────────────────────────────────────────────────────────

def _blood_pressure_unit(record: Record) -> Optional[DisplayUnit]:
    systolic = resolve(record, "vitalsMap.vitals.bp_sys")
    diastolic = resolve(record, "vitalsMap.vitals.bp_dia")
    if systolic is ABSENT or diastolic is ABSENT:
        return None
    return DisplayUnit(
        field_id="blood_pressure",
        label="Blood Pressure",
        display_value=f"{stringify(systolic)}/{stringify(diastolic)} mmHg",
    )


def assemble_vitals(section: SectionDefinition, record: Record) -> RenderableSection:
    if resolve(record, "vitalsMap.vitals") is ABSENT:
        return _placeholder(section, "No vital data available")
    if section.fields:
        return _grid(section, render_units(section.fields, record))

    units = render_units(VITALS_FIELDS, record)
    bp = _blood_pressure_unit(record)
    if bp is not None:
        units.insert(1, bp)
    return _grid(section, units)


def assemble_body_composition(section: SectionDefinition, record: Record) -> RenderableSection:
    return _scoped_grid(section, record, BODY_COMPOSITION_FIELDS)


def assemble_cardiovascular(section: SectionDefinition, record: Record) -> RenderableSection:
    return _scoped_grid(
        section, record, CARDIOVASCULAR_FIELDS,
        scope_path="vitalsMap.metadata.cardiovascular",
        missing_text="No cardiovascular data available",
    )


def assemble_glucose(section: SectionDefinition, record: Record) -> RenderableSection:
    return _scoped_grid(
        section, record, GLUCOSE_FIELDS,
        scope_path="vitalsMap.metadata.glucose_info",
        missing_text="No glucose data available",
    )


def assemble_risk_assessment(section: SectionDefinition, record: Record) -> RenderableSection:
    return _scoped_grid(section, record, RISK_ASSESSMENT_FIELDS)


def _text_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [stringify(item) for item in value if item is not None]
    return []


def _tally(entry: Mapping[str, Any], key: str) -> Any:
    value = entry.get(key)
    return 0 if value is None else value


def build_exercise_card(entry: Mapping[str, Any], position: int) -> ExerciseCard:
    score = coerce_number(entry.get("analysisScore"))
    return ExerciseCard(
        name=stringify(entry.get("name") or f"Exercise {position}"),
        score_display=NOT_AVAILABLE if score is None else f"{stringify(score)}%",
        analysis=_text_list(entry.get("analysisList")),
        recommendations=_text_list(entry.get("tipsList")),
        completed_reps=_tally(entry, "correctReps"),
        assigned_reps=_tally(entry, "assignReps"),
        sets=_tally(entry, "totalSets"),
    )


def assemble_exercises(section: SectionDefinition, record: Record) -> RenderableSection:
    entries = resolve(record, section.source_path or "exercises")
    if not isinstance(entries, (list, tuple)):
        return _placeholder(section, "No exercise data available")

    cards = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, MappingABC):
            logger.debug(f"Skipping non-object exercise entry #{position} in '{section.id}'")
            continue
        cards.append(build_exercise_card(entry, position))

    if not cards:
        return _placeholder(section, "No exercise data available")
    return _section(section, cards=cards)


def assemble_custom(section: SectionDefinition, record: Record) -> RenderableSection:
    """Declarative fallback: the section's own field definitions drive the grid."""
    if not section.fields:
        return _placeholder(section, NO_CONFIG)
    return _grid(section, render_units(section.fields, record))


# ── Registry: kind → assembler ───────────────────────────────────────────────
_SECTION_ASSEMBLERS: Dict[SectionKind, SectionAssembler] = {
    SectionKind.VITALS: assemble_vitals,
    SectionKind.BODY_COMPOSITION: assemble_body_composition,
    SectionKind.EXERCISES: assemble_exercises,
    SectionKind.CARDIOVASCULAR: assemble_cardiovascular,
    SectionKind.GLUCOSE: assemble_glucose,
    SectionKind.RISK_ASSESSMENT: assemble_risk_assessment,
    SectionKind.CUSTOM: assemble_custom,
}


def assemble_section(section: SectionDefinition, record: Record) -> RenderableSection:
    """
    Dispatch on the section's layout kind.

    A section that fails on unexpected data degrades to its placeholder;
    it never takes the whole report down with it.
    """
    assembler = _SECTION_ASSEMBLERS[section.layout_kind]
    try:
        return assembler(section, record)
    except Exception as e:
        logger.warning(f"Section '{section.id}' could not be assembled ({e}); showing placeholder")
        return _placeholder(section, NO_DATA)
