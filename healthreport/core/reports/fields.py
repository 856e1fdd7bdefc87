"""
Field Renderer

Turns one field definition plus a record into a display unit:
resolve → classify → format.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from healthreport.core.classifier import classify, coerce_number
from healthreport.core.resolver import ABSENT, resolve_first
from healthreport.models.definitions import FieldDefinition, FieldFormat
from .document import DisplayUnit, ResolvedField


def stringify(value: Any) -> str:
    """String form of a record value; integral floats drop the trailing .0."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_value(value: Any, unit: Optional[str] = None, fmt: FieldFormat = FieldFormat.PLAIN) -> str:
    """
    Format a present value for display.

    Priority: percentage format, then "<value> <unit>", then the plain
    string form.
    """
    if fmt == FieldFormat.PERCENTAGE:
        number = coerce_number(value)
        if number is not None:
            return f"{number:.1f}%"
    if unit:
        return f"{stringify(value)} {unit}"
    return stringify(value)


def resolve_field(definition: FieldDefinition, record: Mapping[str, Any]) -> ResolvedField:
    value = resolve_first(record, definition.paths)
    classification = None
    if value is not ABSENT:
        classification = classify(value, definition.classification)
    return ResolvedField(definition=definition, value=value, classification=classification)


def render_field(resolved: ResolvedField) -> Optional[DisplayUnit]:
    """Display unit for a resolved field, or None when it has no value."""
    if resolved.value is ABSENT:
        return None

    definition = resolved.definition
    return DisplayUnit(
        field_id=definition.id,
        label=definition.label,
        display_value=format_value(resolved.value, definition.unit, definition.format),
        badge=resolved.classification,
    )
