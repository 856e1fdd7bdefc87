"""
Value Classifier

Maps a numeric value onto the first matching labelled band of a
ClassificationSpec. Fails soft: anything that is not a finite number, or a
spec without ranges, simply produces no classification.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from healthreport.models.definitions import ClassificationSpec


@dataclass(frozen=True)
class Classification:
    """Label/colour pair attached to a field as a badge."""
    label: str
    color: str

    def to_dict(self) -> dict:
        return {"label": self.label, "color": self.color}


def coerce_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def classify(value: Any, spec: Optional[ClassificationSpec]) -> Optional[Classification]:
    """
    Classify ``value`` against ``spec``.

    Ranges are a priority list, not a partition: they are checked in
    declaration order with inclusive bounds and the first match wins.
    """
    if spec is None or not spec.ranges:
        return None

    number = coerce_number(value)
    if number is None:
        return None

    for band in spec.ranges:
        if band.min is not None and number < band.min:
            continue
        if band.max is not None and number > band.max:
            continue
        return Classification(label=band.label, color=band.color)

    return None
