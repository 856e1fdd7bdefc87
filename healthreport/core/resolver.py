"""
Path Resolver

Resolves dotted field paths ("vitalsMap.vitals.heart_rate") against a
nested assessment record. Resolution is all-or-nothing: any missing or
null link in the chain yields ABSENT. Nothing here raises.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Iterable


class _Absent:
    """Sentinel for a path that does not resolve (distinct from None)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


def _step(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key, ABSENT)
    # Arrays are addressable by index, e.g. "exercises.0.analysisScore"
    if isinstance(node, Sequence) and not isinstance(node, (str, bytes)):
        if key.isdigit():
            index = int(key)
            if index < len(node):
                return node[index]
    return ABSENT


def resolve(record: Any, path: str) -> Any:
    """
    Walk ``record`` one key at a time along ``path``.

    Returns the leaf value, or ABSENT when any key is missing or any value
    on the chain (including the leaf) is None.
    """
    if not path:
        return ABSENT

    current = record
    for key in path.split("."):
        if current is None or current is ABSENT:
            return ABSENT
        current = _step(current, key)

    if current is None:
        return ABSENT
    return current


def resolve_first(record: Any, paths: Iterable[str]) -> Any:
    """Resolve each path in order and return the first one present."""
    for path in paths:
        value = resolve(record, path)
        if value is not ABSENT:
            return value
    return ABSENT
