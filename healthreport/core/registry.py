"""
Report Definition Registry

Process-wide, read-only table: assessment type id → ReportDefinition.

Usage:
    from healthreport.core.registry import ReportDefinitionRegistry

    registry = ReportDefinitionRegistry.from_file(path)
    definition = registry.require("as_hr_02")

Adding a new assessment type:
    Add one entry to data/report_definitions.json. No engine code changes.
"""
from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from healthreport.models.definitions import DefinitionTable, ReportDefinition
from healthreport.utils import ConfigMissingError, DefinitionLoadError, get_logger

logger = get_logger(__name__)


class ReportDefinitionRegistry:
    """Immutable lookup of report definitions keyed by assessment type."""

    def __init__(self, definitions: Iterable[ReportDefinition], source: str = "<memory>"):
        table = {}
        for definition in definitions:
            key = definition.assessment_type_id
            if key in table:
                raise DefinitionLoadError(
                    f"Duplicate report definition for assessment type '{key}'",
                    source=source,
                    details={"assessment_type_id": key},
                )
            table[key] = definition
        self._definitions = MappingProxyType(table)
        self.source = source

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_definitions(cls, definitions: Iterable[ReportDefinition]) -> "ReportDefinitionRegistry":
        return cls(definitions)

    @classmethod
    def from_dict(cls, payload: dict, source: str = "<dict>") -> "ReportDefinitionRegistry":
        """Validate a raw ``{"definitions": [...]}`` payload."""
        try:
            table = DefinitionTable.model_validate(payload)
        except ValidationError as e:
            raise DefinitionLoadError(
                f"Invalid report definition table: {e.error_count()} error(s)",
                source=source,
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
        return cls(table.definitions, source=source)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ReportDefinitionRegistry":
        path = Path(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise DefinitionLoadError(
                f"Cannot read report definitions: {e}", source=str(path)
            ) from e
        except json.JSONDecodeError as e:
            raise DefinitionLoadError(
                f"Report definitions are not valid JSON: {e}", source=str(path)
            ) from e

        registry = cls.from_dict(payload, source=str(path))
        logger.info(f"Loaded {len(registry)} report definition(s) from {path}")
        return registry

    # ── Lookup ───────────────────────────────────────────────────────────

    def lookup(self, assessment_type_id: str) -> Optional[ReportDefinition]:
        return self._definitions.get(assessment_type_id)

    def require(self, assessment_type_id: str) -> ReportDefinition:
        """Like lookup, but a missing definition is an error, never a default layout."""
        definition = self.lookup(assessment_type_id)
        if definition is None:
            raise ConfigMissingError(
                f"No configuration found for assessment type: {assessment_type_id}",
                assessment_type_id=str(assessment_type_id),
            )
        return definition

    def assessment_types(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, assessment_type_id: object) -> bool:
        return assessment_type_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[ReportDefinition]:
        return iter(self._definitions.values())
