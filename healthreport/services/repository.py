"""
Assessment Record Repositories

The record store is injected into the report service; nothing here is a
process-wide singleton. Records are plain JSON-compatible mappings keyed by
``session_id``.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union, runtime_checkable

from healthreport.utils import DefinitionLoadError, get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]


@runtime_checkable
class AssessmentRepository(Protocol):
    def get(self, session_id: str) -> Optional[Record]:
        """The record for ``session_id``, or None when there is none."""
        ...

    def list_sessions(self) -> List[Record]:
        ...


class InMemoryAssessmentRepository:
    """Records held in a dict; later duplicates of a session id replace earlier ones."""

    def __init__(self, records: Iterable[Record] = ()):
        self._records: Dict[str, Record] = {}
        for record in records:
            self.add(record)

    def add(self, record: Record) -> None:
        session_id = record.get("session_id")
        if not session_id:
            raise ValueError("assessment record has no session_id")
        self._records[str(session_id)] = record

    def get(self, session_id: str) -> Optional[Record]:
        return self._records.get(session_id)

    def list_sessions(self) -> List[Record]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


class JsonAssessmentRepository(InMemoryAssessmentRepository):
    """Loads a JSON array of assessment records from disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DefinitionLoadError(
                f"Cannot read assessment records: {e}", source=str(self.path)
            ) from e

        if not isinstance(payload, list):
            raise DefinitionLoadError(
                "Assessment data must be a JSON array of records", source=str(self.path)
            )

        records = [item for item in payload if isinstance(item, dict) and item.get("session_id")]
        skipped = len(payload) - len(records)
        if skipped:
            logger.warning(f"Skipped {skipped} record(s) without a session_id in {self.path}")

        super().__init__(records)
        logger.info(f"Loaded {len(self)} assessment record(s) from {self.path}")
