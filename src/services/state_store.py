from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List

from src.models.content import FeedRecord, records_to_dicts
from src.utils.error_monitoring import CorruptStateError, StateIOError


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class StateStatus(Enum):
    ABSENT = "absent"
    LOADED = "loaded"


@dataclass
class StateLoadResult:
    """Outcome of reading a snapshot file"""
    status: StateStatus
    path: str
    records: List[FeedRecord] = field(default_factory=list)


class StateStore:
    """
    JSON file persistence for feed snapshots.

    A missing file is an empty snapshot. A file that exists but does not hold
    a list of records raises CorruptStateError rather than being replaced.
    """

    def __init__(self, indent: int = 4) -> None:
        self.indent = indent
        self.logger = logging.getLogger(__name__)

    def load_state(self, path: str) -> StateLoadResult:
        if not os.path.exists(path):
            self.logger.info(f"No snapshot at {path}, starting empty")
            return StateLoadResult(status=StateStatus.ABSENT, path=path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except UnicodeDecodeError as e:
            raise CorruptStateError(f"{path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StateIOError(f"Could not read {path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"{path} is not valid JSON: {e}") from e

        records = self._decode_records(data, path)
        self.logger.debug(f"Loaded {len(records)} records from {path}")
        return StateLoadResult(status=StateStatus.LOADED, path=path, records=records)

    def load(self, path: str) -> List[FeedRecord]:
        return self.load_state(path).records

    def _decode_records(self, data: Any, path: str) -> List[FeedRecord]:
        if not isinstance(data, list):
            raise CorruptStateError(f"{path} does not hold a JSON array (found {type(data).__name__})")

        records: List[FeedRecord] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict) or not _is_text(item.get("title")) or not _is_text(item.get("date")):
                raise CorruptStateError(f"{path}: entry {index} is not a feed record")
            records.append(FeedRecord.from_dict(item))
        return records

    def save(self, records: List[FeedRecord], path: str) -> None:
        """Serialize the whole snapshot and write it in one go, creating parent dirs."""
        payload = json.dumps(records_to_dicts(records), indent=self.indent, ensure_ascii=False)
        try:
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(payload)
        except OSError as e:
            raise StateIOError(f"Could not write {path}: {e}") from e
        self.logger.info(f"💾 Saved {len(records)} records to {path}")
