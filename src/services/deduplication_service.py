import logging
from enum import Enum
from typing import Dict, List, Set

from src.models.content import FeedRecord


class DedupKey(Enum):
    """Which field identifies a record across cycles"""
    TITLE = "title"
    GUID = "guid"  # falls back to title for records without one


class DeduplicationService:
    """
    Set-based diff between the stored snapshot and a fresh fetch.

    Title equality is a heuristic identity: two distinct entries that share a
    title collapse into one. GUID mode uses the feed's identifier when present.
    """

    def __init__(self, key: DedupKey = DedupKey.TITLE) -> None:
        self.key = key
        self.logger = logging.getLogger(__name__)

        self.stats: Dict[str, int] = {
            "total_processed": 0,
            "seen_filtered": 0,
            "batch_duplicates": 0,
            "new_items": 0,
        }

    def _identity(self, record: FeedRecord) -> str:
        if self.key is DedupKey.GUID and record.guid:
            return f"guid:{record.guid}"
        return f"title:{record.title}"

    def _known_keys(self, existing: List[FeedRecord]) -> Set[str]:
        known = {self._identity(record) for record in existing}
        if self.key is DedupKey.GUID:
            # Records stored without a guid can still be matched by title
            known.update(f"title:{record.title}" for record in existing if not record.guid)
        return known

    def _is_known(self, record: FeedRecord, known: Set[str]) -> bool:
        if self._identity(record) in known:
            return True
        return self.key is DedupKey.GUID and f"title:{record.title}" in known

    def find_new(self, existing: List[FeedRecord], incoming: List[FeedRecord]) -> List[FeedRecord]:
        """Return the records of ``incoming`` not present in ``existing``, in incoming order."""
        known = self._known_keys(existing)
        batch_keys: Set[str] = set()
        new_records: List[FeedRecord] = []

        for record in incoming:
            self.stats["total_processed"] += 1
            if self._is_known(record, known):
                self.stats["seen_filtered"] += 1
                continue
            identity = self._identity(record)
            if identity in batch_keys:
                self.stats["batch_duplicates"] += 1
                self.logger.debug(f"Duplicate within fetch dropped: {record.title[:60]}")
                continue
            batch_keys.add(identity)
            new_records.append(record)

        self.stats["new_items"] += len(new_records)
        self.logger.debug(f"Diff: {len(incoming)} incoming, {len(existing)} known, {len(new_records)} new")
        return new_records

    @staticmethod
    def merge(new_records: List[FeedRecord], existing: List[FeedRecord]) -> List[FeedRecord]:
        """New records go first, ahead of the prior snapshot."""
        return list(new_records) + list(existing)
