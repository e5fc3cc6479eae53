"""
Content models for the feed monitor.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class RawFeedEntry:
    """A feed item as handed over by the parser, before any cleanup."""

    title: str
    published: str
    content_encoded: Optional[str] = None
    guid: Optional[str] = None
    link: Optional[str] = None


@dataclass
class FeedRecord:
    """Represents one normalized entry of the monitored feed."""

    title: str
    date: str  # ISO-8601 UTC, e.g. 2024-01-01T12:00:00.000Z
    content: str
    guid: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with a stable key order."""
        data: Dict[str, Any] = {
            "title": self.title,
            "date": self.date,
            "content": self.content,
        }
        if self.guid:
            data["guid"] = self.guid
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedRecord":
        return cls(
            title=data["title"],
            date=data["date"],
            content=data.get("content") or "",
            guid=data.get("guid"),
        )


def records_to_dicts(records: List[FeedRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]
