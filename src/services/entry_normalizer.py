import html
import logging
import re
from typing import Iterable, List, Optional

from src.models.content import FeedRecord, RawFeedEntry
from src.utils.date_normalization import normalize_date
from src.utils.error_monitoring import EntryNormalizationError, ParseError


TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_markup(text: str) -> str:
    """Remove tags and collapse whitespace runs; no DOM parse."""
    text = TAG_PATTERN.sub("", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_body(text: Optional[str]) -> str:
    """Plain-text body: tags stripped, whitespace collapsed, entities decoded."""
    if not text:
        return ""
    return html.unescape(strip_markup(text))


def clean_title(text: Optional[str]) -> str:
    """Tags stripped, entities decoded, ends trimmed. Inner spacing is kept as published."""
    if not text:
        return ""
    return html.unescape(TAG_PATTERN.sub("", text)).strip()


class EntryNormalizer:
    """
    Converts raw parsed feed entries into FeedRecords.
    """

    def __init__(self, keep_guid: bool = False, skip_malformed: bool = False):
        self.keep_guid = keep_guid
        self.skip_malformed = skip_malformed
        self.logger = logging.getLogger(__name__)

    def normalize(self, entry: RawFeedEntry) -> FeedRecord:
        title = clean_title(entry.title)
        if not title:
            raise EntryNormalizationError(f"Entry has an empty title (guid={entry.guid!r})")

        return FeedRecord(
            title=title,
            date=normalize_date(entry.published),
            content=clean_body(entry.content_encoded),
            guid=(entry.guid or None) if self.keep_guid else None,
        )

    def normalize_all(self, entries: Iterable[RawFeedEntry]) -> List[FeedRecord]:
        """Normalize a batch, aborting on the first bad entry unless skip_malformed is set."""
        records: List[FeedRecord] = []
        skipped = 0
        for entry in entries:
            try:
                records.append(self.normalize(entry))
            except ParseError as e:
                if not self.skip_malformed:
                    raise
                skipped += 1
                self.logger.warning(f"⚠️ Skipping malformed entry '{(entry.title or '')[:60]}': {e}")

        if skipped:
            self.logger.info(f"Normalized {len(records)} entries, skipped {skipped}")
        return records
