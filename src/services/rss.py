import asyncio
import logging
from typing import List, Optional, Union

import aiohttp
import feedparser

from src.models.content import RawFeedEntry
from src.utils.error_monitoring import FeedParseError, FetchError


DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/117.0.0.0 Safari/537.36",
    "Accept": "application/rss+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class RSSService:
    """
    Fetches and parses the single monitored feed.
    One GET per call: no retries, no conditional requests.
    """

    def __init__(self, feed_url: str, timeout: float = 30.0):
        self.feed_url = feed_url
        self.timeout = timeout  # seconds
        self.logger = logging.getLogger(__name__)

    async def fetch_document(self) -> bytes:
        """Retrieve the raw feed payload."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=DEFAULT_HEADERS) as session:
                async with session.get(self.feed_url) as resp:
                    if resp.status != 200:
                        raise FetchError(f"HTTP {resp.status} for {self.feed_url}")
                    payload = await resp.read()
        except aiohttp.ClientError as e:
            raise FetchError(f"Request to {self.feed_url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"Request to {self.feed_url} timed out after {self.timeout}s") from e

        self.logger.debug(f"Fetched {len(payload)} bytes from {self.feed_url}")
        return payload

    def parse_entries(self, content: Union[str, bytes]) -> List[RawFeedEntry]:
        """Parse a feed document into raw entries, in document order."""
        if isinstance(content, str):
            # feedparser treats some str inputs as URLs or file paths
            content = content.encode("utf-8")

        parsed = feedparser.parse(content)
        if not parsed.get("version") and not parsed.entries:
            reason = parsed.get("bozo_exception") or "no feed version detected"
            raise FeedParseError(f"Payload from {self.feed_url} is not a syndication feed: {reason}")
        if parsed.get("bozo"):
            self.logger.debug(f"Feed parsed with warnings: {parsed.get('bozo_exception')}")

        entries: List[RawFeedEntry] = []
        for entry in parsed.entries:
            entries.append(
                RawFeedEntry(
                    title=entry.get("title", ""),
                    published=entry.get("published", entry.get("updated", "")),
                    content_encoded=self._encoded_content(entry),
                    guid=entry.get("id"),
                    link=entry.get("link"),
                )
            )
        return entries

    def _encoded_content(self, entry) -> Optional[str]:
        # feedparser exposes <content:encoded> as the first entry.content item
        for content_item in entry.get("content") or []:
            value = content_item.get("value")
            if value:
                return value
        return None
