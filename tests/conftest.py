"""Shared fixtures for feed monitor tests."""

from typing import Iterable, Optional, Tuple, Union

import pytest

from src.models.config import MonitorConfig
from src.services.rss import RSSService


FEED_URL = "https://example.com/presidential-actions/feed/"

FeedItem = Tuple[str, str, Optional[str]]


def build_feed(items: Iterable[FeedItem]) -> bytes:
    """Build an RSS 2.0 document with content:encoded bodies."""
    parts = []
    for index, (title, pub_date, content) in enumerate(items):
        body = f"<content:encoded><![CDATA[{content}]]></content:encoded>" if content is not None else ""
        parts.append(
            "<item>"
            f"<title>{title}</title>"
            f"<link>https://example.com/actions/{index}</link>"
            f"<guid isPermaLink=\"false\">https://example.com/?p={index}</guid>"
            f"<pubDate>{pub_date}</pubDate>"
            f"{body}"
            "</item>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        "<channel><title>Presidential Actions</title><link>https://example.com</link>"
        "<description>Actions</description>"
        f"{''.join(parts)}"
        "</channel></rss>"
    ).encode("utf-8")


class StubRSSService(RSSService):
    """RSSService whose transport returns a canned payload or raises."""

    def __init__(self, payload: Union[bytes, Exception] = b""):
        super().__init__(FEED_URL, timeout=1)
        self.payload = payload
        self.fetch_count = 0

    async def fetch_document(self) -> bytes:
        self.fetch_count += 1
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture
def sample_items():
    return [
        ("Order &amp; Memo", "Tue, 01 Jan 2024 12:00:00 GMT", "<p>Hello</p>\n\n   <p>World</p>"),
        ("Proclamation on Day", "Mon, 31 Dec 2023 09:30:00 -0500", "<p>Text &amp; more</p>"),
    ]


@pytest.fixture
def monitor_config(tmp_path):
    return MonitorConfig(
        feed_url=FEED_URL,
        store_path=str(tmp_path / "actions" / "presidentialActions.json"),
        latest_fetch_path=str(tmp_path / "actions" / "newData.json"),
        prior_state_path=str(tmp_path / "actions" / "existingData.json"),
        interval_minutes=30,
        enable_file_logging=False,
    )
