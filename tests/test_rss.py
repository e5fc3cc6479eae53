"""Tests for feed transport and parsing."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from src.services.rss import RSSService
from src.utils.error_monitoring import FeedParseError, FetchError

from tests.conftest import FEED_URL, build_feed


def mock_session_class(mock_cls, status=200, body=b"", get_error=None):
    """Wire a patched aiohttp.ClientSession to return ``body`` with ``status``."""
    response = MagicMock()
    response.status = status
    response.read = AsyncMock(return_value=body)

    session = MagicMock()
    if get_error is not None:
        session.get.side_effect = get_error
    else:
        session.get.return_value.__aenter__.return_value = response
        session.get.return_value.__aexit__.return_value = False

    mock_cls.return_value.__aenter__.return_value = session
    mock_cls.return_value.__aexit__.return_value = False
    return session


@pytest.mark.asyncio
async def test_fetch_document_success():
    payload = build_feed([("A", "Tue, 01 Jan 2024 12:00:00 GMT", None)])
    with patch("src.services.rss.aiohttp.ClientSession") as mock_cls:
        session = mock_session_class(mock_cls, body=payload)
        result = await RSSService(FEED_URL, timeout=5).fetch_document()

    assert result == payload
    session.get.assert_called_once_with(FEED_URL)


@pytest.mark.asyncio
async def test_fetch_document_http_error():
    with patch("src.services.rss.aiohttp.ClientSession") as mock_cls:
        mock_session_class(mock_cls, status=503)
        with pytest.raises(FetchError, match="HTTP 503"):
            await RSSService(FEED_URL).fetch_document()


@pytest.mark.asyncio
async def test_fetch_document_connection_error():
    with patch("src.services.rss.aiohttp.ClientSession") as mock_cls:
        mock_session_class(mock_cls, get_error=aiohttp.ClientConnectionError("refused"))
        with pytest.raises(FetchError, match="refused"):
            await RSSService(FEED_URL).fetch_document()


@pytest.mark.asyncio
async def test_fetch_document_timeout():
    with patch("src.services.rss.aiohttp.ClientSession") as mock_cls:
        mock_session_class(mock_cls, get_error=asyncio.TimeoutError())
        with pytest.raises(FetchError, match="timed out"):
            await RSSService(FEED_URL, timeout=2).fetch_document()


def test_parse_entries_reads_rss_items(sample_items):
    entries = RSSService(FEED_URL).parse_entries(build_feed(sample_items))

    assert len(entries) == 2
    first = entries[0]
    assert first.title == "Order & Memo"
    assert first.published == "Tue, 01 Jan 2024 12:00:00 GMT"
    assert "Hello" in first.content_encoded and "World" in first.content_encoded
    assert first.guid == "https://example.com/?p=0"
    assert first.link == "https://example.com/actions/0"


def test_parse_entries_without_encoded_content():
    entries = RSSService(FEED_URL).parse_entries(build_feed([("A", "Tue, 01 Jan 2024 12:00:00 GMT", None)]))
    assert entries[0].content_encoded is None


def test_parse_entries_accepts_text():
    text = build_feed([("A", "Tue, 01 Jan 2024 12:00:00 GMT", "<p>x</p>")]).decode("utf-8")
    assert [e.title for e in RSSService(FEED_URL).parse_entries(text)] == ["A"]


def test_empty_channel_has_no_entries():
    assert RSSService(FEED_URL).parse_entries(build_feed([])) == []


@pytest.mark.parametrize("payload", [b"", b"<html><body>Service unavailable</body></html>", b"plain text"])
def test_non_feed_payload_raises(payload):
    with pytest.raises(FeedParseError):
        RSSService(FEED_URL).parse_entries(payload)
