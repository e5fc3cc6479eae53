"""
Date normalization utilities for feed publish dates.
"""

from datetime import datetime, timezone
import logging
import warnings

from dateutil import parser as dateutil_parser
from dateutil.parser import UnknownTimezoneWarning

from src.utils.error_monitoring import MalformedDateError

logger = logging.getLogger(__name__)

HOUR = 3600

# RFC-822 zone names; dateutil only knows UTC/GMT/Z on its own
RFC822_TZINFOS = {
    "UT": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * HOUR,
    "EDT": -4 * HOUR,
    "CST": -6 * HOUR,
    "CDT": -5 * HOUR,
    "MST": -7 * HOUR,
    "MDT": -6 * HOUR,
    "PST": -8 * HOUR,
    "PDT": -7 * HOUR,
}


def parse_feed_date(date_str: str) -> datetime:
    """
    Parse a feed date into an aware UTC datetime.

    Handles RFC-822 style pubDates ("Tue, 01 Jan 2024 12:00:00 GMT", including
    the North American zone names) as well as ISO-8601 strings. A date with no
    zone at all is taken as UTC.

    Args:
        date_str: Raw date text from the feed

    Returns:
        datetime in UTC

    Raises:
        MalformedDateError: if the text is empty, cannot be parsed, or names
            a zone that is not understood
    """
    if not date_str or not date_str.strip():
        raise MalformedDateError("Missing publish date")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnknownTimezoneWarning)
            dt = dateutil_parser.parse(date_str.strip(), tzinfos=RFC822_TZINFOS)
    except UnknownTimezoneWarning as e:
        raise MalformedDateError(f"Unknown timezone in publish date '{date_str}': {e}") from e
    except (ValueError, OverflowError) as e:
        raise MalformedDateError(f"Unparseable publish date '{date_str}': {e}") from e

    if dt.tzinfo is None:
        logger.debug(f"Date without timezone, assuming UTC: {date_str}")
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a Z suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def normalize_date(date_str: str) -> str:
    """Parse a raw feed date and return its ISO-8601 UTC form."""
    return to_iso_utc(parse_feed_date(date_str))
