"""
Runtime configuration for the feed monitor.

Defaults live here; ``load_config`` applies environment overrides so the
monitoring core only ever sees an explicit ``MonitorConfig``.
"""

import os
from dataclasses import dataclass
from typing import Optional

from src.services.deduplication_service import DedupKey


DEFAULT_FEED_URL = "https://www.whitehouse.gov/presidential-actions/feed/"
DEFAULT_STORE_PATH = os.path.join("actions", "presidentialActions.json")
DEFAULT_LATEST_FETCH_PATH = os.path.join("actions", "newData.json")
DEFAULT_PRIOR_STATE_PATH = os.path.join("actions", "existingData.json")


@dataclass
class MonitorConfig:
    """Feed monitor configuration"""
    # Source
    feed_url: str = DEFAULT_FEED_URL
    request_timeout_seconds: float = 30.0

    # Paths
    store_path: str = DEFAULT_STORE_PATH
    latest_fetch_path: str = DEFAULT_LATEST_FETCH_PATH
    prior_state_path: str = DEFAULT_PRIOR_STATE_PATH

    # Timing
    interval_minutes: float = 30.0

    # Behaviour
    dedup_key: DedupKey = DedupKey.TITLE
    skip_malformed_entries: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    enable_file_logging: bool = True
    structured_logging: bool = False

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(structured_logging: Optional[bool] = None) -> MonitorConfig:
    """Load configuration from environment variables on top of the defaults."""
    config = MonitorConfig(
        feed_url=os.getenv("FEED_URL", DEFAULT_FEED_URL),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
        store_path=os.getenv("STORE_PATH", DEFAULT_STORE_PATH),
        latest_fetch_path=os.getenv("LATEST_FETCH_PATH", DEFAULT_LATEST_FETCH_PATH),
        prior_state_path=os.getenv("PRIOR_STATE_PATH", DEFAULT_PRIOR_STATE_PATH),
        interval_minutes=float(os.getenv("POLL_INTERVAL_MINUTES", "30")),
        dedup_key=DedupKey(os.getenv("DEDUP_KEY", DedupKey.TITLE.value).strip().lower()),
        skip_malformed_entries=_env_flag("SKIP_MALFORMED_ENTRIES", False),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        enable_file_logging=_env_flag("ENABLE_FILE_LOGGING", True),
        structured_logging=_env_flag("STRUCTURED_LOGGING", False),
    )
    if structured_logging is not None:
        config.structured_logging = structured_logging
    return config
