#!/usr/bin/env python3
"""
Readiness validator for the feed monitor.

Checks configuration sanity, feed connectivity and parseability, and that the
existing store (if any) is readable, then prints a PASS/WARN/FAIL report.
"""

import os
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urlparse

from src.models.config import MonitorConfig
from src.services.entry_normalizer import EntryNormalizer
from src.services.rss import RSSService
from src.services.state_store import StateStatus, StateStore
from src.utils.error_monitoring import FeedMonitorError


@dataclass
class ValidationResult:
    """Result of a validation check."""
    name: str
    status: str  # 'PASS', 'FAIL', 'WARN'
    message: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class ReadinessReport:
    """Complete readiness report."""
    timestamp: datetime
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return not any(r.status == "FAIL" for r in self.results)

    @property
    def critical_issues(self) -> List[str]:
        return [f"{r.name}: {r.message}" for r in self.results if r.status == "FAIL"]

    @property
    def warnings(self) -> List[str]:
        return [f"{r.name}: {r.message}" for r in self.results if r.status == "WARN"]


class MonitorValidator:
    """
    Validates that a MonitorConfig can run a cycle.
    """

    def __init__(
        self,
        config: MonitorConfig,
        rss: Optional[RSSService] = None,
        store: Optional[StateStore] = None,
    ) -> None:
        self.config = config
        self.rss = rss or RSSService(config.feed_url, timeout=config.request_timeout_seconds)
        self.store = store or StateStore()
        self.logger = logging.getLogger(__name__)

    async def validate_all(self) -> ReadinessReport:
        self.logger.info("Starting readiness validation")
        report = ReadinessReport(timestamp=datetime.now())
        report.results.extend(self._validate_configuration())
        report.results.extend(await self._validate_feed())
        report.results.extend(self._validate_store())
        return report

    def _validate_configuration(self) -> List[ValidationResult]:
        results: List[ValidationResult] = []

        parsed = urlparse(self.config.feed_url)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            results.append(ValidationResult("Config: feed_url", "PASS", self.config.feed_url))
        else:
            results.append(ValidationResult("Config: feed_url", "FAIL", f"Not an HTTP(S) URL: {self.config.feed_url!r}"))

        if self.config.interval_minutes > 0:
            results.append(ValidationResult("Config: interval", "PASS", f"{self.config.interval_minutes:g} minutes"))
        else:
            results.append(ValidationResult("Config: interval", "FAIL", "Interval must be positive"))

        paths = {
            "store_path": self.config.store_path,
            "latest_fetch_path": self.config.latest_fetch_path,
            "prior_state_path": self.config.prior_state_path,
        }
        if len(set(os.path.abspath(p) for p in paths.values())) < len(paths):
            results.append(ValidationResult("Config: paths", "FAIL", "Store and audit paths must differ", paths))

        for name, path in paths.items():
            results.append(self._check_writable(name, path))
        return results

    def _check_writable(self, name: str, path: str) -> ValidationResult:
        # Walk up to the nearest existing ancestor; save() creates the rest
        directory = os.path.dirname(os.path.abspath(path))
        while not os.path.exists(directory):
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent
        if os.access(directory, os.W_OK):
            return ValidationResult(f"Path: {name}", "PASS", f"{path} is writable")
        return ValidationResult(f"Path: {name}", "FAIL", f"{directory} is not writable")

    async def _validate_feed(self) -> List[ValidationResult]:
        try:
            document = await self.rss.fetch_document()
        except FeedMonitorError as e:
            return [ValidationResult("Feed: fetch", "FAIL", str(e))]

        results = [ValidationResult("Feed: fetch", "PASS", f"{len(document)} bytes")]
        try:
            entries = self.rss.parse_entries(document)
            records = EntryNormalizer(skip_malformed=True).normalize_all(entries)
        except FeedMonitorError as e:
            results.append(ValidationResult("Feed: parse", "FAIL", str(e)))
            return results

        if not entries:
            results.append(ValidationResult("Feed: parse", "WARN", "Feed has no entries"))
        elif len(records) < len(entries):
            results.append(ValidationResult(
                "Feed: parse", "WARN",
                f"{len(entries) - len(records)} of {len(entries)} entries would fail normalization",
            ))
        else:
            results.append(ValidationResult("Feed: parse", "PASS", f"{len(records)} entries normalized"))
        return results

    def _validate_store(self) -> List[ValidationResult]:
        try:
            state = self.store.load_state(self.config.store_path)
        except FeedMonitorError as e:
            return [ValidationResult("Store: load", "FAIL", str(e))]
        if state.status is StateStatus.ABSENT:
            return [ValidationResult("Store: load", "WARN", "No store yet; it will be created on the first cycle")]
        return [ValidationResult("Store: load", "PASS", f"{len(state.records)} records")]

    def print_report(self, report: ReadinessReport) -> None:
        print("=" * 60)
        print(f"Feed monitor readiness - {report.timestamp:%Y-%m-%d %H:%M:%S}")
        print("=" * 60)
        icons = {"PASS": "✅", "WARN": "⚠️", "FAIL": "❌"}
        for r in report.results:
            print(f"{icons.get(r.status, '?')} {r.name}: {r.message}")
        print("-" * 60)
        print("READY" if report.ready else f"NOT READY ({len(report.critical_issues)} critical issue(s))")
