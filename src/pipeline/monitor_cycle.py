import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from src.models.config import MonitorConfig
from src.models.content import FeedRecord
from src.services.deduplication_service import DedupKey, DeduplicationService
from src.services.entry_normalizer import EntryNormalizer
from src.services.rss import RSSService
from src.services.state_store import StateStore
from src.utils.error_monitoring import ErrorContext, ErrorHandler, FeedMonitorError
from src.utils.logging_config import PerformanceTracker, log_pipeline_metrics


@dataclass
class CycleResult:
    """Outcome and metrics of one monitoring cycle"""
    start_time: datetime
    mode: str = "monitor"
    end_time: Optional[datetime] = None

    success: bool = False
    failed_stage: Optional[str] = None
    error: Optional[ErrorContext] = None

    # Counts
    items_fetched: int = 0
    items_existing: int = 0
    items_new: int = 0
    store_written: bool = False

    def duration_seconds(self) -> float:
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0


class MonitorCycle:
    """
    One fetch → normalize → diff → persist pass over the monitored feed.

    ``run`` and ``run_snapshot`` never raise: every failure ends the cycle,
    is logged with the stage it happened in, and is reported in the result.
    """

    def __init__(
        self,
        config: MonitorConfig,
        rss: Optional[RSSService] = None,
        normalizer: Optional[EntryNormalizer] = None,
        store: Optional[StateStore] = None,
        dedup: Optional[DeduplicationService] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.config = config
        self.rss = rss or RSSService(config.feed_url, timeout=config.request_timeout_seconds)
        self.normalizer = normalizer or EntryNormalizer(
            keep_guid=config.dedup_key is DedupKey.GUID,
            skip_malformed=config.skip_malformed_entries,
        )
        self.store = store or StateStore()
        self.dedup = dedup or DeduplicationService(config.dedup_key)
        self.error_handler = error_handler or ErrorHandler()
        self.logger = logging.getLogger(__name__)

        self.last_result: Optional[CycleResult] = None
        self.stage = "idle"

    async def _fetch_records(self, result: CycleResult) -> List[FeedRecord]:
        self.stage = "fetch"
        self.logger.info("Fetching feed...")
        with PerformanceTracker("fetch", self.logger):
            document = await self.rss.fetch_document()

        self.stage = "parse"
        raw_entries = self.rss.parse_entries(document)

        self.stage = "normalize"
        self.logger.info(f"Normalizing {len(raw_entries)} entries...")
        records = self.normalizer.normalize_all(raw_entries)
        result.items_fetched = len(records)
        return records

    async def run(self) -> CycleResult:
        """Continuous-mode cycle: diff against the store and prepend new records."""
        result = CycleResult(start_time=datetime.now())
        try:
            incoming = await self._fetch_records(result)

            self.stage = "snapshot_latest"
            self.store.save(incoming, self.config.latest_fetch_path)

            self.stage = "load"
            self.logger.info("Loading existing data...")
            existing = self.store.load(self.config.store_path)
            result.items_existing = len(existing)

            self.stage = "snapshot_prior"
            self.store.save(existing, self.config.prior_state_path)

            self.stage = "diff"
            new_records = self.dedup.find_new(existing, incoming)
            result.items_new = len(new_records)

            self.stage = "persist"
            if new_records:
                self.logger.info(f"🆕 {len(new_records)} new item(s) found")
                self.store.save(self.dedup.merge(new_records, existing), self.config.store_path)
                result.store_written = True
            else:
                self.logger.info("No new items found")

            result.success = True
        except Exception as e:  # noqa: BLE001
            self._handle_failure(result, e)
        finally:
            self._finish(result)
        return result

    async def run_snapshot(self) -> CycleResult:
        """One-shot mode: overwrite the store with the current feed, no diffing."""
        result = CycleResult(start_time=datetime.now(), mode="snapshot")
        try:
            records = await self._fetch_records(result)
            result.items_new = len(records)

            self.stage = "persist"
            self.store.save(records, self.config.store_path)
            result.store_written = True
            result.success = True
        except Exception as e:  # noqa: BLE001
            self._handle_failure(result, e)
        finally:
            self._finish(result)
        return result

    def _handle_failure(self, result: CycleResult, error: Exception) -> None:
        result.failed_stage = self.stage
        result.error = self.error_handler.handle_error(error, self.stage, {"feed_url": self.config.feed_url})
        if isinstance(error, FeedMonitorError):
            self.logger.error(f"❌ Cycle failed in stage {self.stage}: {error}")
        else:
            self.logger.error(f"❌ Unexpected failure in stage {self.stage}: {error}", exc_info=True)
        if result.error.recovery_action:
            self.logger.warning(f"⚠️ {result.error.recovery_action}")

    def _finish(self, result: CycleResult) -> None:
        result.end_time = datetime.now()
        self.last_result = result
        self.stage = "idle"
        if result.success:
            self.logger.info(f"✅ {result.mode.capitalize()} cycle completed in {result.duration_seconds():.2f}s")
        log_pipeline_metrics(
            self.logger,
            result.mode,
            result.items_fetched,
            result.items_new,
            result.duration_seconds() * 1000,
            success=result.success,
            failed_stage=result.failed_stage,
            items_existing=result.items_existing,
        )
