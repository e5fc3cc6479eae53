#!/usr/bin/env python3
import sys
import asyncio
import logging
import signal
from typing import Optional

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from src.models.config import MonitorConfig, load_config
from src.pipeline.monitor_cycle import CycleResult, MonitorCycle
from src.pipeline.scheduler import CycleScheduler
from src.deployment.validator import MonitorValidator
from src.utils.logging_config import setup_logging


class FeedMonitor:
    """
    Entry-point wiring: logging, the cycle, the scheduler and shutdown signals.
    """

    def __init__(self, config: Optional[MonitorConfig] = None, configure_logging: bool = True):
        self.config = config or load_config()

        if configure_logging:
            setup_logging(
                log_level=self.config.log_level,
                log_dir=self.config.log_dir,
                enable_file_logging=self.config.enable_file_logging,
                enable_structured_logging=self.config.structured_logging,
            )
        self.logger = logging.getLogger(__name__)

        self.cycle = MonitorCycle(self.config)
        self.shutdown_event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.scheduler = CycleScheduler(
            self.cycle.run,
            self.config.interval_seconds,
            shutdown_event=self.shutdown_event,
        )

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list:
        """Route SIGINT/SIGTERM onto the loop so a sleeping timer wakes up."""
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._request_shutdown)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                # No loop signal support (Windows, or not the main thread)
                try:
                    signal.signal(sig, self._handle_shutdown)
                except ValueError:
                    self.logger.debug(f"Signal handler for {sig.name} not installed")
        return installed

    def _request_shutdown(self) -> None:
        if not self.shutdown_event.is_set():
            self.logger.info("Shutdown requested, finishing current cycle...")
        self.shutdown_event.set()

    def _handle_shutdown(self, signum, frame) -> None:  # noqa: ANN001
        self._loop.call_soon_threadsafe(self._request_shutdown)

    async def run_continuous(self) -> None:
        self._loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(self._loop)
        self.logger.info(
            f"Monitoring {self.config.feed_url} every {self.config.interval_minutes:g} minutes"
        )
        try:
            await self.scheduler.run()
        finally:
            for sig in installed:
                self._loop.remove_signal_handler(sig)

    async def run_once(self) -> CycleResult:
        return await self.cycle.run_snapshot()

    async def health_check(self) -> bool:
        validator = MonitorValidator(self.config)
        report = await validator.validate_all()
        validator.print_report(report)
        return report.ready


async def main():
    """Main entry point"""
    import argparse
    parser = argparse.ArgumentParser(description="Syndication feed monitor")
    parser.add_argument('--once', action='store_true', help='Fetch once and overwrite the store without diffing')
    parser.add_argument('--health', action='store_true', help='Validate configuration, feed and store, then exit')
    parser.add_argument('--structured-logs', action='store_true', help='Emit JSON log lines')
    args = parser.parse_args()

    config = load_config(structured_logging=True if args.structured_logs else None)
    monitor = FeedMonitor(config)

    try:
        if args.health:
            ok = await monitor.health_check()
            if not ok:
                sys.exit(1)
        elif args.once:
            result = await monitor.run_once()
            if not result.success:
                sys.exit(1)
        else:
            await monitor.run_continuous()
    except KeyboardInterrupt:
        print("\n⚠️ Shutting down...")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
