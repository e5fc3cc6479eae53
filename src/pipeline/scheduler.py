import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional


@dataclass
class SchedulerStats:
    """Trigger and cycle counters"""
    triggers: int = 0
    coalesced: int = 0
    cycles_run: int = 0
    cycle_exceptions: int = 0
    last_cycle_started: Optional[datetime] = None


class CycleScheduler:
    """
    Runs a cycle immediately, then once per interval, until stopped.

    The timer never runs cycles itself: it drops a trigger into a one-slot
    queue and a single worker drains it, so cycles never overlap. A tick that
    finds a trigger already pending is coalesced into it.
    """

    def __init__(
        self,
        cycle_fn: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        shutdown_event: Optional[asyncio.Event] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cycle_fn = cycle_fn
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.stats = SchedulerStats()
        self.logger = logging.getLogger(__name__)

        self._triggers: Optional[asyncio.Queue] = None
        self._cycle_running = False

    @property
    def cycle_running(self) -> bool:
        return self._cycle_running

    def stop(self) -> None:
        """Stop scheduling; an in-flight cycle is allowed to finish."""
        self.shutdown_event.set()

    def trigger(self) -> bool:
        """Request a cycle. Returns False when coalesced into a pending trigger."""
        if self._triggers is None:
            raise RuntimeError("Scheduler is not running")
        self.stats.triggers += 1
        try:
            self._triggers.put_nowait(datetime.now())
            return True
        except asyncio.QueueFull:
            self.stats.coalesced += 1
            self.logger.warning("⚠️ Previous cycle still running, tick coalesced into pending run")
            return False

    async def run(self) -> None:
        self._triggers = asyncio.Queue(maxsize=1)
        self.logger.info(f"Scheduler started, interval {self.interval_seconds:.0f}s")
        timer = asyncio.create_task(self._timer())
        worker = asyncio.create_task(self._worker())
        try:
            await asyncio.gather(timer, worker)
        finally:
            for t in (timer, worker):
                if not t.done():
                    t.cancel()
            await asyncio.gather(timer, worker, return_exceptions=True)
            self.logger.info(
                f"Scheduler stopped after {self.stats.cycles_run} cycle(s), "
                f"{self.stats.coalesced} coalesced tick(s)"
            )

    async def _timer(self) -> None:
        self.trigger()
        while not self.shutdown_event.is_set():
            try:
                await asyncio.wait_for(self.shutdown_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                self.trigger()

    async def _worker(self) -> None:
        while not self.shutdown_event.is_set():
            next_trigger = asyncio.create_task(self._triggers.get())
            shutdown_wait = asyncio.create_task(self.shutdown_event.wait())
            done, pending = await asyncio.wait(
                {next_trigger, shutdown_wait}, return_when=asyncio.FIRST_COMPLETED
            )
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            if next_trigger not in done or self.shutdown_event.is_set():
                break
            await self._run_cycle()

    async def _run_cycle(self) -> None:
        self._cycle_running = True
        self.stats.last_cycle_started = datetime.now()
        try:
            await self.cycle_fn()
        except Exception as e:  # noqa: BLE001
            self.stats.cycle_exceptions += 1
            self.logger.error(f"❌ Cycle raised: {e}", exc_info=True)
        finally:
            self.stats.cycles_run += 1
            self._cycle_running = False
