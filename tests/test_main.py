"""Tests for entry-point wiring."""

import asyncio
import json
import os
import signal

import pytest

from src.main import FeedMonitor

from tests.conftest import StubRSSService, build_feed


@pytest.mark.asyncio
async def test_run_once_overwrites_store(monitor_config, sample_items):
    monitor = FeedMonitor(monitor_config, configure_logging=False)
    monitor.cycle.rss = StubRSSService(build_feed(sample_items))

    result = await monitor.run_once()

    assert result.success
    with open(monitor_config.store_path, encoding="utf-8") as f:
        assert [r["title"] for r in json.load(f)] == ["Order & Memo", "Proclamation on Day"]


@pytest.mark.asyncio
async def test_scheduler_drives_monitor_cycle(monitor_config, sample_items):
    monitor = FeedMonitor(monitor_config, configure_logging=False)
    rss = StubRSSService(build_feed(sample_items))
    monitor.cycle.rss = rss

    # Stop after the immediate first cycle
    original_run = monitor.cycle.run

    async def run_and_stop():
        result = await original_run()
        monitor.shutdown_event.set()
        return result

    monitor.scheduler.cycle_fn = run_and_stop
    await monitor.scheduler.run()

    assert rss.fetch_count == 1
    assert monitor.cycle.last_result.success
    assert monitor.cycle.last_result.items_new == 2


def test_interval_comes_from_config(monitor_config):
    monitor_config.interval_minutes = 10
    monitor = FeedMonitor(monitor_config, configure_logging=False)
    assert monitor.scheduler.interval_seconds == 600


@pytest.mark.asyncio
async def test_sigterm_stops_continuous_mode_while_timer_sleeps(monitor_config, sample_items):
    monitor = FeedMonitor(monitor_config, configure_logging=False)
    rss = StubRSSService(build_feed(sample_items))
    monitor.cycle.rss = rss

    task = asyncio.create_task(monitor.run_continuous())
    # Let the first cycle finish so the timer is parked on its 30 minute wait
    for _ in range(50):
        await asyncio.sleep(0.01)
        if monitor.scheduler.stats.cycles_run:
            break

    os.kill(os.getpid(), signal.SIGTERM)
    await asyncio.wait_for(task, timeout=2)

    assert monitor.shutdown_event.is_set()
    assert rss.fetch_count == 1


@pytest.mark.asyncio
async def test_threaded_signal_fallback_wakes_loop(monitor_config):
    monitor = FeedMonitor(monitor_config, configure_logging=False)
    monitor._loop = asyncio.get_running_loop()

    monitor._handle_shutdown(signal.SIGINT, None)
    await asyncio.wait_for(monitor.shutdown_event.wait(), timeout=1)

    assert monitor.shutdown_event.is_set()
