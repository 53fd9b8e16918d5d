from __future__ import annotations

import asyncio

import pytest

from autorefresh.cache import DataSink
from autorefresh.errors import SchedulerClosedError
from autorefresh.refresh_scheduler import RefreshScheduler, SubscriptionState


class Counter:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


@pytest.mark.asyncio
async def test_first_call_happens_after_one_interval():
    scheduler = RefreshScheduler()
    fetcher = Counter()
    try:
        handle = scheduler.schedule(100, fetcher)
        assert handle.subscription.state is SubscriptionState.Running

        await asyncio.sleep(0.05)
        assert fetcher.calls == 0

        await asyncio.sleep(0.1)
        assert fetcher.calls == 1
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_cancel_before_first_tick_never_calls_fetcher():
    scheduler = RefreshScheduler()
    fetcher = Counter()
    handle = scheduler.schedule(100, fetcher)

    await asyncio.sleep(0.02)
    handle.cancel()
    await asyncio.sleep(0.2)

    assert fetcher.calls == 0
    assert handle.cancelled
    assert handle.closed
    assert scheduler.active_count() == 0


@pytest.mark.asyncio
async def test_cancel_twice_is_same_as_once():
    scheduler = RefreshScheduler()
    fetcher = Counter()
    handle = scheduler.schedule(30, fetcher)

    await asyncio.sleep(0.05)
    handle()
    calls = fetcher.calls
    handle.cancel()
    assert await handle.aclose(timeout=1.0) is True

    await asyncio.sleep(0.1)
    assert fetcher.calls == calls
    assert handle.subscription.state is SubscriptionState.Cancelled


@pytest.mark.asyncio
async def test_failure_does_not_stop_the_loop():
    scheduler = RefreshScheduler()
    calls = []

    async def flaky():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("upstream down")

    try:
        handle = scheduler.schedule(40, flaky, name="flaky")
        await asyncio.sleep(0.15)
    finally:
        await scheduler.stop()

    assert len(calls) >= 2
    subscription = handle.subscription
    assert subscription.failure_count == 1
    assert subscription.last_error == "RuntimeError: upstream down"
    assert subscription.run_count == len(calls)


@pytest.mark.asyncio
async def test_invocations_never_overlap():
    scheduler = RefreshScheduler()
    in_flight = 0
    peak = 0
    calls = 0

    async def slow():
        nonlocal in_flight, peak, calls
        in_flight += 1
        calls += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.07)
        in_flight -= 1

    try:
        scheduler.schedule(20, slow)
        await asyncio.sleep(0.3)
    finally:
        await scheduler.stop()

    assert peak == 1
    # missed ticks are skipped, not queued
    assert calls <= 4


@pytest.mark.asyncio
async def test_in_flight_fetch_completes_after_cancel():
    scheduler = RefreshScheduler()
    started = asyncio.Event()
    finished = []

    async def fetcher():
        started.set()
        await asyncio.sleep(0.05)
        finished.append(True)

    handle = scheduler.schedule(10, fetcher)
    await started.wait()
    handle.cancel()

    assert await handle.aclose(timeout=1.0) is True
    assert finished == [True]
    assert handle.subscription.run_count == 1


@pytest.mark.asyncio
async def test_aclose_abandons_stuck_fetcher_after_grace():
    scheduler = RefreshScheduler()
    started = asyncio.Event()

    async def stuck():
        started.set()
        await asyncio.Event().wait()

    handle = scheduler.schedule(10, stuck)
    await started.wait()

    assert await handle.aclose(timeout=0.05) is False
    assert handle.closed
    assert handle.cancelled


@pytest.mark.asyncio
async def test_cancelled_error_from_fetcher_counts_as_failure():
    scheduler = RefreshScheduler()
    calls = []

    async def fetch():
        calls.append(1)
        if len(calls) == 1:
            inner = asyncio.get_running_loop().create_future()
            inner.cancel()
            await inner

    handle = scheduler.schedule(20, fetch)
    await asyncio.sleep(0.09)

    assert len(calls) >= 2
    assert not handle.closed
    assert handle.subscription.failure_count == 1
    assert handle.subscription.last_error.startswith("CancelledError")

    await scheduler.stop(timeout=1.0)
    assert handle.closed
    assert scheduler.active_count() == 0


@pytest.mark.asyncio
async def test_scaled_two_second_scenario():
    # interval 2000 ms scaled down by 10x: check at 4500, cancel at 4600, check at 7000
    scheduler = RefreshScheduler()
    fetcher = Counter()
    handle = scheduler.schedule(200, fetcher)

    await asyncio.sleep(0.45)
    assert fetcher.calls == 2

    await asyncio.sleep(0.01)
    handle.cancel()

    await asyncio.sleep(0.24)
    assert fetcher.calls == 2
    await scheduler.stop()


@pytest.mark.asyncio
async def test_two_subscriptions_share_a_sink():
    scheduler = RefreshScheduler()
    sink = DataSink(name="balance")
    writes = []

    def writer(tag):
        async def fetch():
            await asyncio.sleep(0.005)
            value = (tag, len(writes))
            writes.append(value)
            sink.write(value)

        return fetch

    try:
        scheduler.schedule(20, writer("fast"))
        scheduler.schedule(30, writer("slow"))
        await asyncio.sleep(0.2)
    finally:
        await scheduler.stop()

    assert writes
    assert sink.value == writes[-1]
    assert sink.version == len(writes)
    assert {tag for tag, _ in writes} == {"fast", "slow"}


@pytest.mark.asyncio
@pytest.mark.parametrize("interval", [0, -5, "100", None, True])
async def test_rejects_invalid_interval(interval):
    scheduler = RefreshScheduler()
    with pytest.raises(ValueError):
        scheduler.schedule(interval, Counter())
    assert scheduler.active_count() == 0


@pytest.mark.asyncio
async def test_stop_cancels_everything_and_closes_scheduler():
    scheduler = RefreshScheduler()
    handles = [scheduler.schedule(50, Counter()) for _ in range(3)]
    assert scheduler.active_count() == 3
    assert len(scheduler.get_subscriptions_snapshot()) == 3

    await scheduler.stop(timeout=1.0)

    assert not scheduler.is_running()
    assert all(h.cancelled and h.closed for h in handles)
    assert scheduler.get_subscriptions_snapshot() == {}
    with pytest.raises(SchedulerClosedError):
        scheduler.schedule(50, Counter())


@pytest.mark.asyncio
async def test_snapshot_reports_subscription_stats():
    scheduler = RefreshScheduler()
    try:
        handle = scheduler.schedule(20, Counter(), name="users")
        await asyncio.sleep(0.07)
        snapshot = scheduler.get_subscriptions_snapshot()
    finally:
        await scheduler.stop()

    entry = snapshot[handle.subscription.uuid]
    assert entry["name"] == "users"
    assert entry["interval_ms"] == 20
    assert entry["state"] == "running"
    assert entry["run_count"] >= 2
    assert entry["last_run_at"] is not None
