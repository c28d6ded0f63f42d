"""
Unit Tests for the Job Poller

Bounded attempts, ordering of ticks, failures and cancellation.
"""

import asyncio

import pytest

from contest_console.job_poller import JobPoller, PollResult, poll
from contest_console.models import PollOutcome
from contest_console.protocols import PollTimeoutError


class CountingFetch:
    """Returns the values in order, repeating the last one"""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        index = min(self.calls, len(self.values)) - 1
        return self.values[index]


class TestJobPoller:

    @pytest.mark.asyncio
    async def test_stops_after_max_attempts(self):
        fetch = CountingFetch("pending")
        result = await poll(fetch, lambda v: v == "done", interval=0, max_attempts=3)

        assert fetch.calls == 3
        assert result.outcome == PollOutcome.TIMED_OUT
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_done_on_first_fetch(self):
        fetch = CountingFetch("done")
        result = await poll(fetch, lambda v: v == "done", interval=0, max_attempts=3)

        assert fetch.calls == 1
        assert result.is_done
        assert result.value == "done"

    @pytest.mark.asyncio
    async def test_every_value_delivered_before_done(self):
        fetch = CountingFetch("pending", "processing", "completed")
        seen = []
        result = await poll(
            fetch, lambda v: v == "completed", interval=0,
            on_tick=lambda tick: seen.append((tick.attempt, tick.value)),
        )

        assert seen == [(1, "pending"), (2, "processing"), (3, "completed")]
        assert result.outcome == PollOutcome.DONE

    @pytest.mark.asyncio
    async def test_async_tick_callback(self):
        seen = []

        async def on_tick(tick):
            seen.append(tick.value)

        await poll(CountingFetch(1, 2), lambda v: v == 2, interval=0, on_tick=on_tick)
        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_fetch_error_fails(self):
        async def fetch():
            raise RuntimeError("boom")

        result = await poll(fetch, lambda v: True, interval=0)
        assert result.outcome == PollOutcome.FAILED
        assert str(result.error) == "boom"
        with pytest.raises(RuntimeError):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_unwrap_timeout(self):
        result = await poll(CountingFetch(0), lambda v: False, interval=0, max_attempts=2)
        with pytest.raises(PollTimeoutError) as exc:
            result.unwrap("still working")
        assert exc.value.attempts == 2
        assert str(exc.value) == "still working"

    @pytest.mark.asyncio
    async def test_cancel_during_wait_stops_ticks(self):
        fetch = CountingFetch("pending")
        poller = JobPoller(fetch, lambda v: False, interval=10)
        seen = []

        task = asyncio.create_task(poller.run(lambda tick: seen.append(tick.value)))
        await asyncio.sleep(0.01)
        poller.cancel()
        result = await asyncio.wait_for(task, timeout=1)

        assert result.outcome == PollOutcome.CANCELLED
        assert seen == ["pending"]
        assert fetch.calls == 1

    @pytest.mark.asyncio
    async def test_no_tick_after_cancel_during_fetch(self):
        release = asyncio.Event()

        async def fetch():
            await release.wait()
            return "completed"

        poller = JobPoller(fetch, lambda v: v == "completed", interval=0)
        seen = []
        task = asyncio.create_task(poller.run(lambda tick: seen.append(tick.value)))
        await asyncio.sleep(0)
        poller.cancel()
        release.set()
        result = await asyncio.wait_for(task, timeout=1)

        assert seen == []
        assert result.outcome == PollOutcome.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_before_start(self):
        fetch = CountingFetch("x")
        poller = JobPoller(fetch, lambda v: True, interval=0)
        poller.cancel()

        result = await poller.run()
        assert fetch.calls == 0
        assert result.outcome == PollOutcome.CANCELLED

    @pytest.mark.parametrize("kwargs", [
        {"interval": -1},
        {"interval": 1, "max_attempts": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            JobPoller(CountingFetch(1), lambda v: True, **kwargs)


class TestPollResult:

    def test_done_unwraps_value(self):
        assert PollResult(outcome=PollOutcome.DONE, attempts=1, value=5).unwrap() == 5

    def test_cancelled_unwraps_last_value(self):
        assert PollResult(outcome=PollOutcome.CANCELLED, attempts=2, value="p").unwrap() == "p"
