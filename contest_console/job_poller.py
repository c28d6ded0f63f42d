"""
Job Poller

Cancellable bounded polling for backend jobs whose completion time is
unknown. Fetches immediately, then every `interval` seconds until the done
predicate holds, the attempt cap is reached, the fetch fails, or the
poller is cancelled. Every fetched value is handed to the caller before
the poller decides what to do next.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Optional, TypeVar

from .models import PollOutcome
from .protocols import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PollTick(Generic[T]):
    """One observed fetch result"""
    attempt: int
    value: T


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """Terminal outcome of a polling run"""
    outcome: PollOutcome
    attempts: int
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_done(self) -> bool:
        return self.outcome == PollOutcome.DONE

    def unwrap(self, timeout_message: str = "Polling timed out") -> Optional[T]:
        """Return the final value, raising for timeout or fetch failure"""
        if self.outcome == PollOutcome.TIMED_OUT:
            raise PollTimeoutError(timeout_message, attempts=self.attempts)
        if self.outcome == PollOutcome.FAILED and self.error is not None:
            raise self.error
        return self.value


class JobPoller(Generic[T]):
    """Polls `fetch` until `is_done` is true"""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        is_done: Callable[[T], bool],
        interval: float,
        max_attempts: Optional[int] = None,
        name: str = "poll",
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")

        self._fetch = fetch
        self._is_done = is_done
        self.interval = interval
        self.max_attempts = max_attempts
        self.name = name

        self._cancelled = asyncio.Event()
        self.attempts = 0
        self.result: Optional[PollResult[T]] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop delivering ticks; an in-progress wait ends immediately"""
        if not self._cancelled.is_set():
            logger.debug(f"Poller {self.name} cancelled after {self.attempts} attempts")
        self._cancelled.set()

    async def _wait(self) -> bool:
        """Sleep one interval; True if cancelled meanwhile"""
        if self.interval <= 0:
            await asyncio.sleep(0)
            return self._cancelled.is_set()
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
            return True
        except asyncio.TimeoutError:
            return self._cancelled.is_set()

    def _finish(self, outcome: PollOutcome, value: Optional[T] = None,
                error: Optional[BaseException] = None) -> None:
        self.result = PollResult(outcome=outcome, attempts=self.attempts, value=value, error=error)
        logger.debug(f"Poller {self.name} finished: {outcome.value} after {self.attempts} attempts")

    async def ticks(self) -> AsyncIterator[PollTick[T]]:
        """Yield each fetched value; the terminal outcome is left in `self.result`"""
        last: Optional[T] = None
        while True:
            if self._cancelled.is_set():
                self._finish(PollOutcome.CANCELLED, last)
                return

            self.attempts += 1
            try:
                value = await self._fetch()
            except asyncio.CancelledError:
                self._finish(PollOutcome.CANCELLED, last)
                raise
            except Exception as e:
                logger.warning(f"Poller {self.name} fetch failed on attempt {self.attempts}: {e}")
                self._finish(PollOutcome.FAILED, last, e)
                return

            if self._cancelled.is_set():
                self._finish(PollOutcome.CANCELLED, last)
                return

            last = value
            yield PollTick(attempt=self.attempts, value=value)

            if self._cancelled.is_set():
                self._finish(PollOutcome.CANCELLED, last)
                return
            if self._is_done(value):
                self._finish(PollOutcome.DONE, value)
                return
            if self.max_attempts is not None and self.attempts >= self.max_attempts:
                self._finish(PollOutcome.TIMED_OUT, value)
                return
            if await self._wait():
                self._finish(PollOutcome.CANCELLED, last)
                return

    async def run(self, on_tick: Optional[Callable[[PollTick[T]], Any]] = None) -> PollResult[T]:
        """Drive the poller to completion, calling on_tick (sync or async) per tick"""
        async for tick in self.ticks():
            if on_tick is not None:
                outcome = on_tick(tick)
                if inspect.isawaitable(outcome):
                    await outcome
        return self.result


async def poll(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    interval: float,
    max_attempts: Optional[int] = None,
    on_tick: Optional[Callable[[PollTick[T]], Any]] = None,
) -> PollResult[T]:
    """Run a one-off JobPoller"""
    return await JobPoller(fetch, is_done, interval, max_attempts).run(on_tick)


__all__ = ["JobPoller", "PollTick", "PollResult", "poll"]
