import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
    wait_fixed,
)
from tenacity.stop import stop_base

from resilient.core.config import RetryPolicy
from resilient.core.exceptions import RetryCancelledError
from resilient.core.interfaces.cancellation import CancellationSignal
from resilient.core.interfaces.retry import AsyncOperation, Operation
from resilient.core.settings import app_settings

T = TypeVar("T")


class stop_after_elapsed(stop_base):
    """Stop when `budget` seconds measured from `started` are used up."""

    def __init__(
        self,
        budget: float,
        started: float,
        clock: Callable[[], float],
    ) -> None:
        self.budget = budget
        self.started = started
        self.clock = clock

    def __call__(self, retry_state: RetryCallState) -> bool:
        return self.clock() - self.started >= self.budget


def _require_non_negative(**values: float) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


def _require_sleep_bounds(max_sleep: float, min_sleep: float) -> None:
    _require_non_negative(max_sleep=max_sleep, min_sleep=min_sleep)
    if min_sleep > max_sleep:
        raise ValueError(f"min_sleep ({min_sleep}) must not exceed max_sleep ({max_sleep})")


class TenacityRetryAdapter:
    """Tenacity-based retry adapter implementing RetryPort.

    Every driver call builds its own tenacity controller, so start time,
    attempt counter and backoff interval never outlive the call. `sleep` and
    `clock` default to `time.sleep` / `time.monotonic` and can be swapped for
    deterministic tests; the cancellation-aware driver always sleeps on the
    running event loop.
    """

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sleep = sleep
        self._clock = clock

    def _sleep_then_reraise(self, delay: float) -> Callable[[RetryCallState], Any]:
        # Runs when the stop condition fires: the last failed attempt still
        # gets its delay before the failure is surfaced.
        def callback(retry_state: RetryCallState) -> Any:
            self._sleep(delay)
            return retry_state.outcome.result()

        return callback

    def attempts(self, count: int, delay: float, op: Operation[T]) -> T:
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        _require_non_negative(delay=delay)

        retrying = Retrying(
            sleep=self._sleep,
            stop=stop_after_attempt(count),
            wait=wait_fixed(delay),
            retry=retry_if_exception_type(Exception),
            retry_error_callback=self._sleep_then_reraise(delay),
            reraise=True,
        )
        return retrying(op)

    def timeout(self, timeout: float, delay: float, op: Operation[T]) -> T:
        _require_non_negative(timeout=timeout, delay=delay)

        started = self._clock()
        last_error: Optional[Exception] = None
        retrying = Retrying(
            sleep=self._sleep,
            stop=stop_never,
            wait=wait_fixed(delay),
            retry=retry_if_exception_type(Exception),
            reraise=True,
        )
        for attempt in retrying:
            # Checked after the previous sleep, so no attempt starts past the timeout
            if last_error is not None and self._clock() - started >= timeout:
                raise last_error
            with attempt:
                try:
                    return op()
                except Exception as exc:
                    last_error = exc
                    raise

    def backoff(self, deadline: float, max_sleep: float, min_sleep: float, op: Operation[T]) -> T:
        _require_non_negative(deadline=deadline)
        _require_sleep_bounds(max_sleep, min_sleep)

        started = self._clock()
        if deadline == 0:
            stop = stop_never
        else:
            stop = stop_after_elapsed(deadline, started, self._clock)
        retrying = Retrying(
            sleep=self._sleep,
            stop=stop,
            wait=wait_exponential(multiplier=min_sleep, max=max_sleep),
            retry=retry_if_exception_type(Exception),
            reraise=True,
        )
        return retrying(op)

    async def backoff_context(
        self,
        signal: CancellationSignal,
        max_sleep: float,
        min_sleep: float,
        op: AsyncOperation[T],
    ) -> T:
        _require_sleep_bounds(max_sleep, min_sleep)

        async def call() -> T:
            result = op()
            if inspect.isawaitable(result):
                result = await result
            return result

        retrying = AsyncRetrying(
            sleep=_interruptible_sleep(signal),
            stop=stop_never,
            wait=wait_exponential(multiplier=min_sleep, max=max_sleep),
            retry=retry_if_exception_type(Exception),
            reraise=True,
        )
        return await retrying(call)

    def execute(self, op: Operation[T], policy: Optional[RetryPolicy] = None) -> T:
        if policy is None:
            policy = RetryPolicy.from_app_settings(app_settings)

        if policy.strategy == "attempts":
            return self.attempts(policy.max_attempts, policy.delay, op)
        if policy.strategy == "timeout":
            return self.timeout(policy.timeout, policy.delay, op)
        return self.backoff(policy.deadline, policy.max_sleep, policy.min_sleep, op)


def _interruptible_sleep(signal: CancellationSignal) -> Callable[[float], Awaitable[None]]:
    """Sleep that races the timer against the signal.

    Raises RetryCancelledError as soon as the signal is done, whether before
    or during the sleep.
    """

    async def sleep(seconds: float) -> None:
        if not signal.done():
            waiter = asyncio.ensure_future(signal.wait())
            try:
                await asyncio.wait({waiter}, timeout=seconds)
            finally:
                waiter.cancel()
        if signal.done():
            raise RetryCancelledError(signal.reason) from signal.reason

    return sleep
