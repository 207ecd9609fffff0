"""Module-level retry drivers.

Thin functional entry points over `TenacityRetryAdapter`. Each call builds
its own adapter, so concurrent calls share no state.

    from resilient.retry import attempts, backoff

    attempts(5, 0.2, ping)
    backoff(30.0, 5.0, 0.1, connect)
"""
from typing import Optional, TypeVar

from resilient.adapters.retry_tenacity import TenacityRetryAdapter
from resilient.core.config import RetryPolicy
from resilient.core.interfaces.cancellation import CancellationSignal
from resilient.core.interfaces.retry import AsyncOperation, Operation

T = TypeVar("T")


def attempts(count: int, delay: float, op: Operation[T]) -> T:
    """Invoke `op` up to `count` times, sleeping `delay` seconds after every failure.

    The sleep also follows the final failed attempt, so exhausting the budget
    takes `count * delay` seconds. Re-raises the last exception.
    """
    return TenacityRetryAdapter().attempts(count, delay, op)


def timeout(timeout: float, delay: float, op: Operation[T]) -> T:
    """Invoke `op` every `delay` seconds until it succeeds or `timeout` seconds pass.

    Re-raises the last exception once the next attempt would start at or past
    the timeout.
    """
    return TenacityRetryAdapter().timeout(timeout, delay, op)


def backoff(deadline: float, max_sleep: float, min_sleep: float, op: Operation[T]) -> T:
    """Retry `op` with a doubling sleep from `min_sleep` up to `max_sleep`.

    `deadline` (seconds since the first call) bounds the retrying; 0 retries
    until `op` succeeds.
    """
    return TenacityRetryAdapter().backoff(deadline, max_sleep, min_sleep, op)


async def backoff_context(
    signal: CancellationSignal, max_sleep: float, min_sleep: float, op: AsyncOperation[T]
) -> T:
    """Like `backoff`, but stopped by `signal` instead of a deadline.

    Raises:
        RetryCancelledError: `signal` fired first, including in the middle of a sleep.
    """
    return await TenacityRetryAdapter().backoff_context(signal, max_sleep, min_sleep, op)


def execute(op: Operation[T], policy: Optional[RetryPolicy] = None) -> T:
    """Run `op` under `policy`, or under the policy built from the environment."""
    return TenacityRetryAdapter().execute(op, policy)
