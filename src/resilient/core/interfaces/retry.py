from typing import Awaitable, Callable, Optional, Protocol, TypeVar, Union

from resilient.core.config import RetryPolicy
from resilient.core.interfaces.cancellation import CancellationSignal

T = TypeVar("T")

# Zero-argument unit of work. Failure is signalled by raising.
Operation = Callable[[], T]
AsyncOperation = Callable[[], Union[T, Awaitable[T]]]


class RetryPort(Protocol):
    """Abstract retry interface.

    Implementations invoke a zero-argument operation repeatedly until it
    returns or the driver's budget is exhausted. On exhaustion the last
    exception raised by the operation propagates unchanged; there is no
    separate "out of attempts" error.
    """

    def attempts(self, count: int, delay: float, op: Operation[T]) -> T:  # pragma: no cover - protocol
        """Invoke `op` up to `count` times, sleeping `delay` after every failure."""
        ...

    def timeout(self, timeout: float, delay: float, op: Operation[T]) -> T:  # pragma: no cover - protocol
        """Invoke `op` until it succeeds or `timeout` seconds have elapsed."""
        ...

    def backoff(
        self, deadline: float, max_sleep: float, min_sleep: float, op: Operation[T]
    ) -> T:  # pragma: no cover - protocol
        """Exponential backoff bounded by `deadline` (0 = unbounded)."""
        ...

    async def backoff_context(
        self,
        signal: CancellationSignal,
        max_sleep: float,
        min_sleep: float,
        op: AsyncOperation[T],
    ) -> T:  # pragma: no cover - protocol
        """Exponential backoff stopped by an external cancellation signal.

        Raises:
            RetryCancelledError: the signal fired before the operation succeeded.
        """
        ...

    def execute(self, op: Operation[T], policy: Optional[RetryPolicy] = None) -> T:  # pragma: no cover - protocol
        """Run `op` with the driver selected by `policy.strategy`."""
        ...
