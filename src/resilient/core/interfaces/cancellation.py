from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class CancellationSignal(Protocol):
    """External done/deadline condition observed by cancellation-aware drivers.

    `reason` is None until the signal is done, then holds the exception that
    describes why (explicit cancellation, deadline exceeded, ...).
    """

    @property
    def reason(self) -> Optional[BaseException]:  # pragma: no cover - protocol
        ...

    def done(self) -> bool:  # pragma: no cover - protocol
        ...

    async def wait(self) -> None:  # pragma: no cover - protocol
        """Block until the signal is done."""
        ...
