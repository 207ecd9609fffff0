from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class Temporary(Protocol):
    """Capability of an error to report whether it is transient.

    Any exception type (network, disk, custom) participates by defining
    `temporary()`; nothing else about the error is inspected.
    """

    def temporary(self) -> bool:  # pragma: no cover - protocol
        ...


class ListenerPort(Protocol):
    """Connection-accepting listener.

    `accept` blocks until a connection is available and returns it, or raises.
    """

    def accept(self) -> Any:  # pragma: no cover - protocol
        ...

    def close(self) -> None:  # pragma: no cover - protocol
        ...

    def addr(self) -> Any:  # pragma: no cover - protocol
        ...


TemporaryErrorObserver = Callable[[BaseException], Any]


def is_temporary(exc: BaseException) -> bool:
    """True when `exc` exposes the temporary capability and it reports True."""
    if not isinstance(exc, Temporary) or not callable(exc.temporary):
        return False
    return bool(exc.temporary())
