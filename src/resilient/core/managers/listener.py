"""Listener wrapper that hides transient accept failures.

`ResilientListener` retries `accept` on the underlying listener for as long
as it raises errors exposing `temporary()` == True. Everything else, the
accepted connection included, passes through untouched.
"""
from __future__ import annotations

from typing import Any, Optional

from resilient.core.interfaces.listener import (
    ListenerPort,
    TemporaryErrorObserver,
    is_temporary,
)
from resilient.core.settings import logger


def log_temporary_error(exc: BaseException) -> None:
    logger.warning("[listener:accept] temporary error, retrying: %s", exc)


class ResilientListener(ListenerPort):
    """Wraps `listener`, retrying accept immediately on transient errors.

    Args:
        listener: Underlying listener; close/addr are delegated unchanged
        on_temporary_error: Called with each transient error before the retry.
            Defaults to logging it at WARNING.
    """

    def __init__(
        self,
        listener: ListenerPort,
        on_temporary_error: Optional[TemporaryErrorObserver] = None,
    ) -> None:
        self.listener = listener
        if on_temporary_error is None:
            on_temporary_error = log_temporary_error
        self.on_temporary_error = on_temporary_error

    def accept(self) -> Any:
        while True:
            try:
                return self.listener.accept()
            except Exception as exc:
                if not is_temporary(exc):
                    raise
                self._notify(exc)

    def _notify(self, exc: Exception) -> None:
        try:
            self.on_temporary_error(exc)
        except Exception:
            # The observer is a side channel; its failures never reach accept's caller
            logger.exception("[listener:accept] temporary error observer failed")

    def close(self) -> None:
        return self.listener.close()

    def addr(self) -> Any:
        return self.listener.addr()
