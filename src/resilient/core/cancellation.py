"""asyncio-backed cancellation signal.

A `CancellationToken` is the concrete `CancellationSignal` handed to
cancellation-aware drivers. It is either cancelled explicitly or carries an
attached deadline (`with_timeout`) that cancels it from the event loop.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from resilient.core.exceptions import DeadlineExceededError, OperationCancelledError
from resilient.core.interfaces.cancellation import CancellationSignal


class CancellationToken(CancellationSignal):
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[BaseException] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        """Token that cancels itself with DeadlineExceededError after `seconds`.

        Must be called while an event loop is running.
        """
        if seconds < 0:
            raise ValueError(f"timeout must be >= 0, got {seconds}")
        token = cls()
        loop = asyncio.get_running_loop()
        token._timer = loop.call_later(seconds, token._expire, seconds)
        return token

    def _expire(self, seconds: float) -> None:
        self._timer = None
        self.cancel(DeadlineExceededError(seconds))

    def cancel(self, reason: Optional[BaseException] = None) -> None:
        """Fire the signal. Later calls keep the first reason."""
        if self._event.is_set():
            return
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._reason = reason if reason is not None else OperationCancelledError()
        self._event.set()

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def done(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
