from typing import Optional


class ResilienceError(Exception):
    """Base exception for errors raised by the resilience primitives themselves.

    Failures raised by retried operations or by an underlying listener are
    never wrapped in this hierarchy; they propagate unchanged.
    """


# Cancellation reasons carried by a CancellationSignal

class CancellationError(ResilienceError):
    """Base exception for the reason a cancellation signal fired."""


class OperationCancelledError(CancellationError):
    """The signal was cancelled explicitly."""
    def __init__(self, message: str = "operation cancelled"):
        self.message = message
        super().__init__(message)


class DeadlineExceededError(CancellationError):
    """The deadline attached to the signal passed.
    
    Attributes:
        timeout_seconds: Configured timeout that elapsed
    """
    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds
        if timeout_seconds is None:
            message = "deadline exceeded"
        else:
            message = f"deadline exceeded after {timeout_seconds}s"
        super().__init__(message)


class RetryCancelledError(ResilienceError):
    """Raised when a cancellation-aware driver is stopped by its signal.
    
    Attributes:
        reason: The exception carried by the signal (e.g. DeadlineExceededError)
    """
    def __init__(self, reason: Optional[BaseException]):
        self.reason = reason
        message = f"retry cancelled: {reason}" if reason is not None else "retry cancelled"
        super().__init__(message)
