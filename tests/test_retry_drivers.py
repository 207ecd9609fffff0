"""Unit tests for the synchronous retry drivers.

Most tests run the TenacityRetryAdapter against a fake clock whose time only
moves when the driver sleeps (or the operation advances it), which makes
attempt counts and sleep sequences exact. A few tests use real time with
generous tolerances to check the externally observable timing.
"""

import time

import pytest

from resilient import retry
from resilient.adapters.retry_tenacity import TenacityRetryAdapter
from resilient.core.config import RetryPolicy


class FakeClock:
    """Monotonic clock advanced only by sleep() or advance()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class OverrunningClock(FakeClock):
    """Fake clock whose sleeps take `overrun` seconds longer than requested."""

    def __init__(self, overrun: float):
        super().__init__()
        self.overrun = overrun

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds + self.overrun


class FailingOperation:
    """Raises a fresh error per call until `succeed_on` is reached."""

    def __init__(self, succeed_on=None, result="ok", duration=0.0, clock=None):
        self.calls = 0
        self.errors = []
        self.succeed_on = succeed_on
        self.result = result
        self.duration = duration
        self.clock = clock

    def __call__(self):
        self.calls += 1
        if self.clock is not None and self.duration:
            self.clock.advance(self.duration)
        if self.succeed_on is not None and self.calls >= self.succeed_on:
            return self.result
        error = EOFError(f"attempt {self.calls}")
        self.errors.append(error)
        raise error


# --- Test Fixtures ---

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adapter(clock):
    return TenacityRetryAdapter(sleep=clock.sleep, clock=clock)


# --- Fixed-attempt driver ---

class TestAttempts:

    def test_respects_count_and_sleeps_after_every_attempt(self, adapter, clock):
        """Always failing: N calls, N sleeps (trailing one included), last error raised."""
        op = FailingOperation()

        with pytest.raises(EOFError) as excinfo:
            adapter.attempts(5, 0.25, op)

        assert op.calls == 5
        assert clock.sleeps == [0.25] * 5
        assert clock.now == 1.25
        assert excinfo.value is op.errors[-1]

    def test_returns_as_soon_as_operation_succeeds(self, adapter, clock):
        op = FailingOperation(succeed_on=1, result=42)

        assert adapter.attempts(100, 60.0, op) == 42
        assert op.calls == 1
        assert clock.sleeps == []

    def test_success_after_failures_skips_trailing_sleep(self, adapter, clock):
        op = FailingOperation(succeed_on=3)

        assert adapter.attempts(5, 0.5, op) == "ok"
        assert op.calls == 3
        assert clock.sleeps == [0.5, 0.5]

    def test_single_attempt_still_sleeps_on_failure(self, adapter, clock):
        op = FailingOperation()

        with pytest.raises(EOFError):
            adapter.attempts(1, 0.75, op)
        assert op.calls == 1
        assert clock.sleeps == [0.75]

    @pytest.mark.parametrize("count", [0, -3])
    def test_rejects_count_below_one(self, adapter, count):
        with pytest.raises(ValueError):
            adapter.attempts(count, 0.1, FailingOperation())

    def test_rejects_negative_delay(self, adapter):
        with pytest.raises(ValueError):
            adapter.attempts(3, -0.1, FailingOperation())

    def test_base_exceptions_are_not_retried(self, adapter, clock):
        calls = []

        def op():
            calls.append(1)
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            adapter.attempts(5, 0.25, op)
        assert len(calls) == 1

    def test_real_time_elapsed_is_count_times_delay(self):
        op = FailingOperation()
        start = time.monotonic()

        with pytest.raises(EOFError):
            retry.attempts(5, 0.01, op)

        elapsed = time.monotonic() - start
        assert op.calls == 5
        assert 0.05 <= elapsed < 0.05 + 0.05

    def test_real_time_first_success_does_not_sleep(self):
        start = time.monotonic()
        retry.attempts(100, 60.0, lambda: None)
        assert time.monotonic() - start < 0.05


# --- Timeout driver ---

class TestTimeout:

    def test_respects_timeout_and_sleeps_between_attempts(self, adapter, clock):
        """timeout = 5 * delay with an instant failing op gives 5 calls and 5 sleeps."""
        op = FailingOperation()

        with pytest.raises(EOFError) as excinfo:
            adapter.timeout(1.25, 0.25, op)

        assert op.calls == 5
        assert clock.sleeps == [0.25] * 5
        assert clock.now == 1.25
        assert excinfo.value is op.errors[-1]

    def test_elapsed_is_checked_before_each_new_attempt(self, adapter, clock):
        """A slow op counts toward the timeout; no attempt starts past it."""
        op = FailingOperation(duration=0.5, clock=clock)

        with pytest.raises(EOFError):
            adapter.timeout(1.0, 0.25, op)

        # attempt 1: 0.0-0.5, sleep to 0.75; attempt 2: 0.75-1.25, next would start at 1.5
        assert op.calls == 2
        assert clock.sleeps == [0.25, 0.25]
        assert clock.now == 1.5

    def test_returns_as_soon_as_operation_succeeds(self, adapter, clock):
        op = FailingOperation(succeed_on=1)

        assert adapter.timeout(3600.0, 60.0, op) == "ok"
        assert clock.sleeps == []

    def test_success_before_timeout(self, adapter, clock):
        op = FailingOperation(succeed_on=4)

        assert adapter.timeout(10.0, 0.5, op) == "ok"
        assert op.calls == 4
        assert clock.sleeps == [0.5] * 3

    def test_zero_timeout_attempts_once(self, adapter, clock):
        op = FailingOperation()

        with pytest.raises(EOFError):
            adapter.timeout(0.0, 0.25, op)
        assert op.calls == 1
        assert clock.sleeps == [0.25]

    def test_rejects_negative_values(self, adapter):
        with pytest.raises(ValueError):
            adapter.timeout(-1.0, 0.1, FailingOperation())
        with pytest.raises(ValueError):
            adapter.timeout(1.0, -0.1, FailingOperation())

    def test_overrunning_sleep_never_starts_attempt_past_timeout(self):
        """The timeout is checked after each sleep, however long the sleep actually took."""
        clock = OverrunningClock(overrun=0.06)
        adapter = TenacityRetryAdapter(sleep=clock.sleep, clock=clock)
        starts = []

        def op():
            starts.append(clock.now)
            raise EOFError(f"attempt {len(starts)}")

        with pytest.raises(EOFError) as excinfo:
            adapter.timeout(1.0, 0.45, op)

        # attempt 2 starts at 0.51; its sleep ends at 1.02, past the timeout
        assert len(starts) == 2
        assert all(t < 1.0 for t in starts)
        assert clock.sleeps == [0.45, 0.45]
        assert str(excinfo.value) == "attempt 2"

    def test_real_time_attempt_count_and_elapsed(self):
        op = FailingOperation()
        start = time.monotonic()

        with pytest.raises(EOFError):
            retry.timeout(0.1, 0.02, op)

        elapsed = time.monotonic() - start
        assert op.calls == 5
        assert 0.1 <= elapsed < 0.1 + 0.05

    def test_real_time_first_success_does_not_sleep(self):
        start = time.monotonic()
        retry.timeout(3600.0, 60.0, lambda: None)
        assert time.monotonic() - start < 0.05


# --- Deadline-bounded backoff ---

class TestBackoff:

    def test_returns_when_operation_succeeds(self, adapter, clock):
        op = FailingOperation(succeed_on=10, result=None)

        assert adapter.backoff(60.0, 1.0, 0.001, op) is None
        assert op.calls == 10
        assert len(clock.sleeps) == 9

    def test_sleep_doubles_up_to_max(self, adapter, clock):
        op = FailingOperation(succeed_on=6)

        adapter.backoff(0, 1.0, 0.25, op)

        assert clock.sleeps == [0.25, 0.5, 1.0, 1.0, 1.0]

    def test_stops_once_deadline_has_elapsed(self, adapter, clock):
        op = FailingOperation()

        with pytest.raises(EOFError) as excinfo:
            adapter.backoff(2.0, 1.0, 0.25, op)

        # failures at t=0, 0.25, 0.75, 1.75 sleep; the one at t=2.75 is surfaced
        assert op.calls == 5
        assert clock.sleeps == [0.25, 0.5, 1.0, 1.0]
        assert excinfo.value is op.errors[-1]

    def test_zero_deadline_runs_until_success(self, adapter, clock):
        def op():
            if clock.now > 30.0:
                return "done"
            raise EOFError

        assert adapter.backoff(0, 5.0, 0.25, op) == "done"
        assert max(clock.sleeps) == 5.0

    def test_backoff_state_is_per_call(self, adapter, clock):
        adapter.backoff(0, 1.0, 0.25, FailingOperation(succeed_on=4))
        clock.sleeps.clear()
        adapter.backoff(0, 1.0, 0.25, FailingOperation(succeed_on=3))

        assert clock.sleeps == [0.25, 0.5]

    def test_rejects_inverted_sleep_bounds(self, adapter):
        with pytest.raises(ValueError):
            adapter.backoff(1.0, 0.1, 0.5, FailingOperation())

    def test_rejects_negative_deadline(self, adapter):
        with pytest.raises(ValueError):
            adapter.backoff(-1.0, 0.5, 0.1, FailingOperation())

    def test_real_time_does_not_exceed_deadline_dramatically(self):
        def op():
            time.sleep(0.005)
            raise EOFError

        start = time.monotonic()
        with pytest.raises(EOFError):
            retry.backoff(0.3, 0.005, 0.001, op)
        elapsed = time.monotonic() - start

        assert elapsed >= 0.3
        # one op duration + one max sleep, plus scheduling slack
        assert elapsed < 0.3 + 0.005 + 0.005 + 0.05

    def test_real_time_run_until_success(self):
        start = time.monotonic()

        def op():
            if time.monotonic() - start > 0.2:
                return "up"
            raise EOFError

        assert retry.backoff(0, 0.1, 0.02, op) == "up"


# --- Policy-driven execution ---

class TestExecute:

    def test_dispatches_attempts_policy(self, adapter, clock):
        op = FailingOperation()
        policy = RetryPolicy(strategy="attempts", max_attempts=3, delay=0.5)

        with pytest.raises(EOFError):
            adapter.execute(op, policy)
        assert op.calls == 3
        assert clock.sleeps == [0.5] * 3

    def test_dispatches_timeout_policy(self, adapter, clock):
        op = FailingOperation()
        policy = RetryPolicy(strategy="timeout", timeout=1.0, delay=0.25)

        with pytest.raises(EOFError):
            adapter.execute(op, policy)
        assert op.calls == 4

    def test_dispatches_backoff_policy(self, adapter, clock):
        op = FailingOperation(succeed_on=4)
        policy = RetryPolicy(strategy="backoff", deadline=0, min_sleep=0.25, max_sleep=0.5)

        assert adapter.execute(op, policy) == "ok"
        assert clock.sleeps == [0.25, 0.5, 0.5]

    def test_default_policy_comes_from_settings(self):
        op = FailingOperation(succeed_on=1, result="configured")

        assert retry.execute(op) == "configured"
        assert op.calls == 1
