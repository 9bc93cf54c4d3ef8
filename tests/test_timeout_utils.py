"""Tests for camera timeout and retry utilities."""

from __future__ import annotations

import threading
import time
from unittest.mock import Mock, patch

import pytest

from capture.timeout_utils import (
    RetryPolicy,
    call_with_retry,
    exponential_backoff,
    run_with_timeout,
)
from exceptions import DeviceUnavailableError


class TestRunWithTimeout:
    """Test timeout wrapper for camera operations."""

    def test_successful_operation_completes(self):
        assert run_with_timeout(lambda: "success", timeout_seconds=1.0) == "success"

    def test_slow_operation_times_out(self):
        """Operations exceeding timeout should raise DeviceUnavailableError."""

        def slow_func():
            time.sleep(1.0)

        with pytest.raises(DeviceUnavailableError, match="timed out"):
            run_with_timeout(slow_func, timeout_seconds=0.1)

    def test_exception_propagated(self):
        def failing_func():
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            run_with_timeout(failing_func, timeout_seconds=1.0)

    def test_timeout_with_arguments(self):
        def func_with_args(a, b, c=None):
            return f"{a}-{b}-{c}"

        assert run_with_timeout(func_with_args, 1.0, "ignored", 1, 2, c=3) == "1-2-3"

    def test_late_result_released_after_timeout(self):
        """A handle acquired after the deadline is handed to the cleanup callback."""
        release = threading.Event()
        released = []

        def slow_open():
            release.wait(2.0)
            return "handle"

        def cleanup(handle):
            released.append(handle)

        with pytest.raises(DeviceUnavailableError):
            run_with_timeout(slow_open, timeout_seconds=0.05, on_late_result=cleanup)
        assert released == []

        release.set()
        deadline = time.monotonic() + 2.0
        while not released and time.monotonic() < deadline:
            time.sleep(0.01)
        assert released == ["handle"]

    def test_cleanup_not_called_on_time(self):
        cleanup = Mock()

        assert run_with_timeout(lambda: "handle", timeout_seconds=1.0, on_late_result=cleanup) == "handle"
        assert cleanup.call_count == 0

    def test_cleanup_skipped_when_late_call_fails(self):
        release = threading.Event()
        cleanup = Mock()

        def slow_fail():
            release.wait(2.0)
            raise DeviceUnavailableError("not found")

        with pytest.raises(DeviceUnavailableError, match="timed out"):
            run_with_timeout(slow_fail, timeout_seconds=0.05, on_late_result=cleanup)
        release.set()
        time.sleep(0.1)
        assert cleanup.call_count == 0


class TestExponentialBackoff:
    def test_first_attempt_uses_base_delay(self):
        assert exponential_backoff(0, base_delay=0.5) == 0.5

    def test_delay_respects_max(self):
        assert exponential_backoff(10, base_delay=1.0, max_delay=5.0) == 5.0

    def test_exponential_growth(self):
        delays = [exponential_backoff(i, base_delay=0.5, max_delay=10.0) for i in range(5)]
        assert delays == [0.5, 1.0, 2.0, 4.0, 8.0]


class TestRetryPolicy:
    def test_retries_matching_exceptions_until_limit(self):
        policy = RetryPolicy(max_attempts=3)
        error = DeviceUnavailableError("busy")

        assert policy.should_retry(0, error)
        assert policy.should_retry(1, error)
        assert not policy.should_retry(2, error)

    def test_other_exceptions_not_retried(self):
        assert not RetryPolicy(max_attempts=3).should_retry(0, ValueError("bad index"))


class TestCallWithRetry:
    @patch("capture.timeout_utils.time.sleep")
    def test_succeeds_after_transient_failures(self, mock_sleep):
        func = Mock(side_effect=[DeviceUnavailableError("busy"), DeviceUnavailableError("busy"), "ok"])
        func.__name__ = "open_camera"

        assert call_with_retry(func, RetryPolicy(max_attempts=3)) == "ok"
        assert func.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("capture.timeout_utils.time.sleep")
    def test_gives_up_after_max_attempts(self, mock_sleep):
        func = Mock(side_effect=DeviceUnavailableError("still busy"))
        func.__name__ = "open_camera"

        with pytest.raises(DeviceUnavailableError, match="still busy"):
            call_with_retry(func, RetryPolicy(max_attempts=2, base_delay=0.01))
        assert func.call_count == 2

    def test_non_retryable_raises_immediately(self):
        func = Mock(side_effect=ValueError("bad index"))
        func.__name__ = "open_camera"

        with pytest.raises(ValueError):
            call_with_retry(func, RetryPolicy(max_attempts=5))
        assert func.call_count == 1
