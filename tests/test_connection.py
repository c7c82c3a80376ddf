"""Tests for connection retry utilities."""
from types import SimpleNamespace

import pytest

from junos_lifecycle.utils.connection import RETRYABLE_EXCEPTIONS, with_retry


class Dialer:
    """Object whose retry count comes from its settings, like a transport."""

    def __init__(self, retries: int, failures: int = 0, error: Exception = None):
        self.settings = SimpleNamespace(ssh_retry=retries)
        self.failures = failures
        self.error = error or ConnectionRefusedError("Connection refused")
        self.call_count = 0

    @with_retry(attempts=lambda self: self.settings.ssh_retry, step=0.01)
    async def connect(self):
        self.call_count += 1
        if self.call_count <= self.failures:
            raise self.error
        return "connected"

    @with_retry(attempts=lambda self: self.settings.ssh_retry, step=0.01)
    def connect_sync(self):
        self.call_count += 1
        if self.call_count <= self.failures:
            raise self.error
        return "connected"


class TestWithRetry:
    """Tests for retry decorator."""

    @pytest.mark.asyncio
    async def test_async_success_no_retry(self):
        """Successful async method doesn't retry."""
        dialer = Dialer(retries=3)
        assert await dialer.connect() == "connected"
        assert dialer.call_count == 1

    @pytest.mark.asyncio
    async def test_async_retry_then_success(self):
        """Async method retries on failure then succeeds."""
        dialer = Dialer(retries=3, failures=1)
        assert await dialer.connect() == "connected"
        assert dialer.call_count == 2

    @pytest.mark.asyncio
    async def test_async_max_retries_exceeded(self):
        """Async method raises the last error after all attempts."""
        dialer = Dialer(retries=3, failures=10, error=TimeoutError("Always times out"))
        with pytest.raises(TimeoutError):
            await dialer.connect()
        assert dialer.call_count == 3

    @pytest.mark.asyncio
    async def test_attempts_read_per_instance(self):
        """Each instance uses its own attempt count."""
        one = Dialer(retries=1, failures=10)
        two = Dialer(retries=2, failures=10)
        with pytest.raises(ConnectionRefusedError):
            await one.connect()
        with pytest.raises(ConnectionRefusedError):
            await two.connect()
        assert one.call_count == 1
        assert two.call_count == 2

    @pytest.mark.asyncio
    async def test_zero_attempts_still_tries_once(self):
        """Attempt count below one is raised to one."""
        dialer = Dialer(retries=0)
        assert await dialer.connect() == "connected"
        assert dialer.call_count == 1

    def test_sync_retry_then_success(self):
        """Sync methods are retried too."""
        dialer = Dialer(retries=3, failures=2)
        assert dialer.connect_sync() == "connected"
        assert dialer.call_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_exception(self):
        """Non-retryable exceptions are not retried."""
        dialer = Dialer(retries=3, failures=10, error=ValueError("bad input"))
        with pytest.raises(ValueError):
            await dialer.connect()
        assert dialer.call_count == 1


class TestRetryableExceptions:
    """Tests for retryable exception list."""

    def test_connection_errors_included(self):
        """Connection errors are retryable."""
        assert ConnectionRefusedError in RETRYABLE_EXCEPTIONS
        assert ConnectionResetError in RETRYABLE_EXCEPTIONS
        assert TimeoutError in RETRYABLE_EXCEPTIONS

    def test_value_error_not_included(self):
        """ValueError is not retryable."""
        assert ValueError not in RETRYABLE_EXCEPTIONS
