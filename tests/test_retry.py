"""
Tests for the backoff schedule and the bounded retry helper.
"""

import pytest

from nuki_bridge.actions.errors import TransportNonRetryable, TransportRetryable
from nuki_bridge.actions.retry import delay_for_attempt, retry_async
from nuki_bridge.actions.verification_config import VerificationConfig


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class TestDelayForAttempt:
    """Test the backoff curve."""

    def test_first_delay_is_initial_delay(self):
        """Test that attempt 0 waits the initial delay."""
        assert delay_for_attempt(0) == 2000

    def test_growth_curve(self):
        """Test the 1.5x growth between attempts."""
        assert delay_for_attempt(1) == pytest.approx(3000)
        assert delay_for_attempt(2) == pytest.approx(4500)
        assert delay_for_attempt(3) == pytest.approx(6750)

    def test_capped_at_max_delay(self):
        """Test that delays are capped at the maximum."""
        assert delay_for_attempt(4) == 10000  # 10125 before the cap
        assert delay_for_attempt(50) == 10000

    def test_monotonically_non_decreasing(self):
        """Test that delays never shrink as attempts grow."""
        delays = [delay_for_attempt(n) for n in range(20)]
        assert delays == sorted(delays)
        assert max(delays) == VerificationConfig().MAX_DELAY_MS

    def test_custom_config(self):
        """Test the curve with a custom configuration."""
        config = VerificationConfig(
            INITIAL_DELAY_MS=100, BACKOFF_MULTIPLIER=2, MAX_DELAY_MS=500
        )
        assert [delay_for_attempt(n, config) for n in range(5)] == [
            100,
            200,
            400,
            500,
            500,
        ]

    def test_negative_attempt_rejected(self):
        """Test that a negative attempt index is rejected."""
        with pytest.raises(ValueError):
            delay_for_attempt(-1)


class TestRetryAsync:
    """Test the bounded retry loop used by the API client."""

    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self):
        """Test that an immediate success does not sleep."""
        sleep = RecordingSleep()

        async def operation(attempt):
            return "ok"

        assert await retry_async(operation, sleep=sleep) == "ok"
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_retries_retryable_errors_then_succeeds(self):
        """Test that retryable errors are retried until success."""
        sleep = RecordingSleep()
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            if attempt < 2:
                raise TransportRetryable("HTTP 503", status_code=503)
            return "ok"

        assert await retry_async(operation, sleep=sleep) == "ok"
        assert attempts == [0, 1, 2]
        assert sleep.calls == [2.0, 3.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Test that the last error is raised after MAX_RETRIES retries."""
        sleep = RecordingSleep()
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            raise TransportRetryable("HTTP 429", status_code=429)

        with pytest.raises(TransportRetryable) as exc_info:
            await retry_async(operation, sleep=sleep)

        assert exc_info.value.status_code == 429
        assert attempts == [0, 1, 2, 3]  # first try + 3 retries
        assert len(sleep.calls) == 3

    @pytest.mark.asyncio
    async def test_zero_retries_raises_first_error(self):
        """Test that MAX_RETRIES=0 makes one attempt and re-raises its error."""
        sleep = RecordingSleep()
        first = TransportRetryable("HTTP 503", status_code=503)

        async def operation(attempt):
            raise first

        with pytest.raises(TransportRetryable) as exc_info:
            await retry_async(operation, VerificationConfig(MAX_RETRIES=0), sleep)

        assert exc_info.value is first
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_non_retryable_errors_propagate_immediately(self):
        """Test that non-retryable errors are raised on the first attempt."""
        sleep = RecordingSleep()
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            raise TransportNonRetryable("HTTP 401", status_code=401)

        with pytest.raises(TransportNonRetryable):
            await retry_async(operation, sleep=sleep)

        assert attempts == [0]
        assert sleep.calls == []
