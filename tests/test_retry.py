"""
Tests for the retry wrapper.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from commitdigest.exceptions import ProviderError, RetryExhaustedError
from commitdigest.retry import is_rate_limit_error, with_retry


class RateLimited(Exception):
    status_code = 429


class TestIsRateLimitError:
    """Test classification of failures."""

    def test_status_code_429(self):
        assert is_rate_limit_error(RateLimited("slow down"))

    def test_timeout(self):
        assert is_rate_limit_error(asyncio.TimeoutError())

    def test_message_markers(self):
        assert is_rate_limit_error(Exception("RESOURCE_EXHAUSTED: Quota exceeded"))
        assert is_rate_limit_error(Exception("The model is overloaded"))

    def test_other_errors(self):
        assert not is_rate_limit_error(ValueError("invalid request"))
        error = Exception("bad request")
        error.code = SimpleNamespace()
        assert not is_rate_limit_error(error)


@pytest.mark.asyncio
class TestWithRetry:
    """Test retry-with-backoff behaviour."""

    async def test_first_success_is_returned(self):
        call = AsyncMock(return_value="ok")
        sleep = AsyncMock()
        assert await with_retry(call, max_attempts=3, base_delay=60, sleep=sleep) == "ok"
        sleep.assert_not_awaited()

    async def test_retryable_failures_are_retried(self):
        call = AsyncMock(side_effect=[RateLimited("429"), RateLimited("429"), "ok"])
        sleep = AsyncMock()

        result = await with_retry(call, max_attempts=5, base_delay=60, sleep=sleep)

        assert result == "ok"
        assert call.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [60, 60]

    async def test_linear_backoff(self):
        call = AsyncMock(side_effect=[RateLimited("429"), RateLimited("429"), "ok"])
        sleep = AsyncMock()

        await with_retry(call, max_attempts=5, base_delay=10, linear=True, sleep=sleep)

        assert [c.args[0] for c in sleep.await_args_list] == [10, 20]

    async def test_jitter_is_bounded(self):
        call = AsyncMock(side_effect=[RateLimited("429"), "ok"])
        sleep = AsyncMock()

        await with_retry(call, max_attempts=2, base_delay=10, jitter=2, sleep=sleep)

        assert 10 <= sleep.await_args.args[0] <= 12

    async def test_exhaustion_carries_last_error(self):
        last = RateLimited("still limited")
        call = AsyncMock(side_effect=[RateLimited("limited"), last])
        sleep = AsyncMock()

        with pytest.raises(RetryExhaustedError) as exc_info:
            await with_retry(call, max_attempts=2, base_delay=1, sleep=sleep)

        assert exc_info.value.last_error is last
        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value, ProviderError)
        assert sleep.await_count == 1

    async def test_non_retryable_error_is_not_retried(self):
        call = AsyncMock(side_effect=ValueError("invalid request"))
        sleep = AsyncMock()

        with pytest.raises(ProviderError) as exc_info:
            await with_retry(call, max_attempts=5, base_delay=1, sleep=sleep)

        assert not isinstance(exc_info.value, RetryExhaustedError)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert call.await_count == 1

    async def test_custom_predicate(self):
        call = AsyncMock(side_effect=[KeyError("flaky"), "ok"])
        result = await with_retry(
            call,
            max_attempts=2,
            base_delay=0,
            is_retryable=lambda e: isinstance(e, KeyError),
            sleep=AsyncMock(),
        )
        assert result == "ok"

    async def test_invalid_attempt_count(self):
        with pytest.raises(ValueError):
            await with_retry(AsyncMock(), max_attempts=0, base_delay=1)
