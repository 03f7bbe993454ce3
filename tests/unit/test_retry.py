"""
Unit tests for rate-limit detection and backoff.
"""

import httpx
import pytest

from fundstat.core.exceptions import ExternalPriceError, LedgerQueryError, RateLimitError
from fundstat.core.retry import is_rate_limit_error, retry_with_backoff

from tests.conftest import RecordingSleep, rate_limited


class TestIsRateLimitError:
    """Tests for 429 detection across cause chains."""

    def test_direct_status(self):
        assert is_rate_limit_error(RateLimitError())
        assert is_rate_limit_error(LedgerQueryError("loadAccount", status_code=429))

    def test_other_status(self):
        assert not is_rate_limit_error(LedgerQueryError("loadAccount", status_code=500))
        assert not is_rate_limit_error(ValueError("boom"))
        assert not is_rate_limit_error(None)

    def test_explicit_cause(self):
        assert is_rate_limit_error(ExternalPriceError("wrapped", cause=RateLimitError()))

    def test_chained_cause(self):
        try:
            try:
                raise RateLimitError()
            except RateLimitError as inner:
                raise RuntimeError("outer") from inner
        except RuntimeError as exc:
            assert is_rate_limit_error(exc)

    def test_http_status_error(self):
        request = httpx.Request("GET", "https://horizon.test/accounts")
        response = httpx.Response(429, request=request)
        exc = httpx.HTTPStatusError("Too Many Requests", request=request, response=response)

        assert is_rate_limit_error(exc)


class TestRetryWithBackoff:
    """Tests for the retry loop."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        sleep = RecordingSleep()

        async def operation():
            return "ok"

        assert await retry_with_backoff(operation, max_attempts=5, initial_delay=2.0, sleep=sleep) == "ok"
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_doubles_delay_until_success(self):
        sleep = RecordingSleep()
        failures = [rate_limited(), rate_limited(), rate_limited()]

        async def operation():
            if failures:
                raise failures.pop()
            return 42

        result = await retry_with_backoff(operation, max_attempts=5, initial_delay=10.0, sleep=sleep)

        assert result == 42
        assert sleep.delays == [10.0, 20.0, 40.0]

    @pytest.mark.asyncio
    async def test_non_retryable_error_is_raised_immediately(self):
        sleep = RecordingSleep()

        async def operation():
            raise LedgerQueryError("loadAccount", status_code=500)

        with pytest.raises(LedgerQueryError):
            await retry_with_backoff(operation, max_attempts=5, initial_delay=2.0, sleep=sleep)

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_last_error_raised_when_exhausted(self):
        sleep = RecordingSleep()
        attempts = []

        async def operation():
            attempts.append(1)
            raise rate_limited()

        with pytest.raises(LedgerQueryError):
            await retry_with_backoff(operation, max_attempts=3, initial_delay=1.0, sleep=sleep)

        assert len(attempts) == 3
        assert sleep.delays == [1.0, 2.0]
