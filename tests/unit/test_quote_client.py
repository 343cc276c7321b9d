"""
Unit tests for QuoteClient retry behavior.

Uses httpx.MockTransport so no network is touched.
"""

from decimal import Decimal

import httpx
import pytest

from investfolio.providers import QuoteClient


def make_client(handler, sleep, max_attempts=3) -> QuoteClient:
    transport = httpx.MockTransport(handler)
    return QuoteClient(
        client=httpx.AsyncClient(transport=transport),
        max_attempts=max_attempts,
        backoff_base=2,
        sleep=sleep,
    )


class TestFetchWithRetry:
    """Tests for bounded retries with exponential backoff."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, no_sleep):
        def handler(request):
            return httpx.Response(200, json={"bitcoin": {"usd": 65000.12}})

        client = make_client(handler, no_sleep)
        data = await client.fetch_with_retry("https://prices.test/simple/price")

        assert data == {"bitcoin": {"usd": Decimal("65000.12")}}
        assert no_sleep.delays == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, no_sleep):
        """
        GIVEN a service that fails twice and then succeeds
        WHEN fetch_with_retry is called with 3 attempts
        THEN it returns the body after waiting 2s and 4s
        """
        responses = iter([
            httpx.Response(500),
            httpx.Response(429),
            httpx.Response(200, json={"ok": True}),
        ])
        calls = []

        def handler(request):
            calls.append(request.url)
            return next(responses)

        client = make_client(handler, no_sleep)
        data = await client.fetch_with_retry("https://prices.test/search", params={"query": "btc"})

        assert data == {"ok": True}
        assert len(calls) == 3
        assert no_sleep.delays == [2, 4]
        assert calls[0].params["query"] == "btc"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_final_failure_propagates(self, no_sleep):
        """
        GIVEN a service that always fails
        WHEN fetch_with_retry exhausts its attempts
        THEN the last error is raised
        """
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        client = make_client(handler, no_sleep)
        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_with_retry("https://prices.test/simple/price")

        assert len(calls) == 3
        assert no_sleep.delays == [2, 4]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_is_retried(self, no_sleep):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[1, 2])

        client = make_client(handler, no_sleep)
        data = await client.fetch_with_retry("https://prices.test/x")

        assert data == [1, 2]
        assert no_sleep.delays == [2]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unreadable_body_is_retried(self, no_sleep):
        def handler(request):
            return httpx.Response(200, content=b"<html>not json</html>")

        client = make_client(handler, no_sleep, max_attempts=2)
        with pytest.raises(ValueError):
            await client.fetch_with_retry("https://prices.test/x")

        assert no_sleep.delays == [2]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_per_call_attempts_override(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = make_client(handler, no_sleep)
        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_with_retry("https://prices.test/x", max_attempts=1)

        assert len(calls) == 1
        assert no_sleep.delays == []
        await client.aclose()

    def test_backoff_delay(self, no_sleep):
        client = make_client(lambda request: httpx.Response(200), no_sleep)

        assert [client.backoff_delay(n) for n in (1, 2, 3)] == [2, 4, 8]

    @pytest.mark.asyncio
    async def test_each_failed_attempt_is_logged(self, no_sleep, caplog):
        """
        GIVEN a service that always fails
        WHEN fetch_with_retry exhausts 2 attempts
        THEN one warning per attempt is logged and only the first will retry
        """
        client = make_client(lambda request: httpx.Response(500), no_sleep, max_attempts=2)

        with caplog.at_level("WARNING", logger="investfolio.providers.quote_client"):
            with pytest.raises(httpx.HTTPStatusError):
                await client.fetch_with_retry("https://prices.test/x")

        failures = [r for r in caplog.records if r.getMessage() == "Price API request failed"]
        assert [r.attempt for r in failures] == [1, 2]
        assert [r.will_retry for r in failures] == [True, False]
        await client.aclose()
