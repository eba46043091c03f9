"""
Unit tests for the feed fetcher.
"""
import httpx
import pytest

from alert_feed.core.exceptions import FetchError
from alert_feed.feeds.fetcher import FeedFetcher, FetcherConfig

FEED_URL = "https://news.example.com/alerts/feed.xml"
FEED_XML = "<feed><title>Alerts</title></feed>"


def make_config(**overrides) -> FetcherConfig:
    values = {"max_retries": 3, "retry_delay_seconds": 0.0}
    values.update(overrides)
    return FetcherConfig(**values)


class TestFeedFetcher:
    """Tests for FeedFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        """Test a 200 response returns the body with the expected headers."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=FEED_XML)

        async with FeedFetcher(make_config(), transport=httpx.MockTransport(handler)) as fetcher:
            body = await fetcher.fetch(FEED_URL)

        assert body == FEED_XML
        assert len(seen) == 1
        assert str(seen[0].url) == FEED_URL
        assert seen[0].headers["Accept"] == "application/xml"
        assert seen[0].headers["User-Agent"] == "Mozilla/5.0"

    @pytest.mark.asyncio
    async def test_fetch_through_gateway(self):
        """Test the feed URL is passed to the gateway as a query parameter."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=FEED_XML)

        config = make_config(gateway_url="http://gateway.local/api/feed")
        async with FeedFetcher(config, transport=httpx.MockTransport(handler)) as fetcher:
            await fetcher.fetch(FEED_URL)

        assert seen[0].url.host == "gateway.local"
        assert seen[0].url.path == "/api/feed"
        assert seen[0].url.params["url"] == FEED_URL

    @pytest.mark.asyncio
    async def test_non_2xx_retries_then_raises(self):
        """Test HTTP errors are retried and then surface as FetchError."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        async with FeedFetcher(make_config(), transport=httpx.MockTransport(handler)) as fetcher:
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch(FEED_URL)

        assert len(calls) == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.url == FEED_URL

    @pytest.mark.asyncio
    async def test_recovers_after_transient_error(self):
        """Test a later successful attempt wins."""
        responses = iter([httpx.Response(500), httpx.Response(200, text=FEED_XML)])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        async with FeedFetcher(make_config(), transport=httpx.MockTransport(handler)) as fetcher:
            assert await fetcher.fetch(FEED_URL) == FEED_XML

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Test connection failures surface as FetchError without a status."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        config = make_config(max_retries=1)
        async with FeedFetcher(config, transport=httpx.MockTransport(handler)) as fetcher:
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch(FEED_URL)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fetch_before_start(self):
        """Test fetching without starting raises RuntimeError."""
        fetcher = FeedFetcher(make_config())
        with pytest.raises(RuntimeError, match="Fetcher not started"):
            await fetcher.fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_close_resets_client(self):
        fetcher = FeedFetcher(make_config(), transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        await fetcher.start()
        assert fetcher.is_started
        await fetcher.close()
        assert not fetcher.is_started
