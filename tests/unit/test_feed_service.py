"""
Unit tests for the feed service: fetch, parse and normalize end to end.
"""
import httpx
import pytest

from alert_feed.core.exceptions import FetchError, ParseError
from alert_feed.feeds.entry import FeedEntry
from alert_feed.feeds.fetcher import FeedFetcher, FetcherConfig
from alert_feed.feeds.normalizer import EntryNormalizer
from alert_feed.services.feed import FeedService

FEED_URL = "https://www.google.com/alerts/feeds/01234567890/987654321"

GOOGLE_ALERTS_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:idx="urn:atom-extension:indexing">
  <id>tag:google.com,2005:reader/user/01234567890/state/com.google/alerts/987654321</id>
  <title>Google Alert - AI</title>
  <link href="https://www.google.com/alerts/feeds/01234567890/987654321" rel="self"></link>
  <updated>2024-05-01T10:00:00Z</updated>
  <entry>
    <id>tag:google.com,2013:googlealerts/feed:111</id>
    <title type="html">&lt;b&gt;AI&lt;/b&gt; beats benchmark</title>
    <link href="https://www.google.com/url?rct=j&amp;sa=t&amp;url=https://example.com/a"></link>
    <published>2024-05-01T10:00:00Z</published>
    <updated>2024-05-01T10:00:00Z</updated>
    <content type="html">New &lt;b&gt;AI&lt;/b&gt; model &amp;amp; results</content>
    <author><name></name></author>
  </entry>
  <entry>
    <id>tag:google.com,2013:googlealerts/feed:222</id>
    <title type="html">Regulators look at &lt;b&gt;AI&lt;/b&gt;</title>
    <link href="https://www.google.com/url?rct=j&amp;sa=t&amp;url=https://example.com/b"></link>
    <published>2024-05-01T15:30:00+05:30</published>
    <updated>2024-05-01T15:30:00+05:30</updated>
    <content type="html">Policy &lt;i&gt;update&lt;/i&gt;</content>
    <author><name></name></author>
  </entry>
</feed>
"""


def make_service(handler) -> FeedService:
    config = FetcherConfig(max_retries=1, retry_delay_seconds=0.0)
    fetcher = FeedFetcher(config, transport=httpx.MockTransport(handler))
    return FeedService(fetcher, normalizer=EntryNormalizer(default_source="RSS Feed"))


class TestFeedService:
    """Tests for FeedService.fetch_feed."""

    @pytest.mark.asyncio
    async def test_google_alerts_feed(self):
        """Test a Google Alerts Atom feed becomes clean canonical entries."""
        service = make_service(
            lambda request: httpx.Response(200, text=GOOGLE_ALERTS_FEED)
        )

        async with service.fetcher:
            entries = await service.fetch_feed(FEED_URL)

        assert entries == [
            FeedEntry(
                id="tag:google.com,2013:googlealerts/feed:111",
                title="AI beats benchmark",
                content="New AI model & results",
                link="https://www.google.com/url?rct=j&sa=t&url=https://example.com/a",
                published="2024-05-01T10:00:00.000Z",
                source="Google Alert - AI",
            ),
            FeedEntry(
                id="tag:google.com,2013:googlealerts/feed:222",
                title="Regulators look at AI",
                content="Policy update",
                link="https://www.google.com/url?rct=j&sa=t&url=https://example.com/b",
                published="2024-05-01T10:00:00.000Z",
                source="Google Alert - AI",
            ),
        ]

    @pytest.mark.asyncio
    async def test_malformed_document(self):
        """Test markup without any element raises ParseError."""
        service = make_service(lambda request: httpx.Response(200, text="   just text   "))

        async with service.fetcher:
            with pytest.raises(ParseError):
                await service.fetch_feed(FEED_URL)

    @pytest.mark.asyncio
    async def test_http_error(self):
        service = make_service(lambda request: httpx.Response(404, text="not found"))

        async with service.fetcher:
            with pytest.raises(FetchError) as exc_info:
                await service.fetch_feed(FEED_URL)

        assert exc_info.value.status_code == 404
