"""
HTTP fetcher for feed documents with timeouts and retries.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from alert_feed.core.config import Settings, get_settings
from alert_feed.core.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class FetcherConfig:
    """Configuration for feed fetching behavior."""
    # Retry settings
    max_retries: int = 3
    retry_delay_seconds: float = 5.0

    # Timeout settings
    request_timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0

    user_agent: str = "Mozilla/5.0"

    # When set, feeds are requested through this proxy endpoint as ?url=<feed>
    gateway_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FetcherConfig":
        settings = settings or get_settings()
        return cls(
            max_retries=settings.FEED_MAX_RETRIES,
            retry_delay_seconds=settings.FEED_RETRY_DELAY_SECONDS,
            request_timeout_seconds=settings.FEED_REQUEST_TIMEOUT_SECONDS,
            connect_timeout_seconds=settings.FEED_CONNECT_TIMEOUT_SECONDS,
            user_agent=settings.FEED_USER_AGENT,
            gateway_url=settings.FEED_GATEWAY_URL,
        )


class FeedFetcher:
    """
    Retrieves raw feed text for a URL.

    Usage:
        async with FeedFetcher() as fetcher:
            xml = await fetcher.fetch("https://example.com/feed.xml")
    """

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or FetcherConfig.from_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_started(self) -> bool:
        return self._client is not None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self) -> None:
        """Create the underlying HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=self.config.connect_timeout_seconds,
                read=self.config.request_timeout_seconds,
                write=self.config.request_timeout_seconds,
                pool=self.config.request_timeout_seconds,
            ),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/xml",
            "User-Agent": self.config.user_agent,
        }

    def _request_target(self, url: str) -> tuple[str, Optional[Dict[str, str]]]:
        """URL and query params for a feed, routed through the gateway if configured."""
        if self.config.gateway_url:
            return self.config.gateway_url, {"url": url}
        return url, None

    async def fetch(self, url: str) -> str:
        """
        Fetch a feed document.

        Args:
            url: The feed URL

        Returns:
            The response body

        Raises:
            FetchError: On a non-2xx status or transport failure after all retries
            RuntimeError: If the fetcher was not started
        """
        if not self._client:
            raise RuntimeError("Fetcher not started. Use 'async with' or call start()")

        target, params = self._request_target(url)
        attempts = max(1, self.config.max_retries)
        last_error: Optional[FetchError] = None

        for attempt in range(attempts):
            try:
                response = await self._client.get(
                    target, params=params, headers=self._get_headers()
                )

                if response.is_success:
                    return response.text

                last_error = FetchError(
                    url,
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            except httpx.TimeoutException as e:
                last_error = FetchError(url, f"Timeout: {e}")

            except httpx.RequestError as e:
                last_error = FetchError(url, f"Request error: {e}")

            if attempt < attempts - 1:
                logger.warning(
                    "Feed fetch attempt %d/%d failed: %s",
                    attempt + 1, attempts, last_error,
                )
                await asyncio.sleep(self.config.retry_delay_seconds)

        raise last_error
