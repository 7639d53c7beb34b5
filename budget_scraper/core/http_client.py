"""
Async HTTP client with rate limiting and retries.

Built on httpx with:
- Per-domain minimum-interval rate limiting
- Exponential backoff retry on throttling/server errors (429, 5xx)
- Timeouts treated as plain fetch failures (no retry within a run)
- User-agent rotation
"""

from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import FetchError
from .rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)


# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
]

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RetryableHttpError(FetchError):
    """HTTP status the server expects us to retry later."""


class HttpClient:
    """
    Async HTTP client with rate limiting and retries.

    Usage:
        async with HttpClient(min_interval=1.0) as client:
            html = await client.get_text("https://example.com")
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_wait: float = 1.0,
        headers: Optional[dict[str, str]] = None,
        rotate_user_agent: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            min_interval: Minimum seconds between requests to one domain
            timeout: Request timeout in seconds
            max_retries: Maximum attempts for retryable status codes
            retry_wait: Base backoff in seconds between retries
            headers: Default headers sent with every request
            rotate_user_agent: Rotate browser user agents per request
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.min_interval = min_interval
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_wait = retry_wait
        self.headers = headers or {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "pl-PL,pl;q=0.9,en;q=0.8",
        }
        self.rotate_user_agent = rotate_user_agent
        self.transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._rate_limiters: dict[str, RateLimiter] = {}
        self._user_agent_index = 0
        self.request_count = 0

    async def __aenter__(self) -> "HttpClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers=self.headers,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_rate_limiter(self, url: str) -> RateLimiter:
        """Get or create rate limiter for domain."""
        domain = urlparse(url).netloc
        if domain not in self._rate_limiters:
            self._rate_limiters[domain] = RateLimiter(min_interval=self.min_interval)
        return self._rate_limiters[domain]

    def _get_user_agent(self) -> str:
        """Get next user agent in rotation."""
        ua = USER_AGENTS[self._user_agent_index % len(USER_AGENTS)]
        self._user_agent_index += 1
        return ua

    async def _do_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute a single rate-limited HTTP request."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        headers = dict(kwargs.pop("headers", None) or {})
        if self.rotate_user_agent and "User-Agent" not in headers:
            headers["User-Agent"] = self._get_user_agent()

        await self._get_rate_limiter(url).wait()
        self.request_count += 1

        response = await self._client.request(method, url, headers=headers, **kwargs)

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {response.status_code} for {url}")
        response.raise_for_status()

        return response

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Request with rate limiting and retry on throttling.

        Args:
            method: HTTP method
            url: URL to fetch
            **kwargs: Additional httpx arguments (params, headers, ...)

        Returns:
            httpx.Response object

        Raises:
            FetchError: On timeout, connection failure or error status
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_wait, min=self.retry_wait, max=10),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._do_request(method, url, **kwargs)
        except FetchError:
            raise
        except httpx.TimeoutException as e:
            raise FetchError(f"Timeout fetching {url}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"HTTP error fetching {url}: {e}") from e

        raise FetchError(f"No response for {url}")

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """GET request with rate limiting."""
        logger.debug("http_get", url=url, params=kwargs.get("params"))
        return await self.request("GET", url, **kwargs)

    async def get_text(self, url: str, **kwargs) -> str:
        """GET request returning text content."""
        response = await self.get(url, **kwargs)
        return response.text

    async def get_json(self, url: str, **kwargs) -> Any:
        """
        GET request returning decoded JSON.

        Raises:
            FetchError: Also when the payload is not valid JSON
        """
        response = await self.get(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON payload from {url}") from e

