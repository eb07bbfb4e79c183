"""Async HTTP client with retry logic."""

from __future__ import annotations

import asyncio
import logging
import random
from types import TracebackType

import aiohttp

from ..exceptions import NetworkError
from .protocols import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "DocBrowse/1.0 (Markdown Browser)"


class AsyncHttpClient:
    """
    Async HTTP client with retry logic.

    Features:
    - Exponential backoff retry for transient failures
    - Redirects followed, final URL reported on the response
    - Content size limits to prevent memory exhaustion
    - Timeout controls

    Example:
        client = AsyncHttpClient(max_retries=2)

        async with client:
            response = await client.get("https://example.com")
            print(response.url, response.content_type)
    """

    # Status codes that warrant a retry
    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

    # Exceptions that warrant a retry
    RETRYABLE_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        ConnectionError,
    )

    def __init__(
        self,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        max_content_size: int = 50 * 1024 * 1024,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            max_retries: Maximum retry attempts for failed requests
            retry_base_delay: Base delay for exponential backoff (seconds)
            max_content_size: Maximum response size in bytes
            user_agent: Custom User-Agent string
            proxy: Proxy URL (http:// or socks5://)
            default_timeout: Default request timeout in seconds
        """
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._user_agent = user_agent or DEFAULT_USER_AGENT

        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        """Enter async context and create session."""
        connector = aiohttp.TCPConnector(
            limit=100,  # Total connection limit
            limit_per_host=10,  # Per-host connection limit
            ttl_dns_cache=300,  # DNS cache TTL
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """
        Calculate delay for exponential backoff with jitter.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay: float = self._retry_base_delay * (2**attempt)
        jitter: float = random.uniform(0, self._retry_base_delay)
        return delay + jitter

    async def _read_limited(self, response: aiohttp.ClientResponse, url: str) -> bytes:
        content_length = response.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_content_size:
            raise NetworkError(url, f"Content too large: {content_length} bytes", response.status)

        content = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            content.extend(chunk)
            if len(content) > self._max_content_size:
                raise NetworkError(
                    url,
                    f"Content size limit exceeded: >{self._max_content_size} bytes",
                    response.status,
                )
        return bytes(content)

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """
        Perform an HTTP GET request with retry logic.

        Args:
            url: The URL to fetch
            timeout: Request timeout in seconds (uses default if None)
            headers: Optional additional headers

        Returns:
            HttpResponse with status, content, headers and final URL.
            Non-retryable error statuses are returned, not raised.

        Raises:
            NetworkError: On network errors after retries are exhausted,
                on retryable statuses that persist, or on oversized bodies
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        timeout_val = timeout or self._default_timeout

        for attempt in range(self._max_retries + 1):
            try:
                async with self._session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=timeout_val),
                    headers=headers,
                    proxy=self._proxy,
                    allow_redirects=True,
                ) as response:
                    if response.status in self.RETRYABLE_STATUS_CODES:
                        if attempt < self._max_retries:
                            delay = self._calculate_retry_delay(attempt)
                            logger.warning(
                                f"Got {response.status} for {url}, retrying in {delay:.1f}s "
                                f"(attempt {attempt + 1}/{self._max_retries + 1})"
                            )
                            await asyncio.sleep(delay)
                            continue
                        raise NetworkError(
                            url,
                            f"HTTP {response.status} {response.reason or ''}".strip(),
                            response.status,
                        )

                    content = await self._read_limited(response, url)

                    return HttpResponse(
                        status_code=response.status,
                        content=content,
                        content_type=response.headers.get("Content-Type", ""),
                        headers=dict(response.headers),
                        url=str(response.url),
                    )

            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt < self._max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Error fetching {url}: {e!r}, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self._max_retries + 1})"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"HTTP fetch error for {url} after {self._max_retries + 1} attempts: {e!r}")
                raise NetworkError(url, str(e) or type(e).__name__) from e

        raise NetworkError(url, "Retries exhausted")
