"""Browser: wires configuration, transport, loader and session together."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Optional

from ..http import AsyncHttpClient
from ..models.config import BrowserConfig, BrowserSettings
from ..models.document import Document
from ..security.url_validator import UrlValidator
from .loader import DocumentLoader
from .session import Session
from .urls import normalize_url

logger = logging.getLogger(__name__)


class Browser:
    """
    Primary API for docbrowse.

    Owns the HTTP client for its lifetime and exposes a Session.

    Example:
        config = BrowserConfig(settings=BrowserSettings(auto_convert=True))

        async with Browser(config) as browser:
            browser.session.subscribe(on_event)
            await browser.session.navigate("https://example.com")
            print(browser.session.active_tab.document.body)
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the Browser.

        Args:
            config: Configuration (defaults to BrowserConfig())
        """
        self.config = config or BrowserConfig()

        # Components (initialized in __aenter__)
        self._http_client: Optional[AsyncHttpClient] = None
        self._loader: Optional[DocumentLoader] = None
        self._session: Optional[Session] = None
        self._url_validator = UrlValidator(block_private_ips=self.config.network.block_private_addresses)

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Browser not started. Use 'async with Browser()' context manager.")
        return self._session

    @property
    def loader(self) -> DocumentLoader:
        if self._loader is None:
            raise RuntimeError("Browser not started. Use 'async with Browser()' context manager.")
        return self._loader

    async def __aenter__(self) -> Browser:
        """Enter async context and initialize components."""
        network = self.config.network
        self._http_client = AsyncHttpClient(
            max_retries=network.max_retries,
            max_content_size=int(network.max_content_size),
            user_agent=network.user_agent,
            proxy=network.proxy,
            default_timeout=network.timeout,
        )
        await self._http_client.__aenter__()
        logger.debug(f"Browser started (settings: {self.config.settings.model_dump()})")

        self._loader = DocumentLoader(self._http_client)
        self._session = Session(
            self._loader,
            settings=self.config.settings,
            search_url=network.search_url,
            url_validator=self._url_validator,
        )

        if self.config.start_url:
            await self._session.navigate(self.config.start_url)

        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Exit async context and cleanup resources."""
        if self._http_client:
            await self._http_client.__aexit__(exc_type, exc_val, exc_tb)
            self._http_client = None
        self._loader = None

    async def fetch(self, url: str) -> Document:
        """
        Load one document without touching any tab.

        Raises:
            InvalidUrlError: If url cannot be normalized
        """
        target = normalize_url(url, search_url=self.config.network.search_url, validator=self._url_validator)
        return await self.loader.load(target, self.session.get_settings())


def fetch_document_blocking(url: str, config: Optional[BrowserConfig] = None, **settings: Any) -> Document:
    """
    Blocking single-document load.

    This is a convenience wrapper for sync code that can't use async/await.
    For async code, use the Browser class directly.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use the async Browser API instead.

    Args:
        url: Address bar input
        config: Base configuration
        **settings: BrowserSettings overrides (e.g. auto_convert=False)

    Returns:
        The loaded Document (an error document if the load failed)

    Raises:
        InvalidUrlError: If url cannot be normalized

    Example:
        document = fetch_document_blocking("example.com", send_accept_markdown=False)
        print(document.body)
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError(
            "fetch_document_blocking() called from async context. Use 'async with Browser()' instead."
        )
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    config = config or BrowserConfig()
    if settings:
        merged = BrowserSettings.model_validate({**config.settings.model_dump(), **settings})
        config = config.model_copy(update={"settings": merged})

    async def _run() -> Document:
        async with Browser(config) as browser:
            return await browser.fetch(url)

    return asyncio.run(_run())
