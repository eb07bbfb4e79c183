"""FetchStep - HTTP fetching pipeline step."""

import logging

from ...exceptions import NetworkError
from ...http.decoding import decode_body
from ...http.protocols import HttpClient
from ..base import PageContext

logger = logging.getLogger(__name__)

# Accept header values, most preferred first
ACCEPT_MARKDOWN = "text/markdown, text/x-markdown, text/plain, text/html, */*"
ACCEPT_HTML = "text/html, */*"


def accept_header(prefer_markdown: bool) -> str:
    """Accept header for the given negotiation preference."""
    return ACCEPT_MARKDOWN if prefer_markdown else ACCEPT_HTML


class FetchStep:
    """
    Pipeline step that fetches page content via HTTP.

    Populates:
        ctx.final_url: URL after redirects
        ctx.text: Decoded response body
        ctx.status_code: HTTP status code
        ctx.content_type: Content-Type header value
        ctx.bytes_downloaded: Size of downloaded content

    Raises exception for:
        - Network errors after retries
        - Any status of 400 or above
        - Content size exceeded

    Example:
        async with AsyncHttpClient() as http_client:
            fetch_step = FetchStep(http_client, prefer_markdown=True)
            ctx = await fetch_step.execute(PageContext(url=url))
            print(ctx.final_url, ctx.content_type)
    """

    name = "fetch"

    def __init__(self, http_client: HttpClient, prefer_markdown: bool = True) -> None:
        """
        Initialize the fetch step.

        Args:
            http_client: HTTP client implementing HttpClient protocol
            prefer_markdown: Ask for Markdown ahead of HTML
        """
        self._client = http_client
        self._prefer_markdown = prefer_markdown

    async def execute(self, ctx: PageContext) -> PageContext:
        """
        Execute the fetch step.

        Args:
            ctx: Page context with URL to fetch

        Returns:
            PageContext with text, final_url, status_code, content_type populated
        """
        url = ctx.url
        headers = {"Accept": accept_header(self._prefer_markdown)}

        logger.debug(f"Fetching {url} (Accept: {headers['Accept']})")
        response = await self._client.get(url, headers=headers)

        ctx.status_code = response.status_code
        ctx.content_type = response.content_type
        ctx.bytes_downloaded = len(response.content)
        ctx.final_url = response.url or url

        if response.status_code >= 400:
            raise NetworkError(url, f"HTTP {response.status_code}", response.status_code)

        ctx.text = decode_body(response.content, response.content_type)

        logger.debug(f"Fetched {ctx.final_url}: {ctx.bytes_downloaded} bytes ({ctx.content_type or 'no content type'})")
        return ctx
