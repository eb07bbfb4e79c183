"""Tests for the HTTP client, decoding, pipeline steps and document loading."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from docbrowse.conversion.classify import ContentKind
from docbrowse.core.loader import DocumentLoader
from docbrowse.core.start_page import START_PAGE_MARKDOWN, START_PAGE_TITLE, START_PAGE_URL
from docbrowse.exceptions import ConversionError, NetworkError
from docbrowse.http import AsyncHttpClient, HttpResponse, decode_body, get_charset
from docbrowse.models.config import BrowserSettings
from docbrowse.pipeline.base import DocumentPipeline, PageContext
from docbrowse.pipeline.steps import (
    ACCEPT_HTML,
    ACCEPT_MARKDOWN,
    ClassifyStep,
    ConvertStep,
    FetchStep,
    ReduceStep,
)

PAGE_HTML = """<!DOCTYPE html>
<html>
<head><title> Example Page </title><script>track()</script></head>
<body>
  <nav><a href="/">Home</a></nav>
  <main>
    <h1>Hello</h1>
    <p>Read the <a href="//example.com/docs">
      docs
    </a>.</p>
  </main>
  <footer>Copyright</footer>
</body>
</html>"""


def make_response(content, content_type="text/html; charset=utf-8", status_code=200, url="https://example.com/"):
    if isinstance(content, str):
        content = content.encode("utf-8")
    return HttpResponse(
        status_code=status_code,
        content=content,
        content_type=content_type,
        headers={"Content-Type": content_type},
        url=url,
    )


class TestDecoding:
    """Tests for charset detection and decoding."""

    def test_get_charset(self):
        assert get_charset('text/html; charset="ISO-8859-1"') == "iso-8859-1"
        assert get_charset("text/html; Charset=UTF-8; foo=bar") == "utf-8"
        assert get_charset("text/html") == "utf-8"
        assert get_charset("") == "utf-8"

    def test_declared_charset(self):
        """The declared charset is used for decoding."""
        assert decode_body("café".encode("latin-1"), "text/html; charset=iso-8859-1") == "café"

    def test_unknown_charset_falls_back_to_utf8(self):
        """An unsupported charset silently falls back to UTF-8."""
        assert decode_body("naïve".encode("utf-8"), "text/plain; charset=no-such-charset") == "naïve"

    def test_invalid_bytes_are_replaced(self):
        """Undecodable bytes do not fail the load."""
        assert decode_body(b"ok \xff", "text/plain") == "ok \ufffd"


class TestAsyncHttpClient:
    """Tests for AsyncHttpClient against a local aiohttp server."""

    @staticmethod
    def _app(counter):
        async def echo_accept(request):
            return web.Response(text=request.headers.get("Accept", ""), content_type="text/plain")

        async def redirect(request):
            raise web.HTTPFound("/final")

        async def final(request):
            return web.Response(text="# Final", content_type="text/markdown")

        async def flaky(request):
            counter["flaky"] += 1
            if counter["flaky"] < 2:
                return web.Response(status=503)
            return web.Response(text="recovered")

        async def missing(request):
            return web.Response(status=404, text="nope")

        async def big(request):
            return web.Response(body=b"x" * 4096)

        app = web.Application()
        app.router.add_get("/accept", echo_accept)
        app.router.add_get("/redirect", redirect)
        app.router.add_get("/final", final)
        app.router.add_get("/flaky", flaky)
        app.router.add_get("/missing", missing)
        app.router.add_get("/big", big)
        return app

    @pytest.mark.asyncio
    async def test_sends_headers(self):
        """Custom headers reach the server."""
        async with TestServer(self._app({"flaky": 0})) as server:
            async with AsyncHttpClient(max_retries=0) as client:
                response = await client.get(str(server.make_url("/accept")), headers={"Accept": ACCEPT_MARKDOWN})

        assert response.status_code == 200
        assert response.content.decode() == ACCEPT_MARKDOWN

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        """The response reports the post-redirect URL."""
        async with TestServer(self._app({"flaky": 0})) as server:
            async with AsyncHttpClient(max_retries=0) as client:
                response = await client.get(str(server.make_url("/redirect")))

        assert response.url.endswith("/final")
        assert response.content == b"# Final"
        assert response.content_type.startswith("text/markdown")

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        """503 responses are retried."""
        counter = {"flaky": 0}
        async with TestServer(self._app(counter)) as server:
            async with AsyncHttpClient(max_retries=2, retry_base_delay=0.01) as client:
                response = await client.get(str(server.make_url("/flaky")))

        assert response.status_code == 200
        assert counter["flaky"] == 2

    @pytest.mark.asyncio
    async def test_client_errors_returned(self):
        """4xx responses are returned, not raised."""
        async with TestServer(self._app({"flaky": 0})) as server:
            async with AsyncHttpClient(max_retries=0) as client:
                response = await client.get(str(server.make_url("/missing")))

        assert response.status_code == 404
        assert not response.ok

    @pytest.mark.asyncio
    async def test_content_size_limit(self):
        """Oversized bodies raise NetworkError."""
        async with TestServer(self._app({"flaky": 0})) as server:
            async with AsyncHttpClient(max_retries=0, max_content_size=1024) as client:
                with pytest.raises(NetworkError, match="large|limit"):
                    await client.get(str(server.make_url("/big")))

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = AsyncHttpClient()
        with pytest.raises(RuntimeError, match="async with"):
            await client.get("https://example.com")


class TestFetchStep:
    """Tests for FetchStep."""

    @pytest.fixture
    def mock_http_client(self):
        """Create mock HTTP client."""
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_accept_header_prefers_markdown(self, mock_http_client):
        mock_http_client.get.return_value = make_response("# Hi", "text/markdown")

        await FetchStep(mock_http_client, prefer_markdown=True).execute(PageContext(url="https://example.com/"))

        mock_http_client.get.assert_awaited_once_with("https://example.com/", headers={"Accept": ACCEPT_MARKDOWN})
        assert ACCEPT_MARKDOWN.index("text/markdown") < ACCEPT_MARKDOWN.index("text/html")

    @pytest.mark.asyncio
    async def test_accept_header_html_only(self, mock_http_client):
        mock_http_client.get.return_value = make_response("<p>Hi</p>")

        await FetchStep(mock_http_client, prefer_markdown=False).execute(PageContext(url="https://example.com/"))

        mock_http_client.get.assert_awaited_once_with("https://example.com/", headers={"Accept": ACCEPT_HTML})
        assert "markdown" not in ACCEPT_HTML

    @pytest.mark.asyncio
    async def test_populates_context(self, mock_http_client):
        """Final URL, status, type and decoded text land on the context."""
        mock_http_client.get.return_value = make_response(
            "Grüße".encode("iso-8859-1"),
            "text/plain; charset=ISO-8859-1",
            url="https://example.com/after-redirect",
        )

        ctx = await FetchStep(mock_http_client).execute(PageContext(url="https://example.com/before"))

        assert ctx.final_url == "https://example.com/after-redirect"
        assert ctx.document_url == "https://example.com/after-redirect"
        assert ctx.status_code == 200
        assert ctx.text == "Grüße"
        assert ctx.bytes_downloaded == 5

    @pytest.mark.asyncio
    async def test_error_status_raises(self, mock_http_client):
        mock_http_client.get.return_value = make_response("Not Found", status_code=404)

        with pytest.raises(NetworkError, match="404") as exc_info:
            await FetchStep(mock_http_client).execute(PageContext(url="https://example.com/missing"))

        assert exc_info.value.status_code == 404


class TestDerivationSteps:
    """Tests for ClassifyStep, ReduceStep and ConvertStep."""

    @pytest.mark.asyncio
    async def test_native_markdown_stops_pipeline(self):
        ctx = PageContext(url="https://example.com/readme", text="# Readme\n\nBody", content_type="text/markdown")

        ctx = await ClassifyStep().execute(ctx)

        assert ctx.kind == ContentKind.NATIVE
        assert ctx.markdown == "# Readme\n\nBody"
        assert ctx.title == "Readme"
        assert ctx.should_skip is True

    @pytest.mark.asyncio
    async def test_markup_continues(self):
        ctx = PageContext(url="https://example.com/", text=PAGE_HTML, content_type="text/html")

        ctx = await ClassifyStep().execute(ctx)

        assert ctx.kind == ContentKind.MARKUP
        assert ctx.title == "Example Page"
        assert ctx.should_skip is False

    @pytest.mark.asyncio
    async def test_reduce_disabled_keeps_raw_markup(self):
        ctx = PageContext(url="https://example.com/", text=PAGE_HTML, kind=ContentKind.MARKUP)

        ctx = await ReduceStep(auto_convert=False).execute(ctx)

        assert ctx.markdown == PAGE_HTML
        assert ctx.reduced_html is None
        assert ctx.should_skip is True

    @pytest.mark.asyncio
    async def test_reduce_then_convert(self):
        ctx = PageContext(url="https://example.com/", text=PAGE_HTML, kind=ContentKind.MARKUP)

        ctx = await ReduceStep().execute(ctx)
        ctx = await ConvertStep().execute(ctx)

        assert "# Hello" in ctx.markdown
        assert "[docs](https://example.com/docs)" in ctx.markdown
        assert "Home" not in ctx.markdown
        assert "Copyright" not in ctx.markdown

    @pytest.mark.asyncio
    async def test_convert_uses_injected_converter(self):
        converter = MagicMock()
        converter.convert.return_value = "converted\n\n\n\ntext  "
        ctx = PageContext(url="https://example.com/", reduced_html="<p>x</p>")

        ctx = await ConvertStep(converter).execute(ctx)

        converter.convert.assert_called_once_with("<p>x</p>")
        assert ctx.markdown == "converted\n\ntext"


class TestDocumentPipeline:
    """Tests for DocumentPipeline error handling."""

    @pytest.mark.asyncio
    async def test_step_exception_recorded(self):
        failing = MagicMock()
        failing.name = "explode"
        failing.execute = AsyncMock(side_effect=NetworkError("https://example.com/", "Connection refused"))
        after = MagicMock()
        after.name = "after"
        after.execute = AsyncMock()

        ctx = await DocumentPipeline(steps=[failing, after]).execute("https://example.com/")

        assert ctx.error == "Connection refused"
        assert ctx.error_step == "explode"
        after.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_context_becomes_error_document(self):
        ctx = PageContext(url="https://example.com/", error="Connection refused")

        document = ctx.to_document()

        assert document.is_error
        assert document.title == "Error"
        assert document.body.startswith("# Error Loading Page")
        assert "Failed to load: https://example.com/" in document.body
        assert "**Error:** Connection refused" in document.body
        assert document.is_native is False


class TestDocumentLoader:
    """Tests for DocumentLoader."""

    @pytest.fixture
    def mock_http_client(self):
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_native_markdown_verbatim(self, mock_http_client):
        """A text/markdown body is used exactly as received."""
        body = "# Guide\n\nSome *text*  \n\n\n\n1.\n"
        mock_http_client.get.return_value = make_response(body, "text/markdown; charset=utf-8", url="https://example.com/guide.md")

        document = await DocumentLoader(mock_http_client).load("https://example.com/guide.md", BrowserSettings())

        assert document.body == body
        assert document.is_native is True
        assert document.raw_markup == ""
        assert document.title == "Guide"

    @pytest.mark.asyncio
    async def test_derived_document(self, mock_http_client):
        """HTML is reduced, converted and normalized; the final URL is kept."""
        mock_http_client.get.return_value = make_response(PAGE_HTML, url="https://example.com/final")

        document = await DocumentLoader(mock_http_client).load("https://example.com/start", BrowserSettings())

        assert document.url == "https://example.com/final"
        assert document.title == "Example Page"
        assert document.is_native is False
        assert document.raw_markup == PAGE_HTML
        assert document.body.startswith("# Hello")
        assert "track()" not in document.body

    @pytest.mark.asyncio
    async def test_auto_convert_off(self, mock_http_client):
        """With auto-convert off the raw markup is the body."""
        mock_http_client.get.return_value = make_response(PAGE_HTML)

        document = await DocumentLoader(mock_http_client).load(
            "https://example.com/", BrowserSettings(auto_convert=False)
        )

        assert document.body == PAGE_HTML
        assert document.raw_markup == PAGE_HTML

    @pytest.mark.asyncio
    async def test_negotiation_setting_controls_accept(self, mock_http_client):
        mock_http_client.get.return_value = make_response(PAGE_HTML)
        loader = DocumentLoader(mock_http_client)

        await loader.load("https://example.com/", BrowserSettings(send_accept_markdown=False))

        assert mock_http_client.get.await_args.kwargs["headers"] == {"Accept": ACCEPT_HTML}

    @pytest.mark.asyncio
    async def test_network_error_document(self, mock_http_client):
        mock_http_client.get.side_effect = NetworkError("https://down.example/", "Cannot connect to host")

        document = await DocumentLoader(mock_http_client).load("https://down.example/", BrowserSettings())

        assert document.is_error
        assert document.url == "https://down.example/"
        assert "Cannot connect to host" in document.body

    @pytest.mark.asyncio
    async def test_http_error_document(self, mock_http_client):
        mock_http_client.get.return_value = make_response("gone", status_code=410)

        document = await DocumentLoader(mock_http_client).load("https://example.com/old", BrowserSettings())

        assert document.is_error
        assert document.error == "HTTP 410"

    @pytest.mark.asyncio
    async def test_conversion_error_document(self, mock_http_client):
        mock_http_client.get.return_value = make_response(PAGE_HTML)
        converter = MagicMock()
        converter.convert.side_effect = ConversionError("engine failed")

        document = await DocumentLoader(mock_http_client, converter=converter).load(
            "https://example.com/", BrowserSettings()
        )

        assert document.is_error
        assert document.error == "engine failed"

    @pytest.mark.asyncio
    async def test_start_page_native(self, mock_http_client):
        document = await DocumentLoader(mock_http_client).load(START_PAGE_URL, BrowserSettings())

        mock_http_client.get.assert_not_awaited()
        assert document.body == START_PAGE_MARKDOWN
        assert document.title == START_PAGE_TITLE
        assert document.is_native is True

    @pytest.mark.asyncio
    async def test_start_page_derived(self, mock_http_client):
        document = await DocumentLoader(mock_http_client).load(
            START_PAGE_URL, BrowserSettings(send_accept_markdown=False)
        )

        mock_http_client.get.assert_not_awaited()
        assert document.url == START_PAGE_URL
        assert document.title == START_PAGE_TITLE
        assert document.is_native is False
        assert "[docs.python.org](https://docs.python.org)" in document.body
