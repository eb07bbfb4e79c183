"""Turning a URL into a Document through the load pipeline."""

from __future__ import annotations

import logging
from typing import Protocol

from ..conversion.protocols import ContentReducer, MarkdownConverter
from ..http.protocols import HttpClient
from ..models.config import BrowserSettings
from ..models.document import Document
from ..pipeline.base import DocumentPipeline, PageContext, PipelineStep
from ..pipeline.steps import ClassifyStep, ConvertStep, FetchStep, ReduceStep
from .start_page import START_PAGE_HTML, START_PAGE_MARKDOWN, START_PAGE_TITLE, START_PAGE_URL

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Anything that can produce a Document for a URL."""

    async def load(self, url: str, settings: BrowserSettings) -> Document:
        """
        Load url under the given settings.

        Must not raise for network or conversion failures; those come
        back as an error document.
        """
        ...


class DocumentLoader:
    """
    Production DocumentSource backed by the fetch pipeline.

    A pipeline is assembled per load so that settings changes take
    effect on the next navigation:

        fetch -> classify -> reduce -> convert

    Native Markdown stops after classify; with auto-convert off the
    raw markup stops after reduce.

    Example:
        async with AsyncHttpClient() as client:
            loader = DocumentLoader(client)
            document = await loader.load("https://example.com", BrowserSettings())
    """

    def __init__(
        self,
        http_client: HttpClient,
        reducer: ContentReducer | None = None,
        converter: MarkdownConverter | None = None,
    ) -> None:
        self._client = http_client
        self._reducer = reducer
        self._converter = converter

    def _derive_steps(self, settings: BrowserSettings) -> list[PipelineStep]:
        return [
            ClassifyStep(),
            ReduceStep(self._reducer, auto_convert=settings.auto_convert),
            ConvertStep(self._converter),
        ]

    def build_pipeline(self, settings: BrowserSettings) -> DocumentPipeline:
        """Pipeline for fetching and deriving a remote document."""
        steps: list[PipelineStep] = [FetchStep(self._client, prefer_markdown=settings.send_accept_markdown)]
        steps.extend(self._derive_steps(settings))
        return DocumentPipeline(steps=steps)

    async def _load_start_page(self, settings: BrowserSettings) -> Document:
        if settings.send_accept_markdown:
            return Document(
                url=START_PAGE_URL,
                title=START_PAGE_TITLE,
                body=START_PAGE_MARKDOWN,
                is_native=True,
            )

        ctx = PageContext(
            url=START_PAGE_URL,
            text=START_PAGE_HTML,
            content_type="text/html; charset=utf-8",
        )
        ctx = await DocumentPipeline(steps=self._derive_steps(settings)).execute(START_PAGE_URL, ctx)
        return ctx.to_document()

    async def load(self, url: str, settings: BrowserSettings) -> Document:
        """
        Load a URL and build its Document.

        Args:
            url: Absolute URL or the start page URL
            settings: Current browser settings

        Returns:
            The loaded document, or an error document if any step failed
        """
        if url == START_PAGE_URL:
            return await self._load_start_page(settings)

        ctx = await self.build_pipeline(settings).execute(url)
        document = ctx.to_document()

        if document.is_error:
            logger.info(f"Load of {url} failed in {ctx.error_step or 'pipeline'}: {document.error}")
        else:
            logger.info(f"Loaded {document.url} ({'native' if document.is_native else 'derived'})")
        return document
