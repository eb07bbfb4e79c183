"""Base classes for the document pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ..conversion.classify import ContentKind
from ..models.document import Document

logger = logging.getLogger(__name__)


@dataclass
class PageContext:
    """
    Context object passed through pipeline steps.

    Contains all state for loading a single page, accumulated
    as it moves through the pipeline.

    Attributes:
        url: The requested URL
        final_url: URL after redirects (defaults to url)
        text: Decoded response body
        kind: Native Markdown or markup, set by classification
        title: Document title
        reduced_html: Primary content region, set by reduction
        markdown: Final document body
        should_skip: If True, remaining steps will be skipped
        skip_reason: Human-readable reason for skipping
        error: Error message if a step raised
        error_step: Name of the step that raised
    """

    url: str
    final_url: Optional[str] = None

    # Content (accumulated through pipeline)
    text: Optional[str] = None
    kind: Optional[ContentKind] = None
    title: Optional[str] = None
    reduced_html: Optional[str] = None
    markdown: Optional[str] = None

    # Status
    should_skip: bool = False
    skip_reason: Optional[str] = None
    error: Optional[str] = None
    error_step: Optional[str] = None

    # Additional data from fetch
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    bytes_downloaded: int = 0

    @property
    def document_url(self) -> str:
        return self.final_url or self.url

    def finish(self, reason: str) -> None:
        """Stop the pipeline here without an error."""
        self.should_skip = True
        self.skip_reason = reason

    def to_document(self) -> Document:
        """
        Build the Document for this page.

        A failed context yields the synthetic error document.
        """
        if self.error:
            return Document.error_document(self.url, self.error)
        if self.markdown is None or self.kind is None:
            return Document.error_document(self.url, "No content produced")

        is_native = self.kind == ContentKind.NATIVE
        return Document(
            url=self.document_url,
            title=self.title or self.document_url,
            body=self.markdown,
            raw_markup="" if is_native else (self.text or ""),
            is_native=is_native,
        )


@runtime_checkable
class PipelineStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives a PageContext, processes it, and returns
    the (possibly modified) context.

    Error Handling Contract:
    - To end the pipeline early with a result: call ctx.finish(reason)
    - For failures: raise an exception (NetworkError, ConversionError, ...)
    - The pipeline will catch exceptions and set ctx.error
    """

    name: str

    async def execute(self, ctx: PageContext) -> PageContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The page context with accumulated state

        Returns:
            The (possibly modified) page context
        """
        ...


@dataclass
class DocumentPipeline:
    """
    Pipeline for loading a single page through multiple steps.

    Steps are executed in order. If a step sets ctx.should_skip = True,
    remaining steps are skipped. If a step raises an exception, the
    error is captured in ctx.error and processing stops.

    Example:
        pipeline = DocumentPipeline(steps=[
            FetchStep(http_client, prefer_markdown=True),
            ClassifyStep(),
            ReduceStep(reducer),
            ConvertStep(converter),
        ])

        ctx = await pipeline.execute("https://example.com")
        document = ctx.to_document()
    """

    steps: list[PipelineStep]

    async def execute(self, url: str, ctx: Optional[PageContext] = None) -> PageContext:
        """
        Execute the pipeline for a URL.

        Args:
            url: The URL to load
            ctx: Pre-populated context (e.g. for content that needs no fetch)

        Returns:
            PageContext with final state (check error for failures)
        """
        if ctx is None:
            ctx = PageContext(url=url)

        for step in self.steps:
            if ctx.should_skip:
                break

            try:
                ctx = await step.execute(ctx)
            except Exception as e:
                ctx.error = str(e) or type(e).__name__
                ctx.error_step = step.name
                ctx.should_skip = True
                logger.warning(f"{step.name} failed for {url}: {ctx.error}")
                break

        return ctx

    def add_step(self, step: PipelineStep) -> DocumentPipeline:
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
