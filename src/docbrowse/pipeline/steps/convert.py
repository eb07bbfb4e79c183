"""Pipeline step for HTML to Markdown conversion."""

import logging
from typing import Optional

from ...conversion.markdown import HtmlToMarkdown
from ...conversion.normalize import normalize_markdown
from ...conversion.protocols import MarkdownConverter
from ..base import PageContext

logger = logging.getLogger(__name__)


class ConvertStep:
    """
    Pipeline step that converts reduced HTML to normalized Markdown.

    Reads from ctx.reduced_html, writes to ctx.markdown. Engine
    failures propagate as ConversionError.

    Example:
        step = ConvertStep()
        ctx = await step.execute(ctx)
        # ctx.markdown now contains the converted content
    """

    name = "convert"

    def __init__(self, converter: Optional[MarkdownConverter] = None):
        """
        Initialize the convert step.

        Args:
            converter: Markdown converter (uses HtmlToMarkdown if None)
        """
        self._converter = converter or HtmlToMarkdown()

    async def execute(self, ctx: PageContext) -> PageContext:
        """
        Convert HTML content to Markdown.

        Args:
            ctx: Page context with reduced HTML

        Returns:
            Updated context with markdown content
        """
        html = ctx.reduced_html if ctx.reduced_html is not None else (ctx.text or "")

        markdown = normalize_markdown(self._converter.convert(html))
        ctx.markdown = markdown

        logger.debug(f"Converted {ctx.document_url} to {len(markdown)} bytes of Markdown")
        return ctx
