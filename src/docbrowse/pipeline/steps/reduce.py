"""Pipeline step that cuts markup down to its primary content region."""

import logging
from typing import Optional

from ...conversion.extractor import MarkupReducer
from ...conversion.protocols import ContentReducer
from ..base import PageContext

logger = logging.getLogger(__name__)


class ReduceStep:
    """
    Pipeline step that reduces markup before conversion.

    When auto-conversion is off the raw markup becomes the document
    body as-is and the pipeline ends here.

    Example:
        step = ReduceStep(auto_convert=True)
        ctx = await step.execute(ctx)
        # ctx.reduced_html holds the main content region
    """

    name = "reduce"

    def __init__(self, reducer: Optional[ContentReducer] = None, auto_convert: bool = True) -> None:
        """
        Initialize the reduce step.

        Args:
            reducer: Content reducer (uses MarkupReducer if None)
            auto_convert: Derive Markdown from markup
        """
        self._reducer = reducer or MarkupReducer()
        self._auto_convert = auto_convert

    async def execute(self, ctx: PageContext) -> PageContext:
        text = ctx.text or ""

        if not self._auto_convert:
            ctx.markdown = text
            ctx.finish("Auto-convert disabled")
            return ctx

        ctx.reduced_html = self._reducer.reduce(text)
        if not ctx.reduced_html.strip():
            logger.debug(f"No primary content found in {ctx.document_url}")
        return ctx
