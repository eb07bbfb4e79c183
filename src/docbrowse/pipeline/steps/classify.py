"""Pipeline step that decides between native Markdown and markup."""

import logging

from ...conversion.classify import ContentKind, classify, html_title, markdown_title
from ..base import PageContext

logger = logging.getLogger(__name__)


class ClassifyStep:
    """
    Pipeline step that classifies the fetched body and picks a title.

    Native Markdown is used verbatim and ends the pipeline. Markup
    continues to reduction and conversion.
    """

    name = "classify"

    async def execute(self, ctx: PageContext) -> PageContext:
        text = ctx.text or ""
        ctx.kind = classify(ctx.content_type or "", text)

        if ctx.kind == ContentKind.NATIVE:
            ctx.title = markdown_title(text, ctx.document_url)
            ctx.markdown = text
            ctx.finish("Native Markdown")
        else:
            ctx.title = html_title(text, ctx.document_url)

        logger.debug(f"Classified {ctx.document_url} as {ctx.kind.value}")
        return ctx
