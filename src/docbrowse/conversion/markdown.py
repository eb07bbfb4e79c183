"""HTML to Markdown conversion."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup, Tag
from markdownify import MarkdownConverter as EngineConverter

from ..exceptions import ConversionError
from .normalize import normalize_markdown
from .rules import RuleSet, default_rules

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_OPTIONS: dict[str, Any] = {
    "heading_style": "atx",
    "bullets": "-",
    "escape_misc": False,
}


def _detect_lang(el: Tag) -> str:
    """Extract a language hint from a <pre> or its <code> child."""
    candidates = [el]
    code = el.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    for candidate in candidates:
        for cls in candidate.get("class") or []:
            for prefix in ("language-", "lang-"):
                if cls.startswith(prefix):
                    return cls[len(prefix) :]
    return ""


class RuleBasedConverter(EngineConverter):
    """
    markdownify converter that consults a RuleSet before its own rules.

    For every tag that has registered rules, the engine's convert_<tag>
    hook is replaced by a dispatcher. The dispatcher returns the output
    of the first matching rule, or defers to the engine's conversion.
    """

    def __init__(self, rules: RuleSet, **options: Any) -> None:
        super().__init__(**options)
        self.rules = rules
        for tag in rules.tags():
            hook = f"convert_{tag}"
            fallback = getattr(self, hook, None)
            setattr(self, hook, functools.partial(self._dispatch, fallback))

    def _dispatch(
        self,
        fallback: Optional[Callable[..., str]],
        el: Tag,
        text: str,
        *args: Any,
        **kwargs: Any,
    ) -> str:
        rule = self.rules.match(el)
        if rule is not None:
            return rule.replacement(el, text)
        if fallback is None:
            return text
        return fallback(el, text, *args, **kwargs)


class HtmlToMarkdown:
    """
    Converts HTML content to Markdown.

    Uses markdownify with ATX headings, fenced code blocks, "-" bullets
    and GFM tables, plus the custom rules of a RuleSet.

    Example:
        converter = HtmlToMarkdown()
        markdown = converter.convert("<h1>Title</h1><p>Body</p>")
    """

    def __init__(self, rules: Optional[RuleSet] = None, **engine_options: Any):
        """
        Initialize the Markdown converter.

        Args:
            rules: Custom rules and removed elements (defaults to default_rules())
            **engine_options: Extra markdownify options, overriding the defaults
        """
        self._rules = rules if rules is not None else default_rules()
        options = dict(DEFAULT_ENGINE_OPTIONS)
        options["code_language_callback"] = _detect_lang
        options.update(engine_options)
        self._options = options

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def convert(self, html: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string

        Returns:
            Markdown string, before normalization

        Raises:
            ConversionError: If the engine fails on the markup
        """
        try:
            soup = BeautifulSoup(html, "html.parser")
            removed = sorted(self._rules.removed_tags)
            if removed:
                for el in soup.find_all(removed):
                    el.extract()

            engine = RuleBasedConverter(self._rules, **self._options)
            return engine.convert_soup(soup)
        except ConversionError:
            raise
        except Exception as e:
            logger.error(f"Failed to convert HTML to Markdown: {e!r}")
            raise ConversionError(f"Failed to convert HTML to Markdown: {e}") from e


def html_to_markdown(html: str, converter: Optional[HtmlToMarkdown] = None) -> str:
    """Convert html and normalize the result."""
    return normalize_markdown((converter or HtmlToMarkdown()).convert(html))
