"""Content conversion for docbrowse (classification, reduction, HTML to Markdown)."""

from .classify import ContentKind, classify, html_title, is_native_markdown, markdown_title
from .extractor import MarkupReducer
from .markdown import HtmlToMarkdown, RuleBasedConverter, html_to_markdown
from .normalize import normalize_markdown
from .protocols import ContentReducer, MarkdownConverter, NodeQuery
from .rules import Rule, RulePriority, RuleSet, SoupNode, default_rules, resolve_link_label

__all__ = [
    # Protocols
    "ContentReducer",
    "MarkdownConverter",
    "NodeQuery",
    # Classification
    "ContentKind",
    "classify",
    "html_title",
    "is_native_markdown",
    "markdown_title",
    # Implementations
    "MarkupReducer",
    "HtmlToMarkdown",
    "RuleBasedConverter",
    "html_to_markdown",
    "normalize_markdown",
    # Rules
    "Rule",
    "RulePriority",
    "RuleSet",
    "SoupNode",
    "default_rules",
    "resolve_link_label",
]
