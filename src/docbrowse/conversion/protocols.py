"""Protocol definitions for content conversion."""

from __future__ import annotations

from typing import Optional, Protocol


class ContentReducer(Protocol):
    """
    Protocol for reducing a full HTML document to its main content.

    Implementations remove navigation, scripts, forms and other
    non-content regions and return the primary content region.
    """

    def reduce(self, html: str) -> str:
        """
        Reduce an HTML document.

        Args:
            html: Full HTML document as string

        Returns:
            HTML fragment of the primary content region
        """
        ...


class MarkdownConverter(Protocol):
    """
    Protocol for converting HTML to Markdown.

    Implementations convert cleaned HTML to Markdown format.
    """

    def convert(self, html: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string

        Returns:
            Markdown string (not yet normalized)

        Raises:
            ConversionError: If the markup cannot be converted
        """
        ...


class NodeQuery(Protocol):
    """
    Minimal DOM-like view of an element, used by conversion rules.

    The production implementation wraps a BeautifulSoup tag; tests can
    supply any object with these three methods.
    """

    def text_content(self) -> str:
        """Concatenated text of the element and its descendants."""
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent."""
        ...

    def query_selector(self, selector: str) -> Optional[NodeQuery]:
        """First descendant matching a CSS selector, or None."""
        ...
