"""Main content extraction from HTML pages."""

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

logger = logging.getLogger(__name__)

# Removal passes, applied in order
NON_CONTENT_SELECTORS = [
    # Scripting and styling
    "script",
    "style",
    "noscript",
    # Landmarks around the content
    "nav",
    "footer",
    "aside",
    '[role="navigation"]',
    '[role="contentinfo"]',
    '[role="complementary"]',
    # Interactive and embedded regions
    "form",
    "iframe",
]

# Primary regions, most specific first
PRIMARY_REGION_SELECTORS = [
    'main, [role="main"]',
    'article, [role="article"]',
]


def _is_blank_anchor(anchor: Tag) -> bool:
    """An anchor with no child elements, no text and no accessible name."""
    for child in anchor.children:
        if isinstance(child, Tag):
            return False
        if isinstance(child, NavigableString) and child.strip():
            return False
    return not (anchor.get("aria-label") or anchor.get("title"))


class MarkupReducer:
    """
    Reduces an HTML document to the region worth converting.

    Strips head, scripts, comments, navigation landmarks, forms,
    frames and blank anchors, then keeps the first main region, else
    the first article, else the body.

    Example:
        reducer = MarkupReducer()
        fragment = reducer.reduce(html_text)
    """

    def __init__(
        self,
        remove_selectors: Optional[list[str]] = None,
        region_selectors: Optional[list[str]] = None,
    ):
        """
        Initialize the reducer.

        Args:
            remove_selectors: CSS selectors for elements to remove (extends defaults)
            region_selectors: CSS selectors for the primary region (overrides defaults)
        """
        self._remove_selectors = list(NON_CONTENT_SELECTORS)
        if remove_selectors:
            self._remove_selectors.extend(remove_selectors)
        self._region_selectors = region_selectors or PRIMARY_REGION_SELECTORS

    def _remove_unwanted(self, soup: BeautifulSoup) -> None:
        for head in soup.find_all("head"):
            head.decompose()

        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        for selector in self._remove_selectors:
            for el in soup.select(selector):
                el.extract()

        for anchor in soup.find_all("a"):
            if _is_blank_anchor(anchor):
                anchor.extract()

    def _find_primary_region(self, soup: BeautifulSoup) -> Union[Tag, BeautifulSoup]:
        for selector in self._region_selectors:
            region = soup.select_one(selector)
            if region is not None:
                return region

        body = soup.find("body")
        if isinstance(body, Tag):
            return body

        return soup

    def reduce(self, html: str) -> str:
        """
        Reduce an HTML document to its primary content.

        Args:
            html: Full HTML document

        Returns:
            Inner HTML of the primary region
        """
        soup = BeautifulSoup(html, "html.parser")
        self._remove_unwanted(soup)

        region = self._find_primary_region(soup)
        if region is soup:
            logger.debug("No main, article or body region found; keeping whole document")
            return str(soup)
        logger.debug(f"Selected <{region.name}> as primary region")
        return region.decode_contents()
