"""Deciding whether a response is already Markdown, and picking titles."""

from __future__ import annotations

import logging
import re
from enum import Enum
from urllib.parse import urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MARKDOWN_CONTENT_TYPES = ("text/markdown", "text/x-markdown")
PLAIN_TEXT_CONTENT_TYPE = "text/plain"

# Prefixes that mark a text/plain body as HTML in disguise
_HTML_MARKERS = ("<!", "<html")

_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


class ContentKind(str, Enum):
    """How a response body will be turned into a document."""

    NATIVE = "native"
    MARKUP = "markup"


def is_native_markdown(content_type: str, text: str) -> bool:
    """
    Check whether a response body is already Markdown.

    Markdown content types always qualify. text/plain qualifies unless
    the body starts like an HTML document.

    Args:
        content_type: Content-Type header value
        text: Decoded response body

    Returns:
        True if the body should be used verbatim
    """
    content_type = (content_type or "").lower()
    if any(markdown_type in content_type for markdown_type in MARKDOWN_CONTENT_TYPES):
        return True
    if PLAIN_TEXT_CONTENT_TYPE in content_type:
        head = text.lstrip()[:5].lower()
        return not head.startswith(_HTML_MARKERS)
    return False


def classify(content_type: str, text: str) -> ContentKind:
    """Classify a response body as native Markdown or markup."""
    if is_native_markdown(content_type, text):
        return ContentKind.NATIVE
    return ContentKind.MARKUP


def url_host(url: str) -> str:
    """Host part of url, or url itself when it has none."""
    try:
        return urlparse(url).hostname or url
    except ValueError:
        return url


def markdown_title(markdown: str, url: str) -> str:
    """Title from the first top-level heading, else the URL host."""
    match = _HEADING_RE.search(markdown)
    if match:
        return match.group(1).strip()
    return url_host(url)


def html_title(html: str, url: str) -> str:
    """Text of the document's <title> element, else the URL host."""
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    if title_tag is not None:
        title = title_tag.get_text().strip()
        if title:
            return title
    return url_host(url)
