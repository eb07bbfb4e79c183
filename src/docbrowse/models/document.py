"""The immutable result of loading one URL."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional

ERROR_TITLE = "Error"


@dataclass(frozen=True)
class Document:
    """
    Result of fetching one URL.

    Attributes:
        url: Final absolute URL, after redirects
        title: Best-effort title
        body: Markdown text (or raw markup when auto-convert is off)
        raw_markup: Original HTML, empty for native Markdown
        is_native: True if the server delivered Markdown directly
        error: Failure reason, set only on synthetic error documents
    """

    url: str
    title: str
    body: str
    raw_markup: str = ""
    is_native: bool = False
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.is_native and self.raw_markup:
            raise ValueError("Native documents carry no raw markup")

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def error_document(cls, url: str, message: str) -> Document:
        """Build the document shown in place of a page that failed to load."""
        body = f"# Error Loading Page\n\nFailed to load: {url}\n\n**Error:** {message}"
        markup = (
            f"<h1>Error Loading Page</h1><p>Failed to load: {html.escape(url)}</p>"
            f"<p><strong>Error:</strong> {html.escape(message)}</p>"
        )
        return cls(
            url=url,
            title=ERROR_TITLE,
            body=body,
            raw_markup=markup,
            is_native=False,
            error=message,
        )

    def to_dict(self) -> dict:
        """Convert to a dictionary for serialization."""
        return {
            "url": self.url,
            "title": self.title,
            "body": self.body,
            "raw_markup": self.raw_markup,
            "is_native": self.is_native,
            "error": self.error,
        }
