"""Exception hierarchy for docbrowse."""

from __future__ import annotations


class DocbrowseError(Exception):
    """Base exception for all docbrowse errors."""


class NetworkError(DocbrowseError):
    """Request failed or the server answered with a non-success status."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class DecodeError(DocbrowseError):
    """Response bytes could not be decoded with the declared charset.

    Always recovered locally by falling back to UTF-8.
    """

    def __init__(self, charset: str, reason: str) -> None:
        self.charset = charset
        super().__init__(f"Cannot decode with charset '{charset}': {reason}")


class InvalidUrlError(DocbrowseError):
    """Navigation target could not be normalized into a fetchable URL."""


class ConversionError(DocbrowseError):
    """The HTML to Markdown engine failed on the given markup."""
