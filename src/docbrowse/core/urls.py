"""Turning address bar input into fetchable URLs."""

from __future__ import annotations

import re
from urllib.parse import quote_plus

from ..exceptions import InvalidUrlError
from ..security.url_validator import UrlValidator
from .start_page import START_PAGE_URL

DEFAULT_SEARCH_URL = "https://duckduckgo.com/?q={query}"

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)


def normalize_url(
    raw: str,
    search_url: str = DEFAULT_SEARCH_URL,
    validator: UrlValidator | None = None,
) -> str:
    """
    Normalize address bar input into an absolute URL.

    Rules, in order:
    - the start page URL passes through untouched
    - http(s) URLs are kept as typed
    - any other explicit scheme is rejected
    - a dotted word without spaces gets an https:// prefix
    - anything else becomes a search query

    Args:
        raw: User input
        search_url: Template with a {query} placeholder
        validator: Validator applied to the result (scheme/host checks)

    Returns:
        Absolute URL

    Raises:
        InvalidUrlError: If the input is empty or cannot be made fetchable
    """
    url = (raw or "").strip()
    if not url:
        raise InvalidUrlError("Invalid URL: empty input")

    if url == START_PAGE_URL:
        return url

    if not _HTTP_URL_RE.match(url):
        if _SCHEME_RE.match(url):
            raise InvalidUrlError(f"Invalid URL: unsupported scheme in '{url}'")
        if "." in url and " " not in url:
            url = f"https://{url}"
        else:
            url = search_url.format(query=quote_plus(url))

    result = (validator or UrlValidator()).validate(url)
    if not result.is_valid:
        raise InvalidUrlError(f"Invalid URL '{url}': {result.rejection_reason}")
    return url
