"""Charset handling for response bodies."""

from __future__ import annotations

import logging
import re

from ..exceptions import DecodeError

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"

_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)


def get_charset(content_type: str) -> str:
    """
    Extract the charset declared in a Content-Type header value.

    Args:
        content_type: Content-Type header value

    Returns:
        Lower-cased charset name, or utf-8 when none is declared
    """
    match = _CHARSET_RE.search(content_type or "")
    if not match:
        return DEFAULT_CHARSET
    charset = match.group(1).strip().strip("\"'").lower()
    return charset or DEFAULT_CHARSET


def decode_with_charset(content: bytes, charset: str) -> str:
    """Decode content, raising DecodeError if the charset is unknown."""
    try:
        return content.decode(charset, errors="replace")
    except LookupError as e:
        raise DecodeError(charset, str(e)) from e


def decode_body(content: bytes, content_type: str) -> str:
    """
    Decode a response body using its declared charset.

    Fallback chain:
    1. Content-Type header charset (utf-8 if absent)
    2. UTF-8 with replacement when the declared charset is unsupported

    Undecodable bytes become U+FFFD rather than failing the load.

    Args:
        content: Raw bytes content
        content_type: Content-Type header value

    Returns:
        Decoded string
    """
    charset = get_charset(content_type)
    try:
        return decode_with_charset(content, charset)
    except DecodeError as e:
        logger.debug(f"{e}; falling back to {DEFAULT_CHARSET}")
        return content.decode(DEFAULT_CHARSET, errors="replace")
