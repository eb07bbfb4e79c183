"""Cleanup of converter output.

normalize_markdown is idempotent: running it on its own output changes
nothing.
"""

from __future__ import annotations

import re

from .rules import normalize_whitespace

# Labels and targets never contain brackets/closing parens, so nested
# forms are handled innermost first.
_DATA_URI_LINK_RE = re.compile(r"!?\[[^\[\]]*\]\(\s*data:[^)]*\)", re.IGNORECASE)
_LINK_RE = re.compile(r"(!?)\[([^\[\]]*)\]\(([^)]+)\)")
_TARGET_RE = re.compile(r'^(\S+)(?:\s+"([^"]*)")?$')
_ORPHAN_NUMBER_RE = re.compile(r"^[ \t]*\d+\.[ \t]*$", re.MULTILINE)
_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_link_target(target: str) -> str:
    """
    Tidy the part of a Markdown link between the parentheses.

    Protocol-relative URLs get https:, an empty quoted title is dropped,
    a non-empty title is kept.
    """
    target = normalize_whitespace(target)
    match = _TARGET_RE.match(target)
    if not match:
        url, title = target, None
    else:
        url, title = match.group(1), match.group(2)

    if url.startswith("//"):
        url = "https:" + url

    if title:
        return f'{url} "{title}"'
    return url


def link_url(target: str) -> str:
    """URL part of a link target, without any quoted title."""
    match = _TARGET_RE.match(normalize_whitespace(target))
    return match.group(1) if match else target.strip()


def _rewrite_link(match: re.Match[str]) -> str:
    bang, label, target = match.group(1), match.group(2), match.group(3)
    target = normalize_link_target(target)
    label = normalize_whitespace(label)
    if not label and not bang:
        label = link_url(target)
    return f"{bang}[{label}]({target})"


def normalize_markdown(markdown: str) -> str:
    """
    Fix known artifacts in converted Markdown.

    - drops links and images pointing at data: URIs
    - collapses whitespace in link labels, fills empty labels with the URL
    - rewrites protocol-relative link targets to https
    - removes lines holding only an ordered-list number
    - collapses 3+ newlines to 2 and trims the result

    Args:
        markdown: Converter output

    Returns:
        Normalized Markdown
    """
    markdown = _DATA_URI_LINK_RE.sub("", markdown)
    markdown = _LINK_RE.sub(_rewrite_link, markdown)
    markdown = _ORPHAN_NUMBER_RE.sub("", markdown)
    markdown = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", markdown)
    return markdown.strip()
