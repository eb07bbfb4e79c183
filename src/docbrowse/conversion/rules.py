"""Ordered conversion rules layered over the HTML to Markdown engine."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Iterator, Optional

from bs4 import Tag

from .protocols import NodeQuery

_WHITESPACE_RE = re.compile(r"\s+")

# Elements deleted before any rule runs
REMOVED_ELEMENTS = ("script", "style", "noscript", "iframe", "object", "embed", "meta", "link")


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", value).strip()


class RulePriority(IntEnum):
    """Tiers deciding which rule sees an element first. Lower runs earlier."""

    FIRST = 0
    CUSTOM = 50


@dataclass(frozen=True)
class Rule:
    """
    A custom conversion for some elements.

    Attributes:
        name: Unique rule name
        tags: Lower-case tag names the rule applies to
        filter: Predicate deciding whether the rule handles an element
        replacement: Builds Markdown from the element and its converted children
        priority: Tier; within a tier, registration order decides
    """

    name: str
    tags: frozenset[str]
    filter: Callable[[Tag], bool]
    replacement: Callable[[Tag, str], str]
    priority: RulePriority = RulePriority.CUSTOM


class RuleSet:
    """
    Registry of conversion rules and removed elements.

    Rules for a tag are tried in (priority, registration) order; the
    first rule whose filter accepts the element produces the output.
    Elements with no matching rule fall through to the engine's own
    conversion.

    Example:
        rules = RuleSet().remove_elements("script", "style")
        rules.add(Rule(
            name="strike",
            tags=frozenset({"del"}),
            filter=lambda el: True,
            replacement=lambda el, text: f"~~{text}~~",
        ))
    """

    def __init__(self) -> None:
        self._rules: list[Rule] = []
        self._removed: set[str] = set()

    def add(self, rule: Rule) -> RuleSet:
        """
        Register a rule (fluent API).

        Raises:
            ValueError: If a rule with the same name is already registered
        """
        if any(existing.name == rule.name for existing in self._rules):
            raise ValueError(f"Rule '{rule.name}' is already registered")
        self._rules.append(rule)
        # sort is stable, so registration order survives within a tier
        self._rules.sort(key=lambda r: r.priority)
        return self

    def discard(self, name: str) -> None:
        """Unregister a rule by name if present."""
        self._rules = [rule for rule in self._rules if rule.name != name]

    def remove_elements(self, *tags: str) -> RuleSet:
        """Delete these elements, with their content, before conversion."""
        self._removed.update(tag.lower() for tag in tags)
        return self

    @property
    def removed_tags(self) -> frozenset[str]:
        return frozenset(self._removed)

    def tags(self) -> set[str]:
        """All tag names that have at least one rule."""
        return {tag for rule in self._rules for tag in rule.tags}

    def for_tag(self, tag: str) -> list[Rule]:
        """Rules applying to tag, in the order they are tried."""
        return [rule for rule in self._rules if tag in rule.tags]

    def match(self, el: Tag) -> Optional[Rule]:
        """First rule that handles el, or None."""
        for rule in self.for_tag(el.name):
            if rule.filter(el):
                return rule
        return None

    def names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)


class SoupNode:
    """NodeQuery implementation backed by a BeautifulSoup tag."""

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def text_content(self) -> str:
        return self._tag.get_text()

    def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def query_selector(self, selector: str) -> Optional[SoupNode]:
        found = self._tag.select_one(selector)
        return SoupNode(found) if found is not None else None


def resolve_link_label(node: NodeQuery) -> str:
    """
    Pick a visible label for a link.

    Tries the link text, then aria-label, then title, then the alt text
    of a contained image. Returns "" when none of them has content.
    """
    label = normalize_whitespace(node.text_content())
    if label:
        return label

    for attribute in ("aria-label", "title"):
        label = normalize_whitespace(node.get_attribute(attribute) or "")
        if label:
            return label

    image = node.query_selector("img[alt]")
    if image is not None:
        return normalize_whitespace(image.get_attribute("alt") or "")
    return ""


# -- layout tables --------------------------------------------------------


def _is_layout_table(table: Optional[Tag]) -> bool:
    return table is not None and table.find("th") is None


def _in_layout_table(el: Tag) -> bool:
    if el.name == "table":
        return _is_layout_table(el)
    return _is_layout_table(el.find_parent("table"))


def _layout_replacement(el: Tag, text: str) -> str:
    if el.name == "table":
        return f"\n\n{text}\n\n"
    if el.name == "tr":
        return f"\n\n{text.strip()}\n\n"
    cell = text.strip()
    return f" {cell}" if cell else ""


# -- links ------------------------------------------------------------------


def _is_blank_link(el: Tag) -> bool:
    return el.get("href") is not None and not normalize_whitespace(el.get_text())


def _blank_link_replacement(el: Tag, text: str) -> str:
    href = str(el.get("href") or "").strip()
    label = resolve_link_label(SoupNode(el)) or href
    if not href:
        return label
    return f"[{label}]({href})"


# -- emphasis ---------------------------------------------------------------


def _emphasis_replacement(el: Tag, text: str) -> str:
    stripped = text.strip()
    if not stripped:
        return text
    prefix = " " if text[:1].isspace() else ""
    suffix = " " if text[-1:].isspace() else ""
    return f"{prefix}_{stripped}_{suffix}"


def default_rules() -> RuleSet:
    """The rule set used for documents fetched from the web."""
    rules = RuleSet().remove_elements(*REMOVED_ELEMENTS)
    rules.add(
        Rule(
            name="layout_table",
            tags=frozenset({"table", "tr", "td"}),
            filter=_in_layout_table,
            replacement=_layout_replacement,
            priority=RulePriority.FIRST,
        )
    )
    rules.add(
        Rule(
            name="blank_link_label",
            tags=frozenset({"a"}),
            filter=_is_blank_link,
            replacement=_blank_link_replacement,
        )
    )
    rules.add(
        Rule(
            name="underscore_emphasis",
            tags=frozenset({"em", "i"}),
            filter=lambda el: el.find_parent(["pre", "code"]) is None,
            replacement=_emphasis_replacement,
        )
    )
    return rules
