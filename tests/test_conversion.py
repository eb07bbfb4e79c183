"""Tests for classification, reduction, conversion and normalization."""

import pytest
from docbrowse.conversion import (
    ContentKind,
    HtmlToMarkdown,
    MarkupReducer,
    Rule,
    RulePriority,
    RuleSet,
    classify,
    default_rules,
    html_title,
    html_to_markdown,
    is_native_markdown,
    markdown_title,
    normalize_markdown,
    resolve_link_label,
)
from docbrowse.exceptions import ConversionError


class FakeNode:
    """In-memory NodeQuery for label resolution tests."""

    def __init__(self, text="", attributes=None, children=None):
        self._text = text
        self._attributes = attributes or {}
        self._children = children or {}

    def text_content(self):
        return self._text

    def get_attribute(self, name):
        return self._attributes.get(name)

    def query_selector(self, selector):
        return self._children.get(selector)


class TestClassification:
    """Tests for native Markdown detection and titles."""

    @pytest.mark.parametrize(
        "content_type",
        ["text/markdown", "text/markdown; charset=utf-8", "text/x-markdown", "TEXT/MARKDOWN"],
    )
    def test_markdown_content_types_are_native(self, content_type):
        """Markdown content types are native whatever the body."""
        assert is_native_markdown(content_type, "<html><body>odd</body></html>")

    def test_plain_text_is_native(self):
        """text/plain that does not look like HTML is native."""
        assert is_native_markdown("text/plain; charset=utf-8", "# Notes\n\nHello")

    @pytest.mark.parametrize("text", ["<!DOCTYPE html><html></html>", "  <html><body></body></html>", "<HTML>"])
    def test_plain_text_html_is_markup(self, text):
        """text/plain bodies starting like HTML are markup."""
        assert not is_native_markdown("text/plain", text)

    def test_html_is_markup(self):
        """text/html is never native."""
        assert classify("text/html; charset=utf-8", "# Looks like markdown") == ContentKind.MARKUP
        assert classify("", "# Hello") == ContentKind.MARKUP

    def test_markdown_title_from_first_heading(self):
        """The first top-level heading becomes the title."""
        text = "intro\n## Section\n# Real Title  \n# Second"
        assert markdown_title(text, "https://example.com/doc.md") == "Real Title"

    def test_markdown_title_falls_back_to_host(self):
        """Without a top-level heading the host is used."""
        assert markdown_title("## Only a subheading", "https://docs.example.com/x") == "docs.example.com"

    def test_html_title(self):
        """The trimmed <title> text is used."""
        html = "<html><head><title>\n  Page Title \n</title></head><body></body></html>"
        assert html_title(html, "https://example.com") == "Page Title"

    def test_html_title_falls_back_to_host(self):
        """Missing or blank titles fall back to the host."""
        assert html_title("<html><head><title> </title></head></html>", "https://example.com/a") == "example.com"
        assert html_title("<p>No head</p>", "https://example.org/") == "example.org"


class TestMarkupReducer:
    """Tests for MarkupReducer."""

    def test_prefers_main_region(self):
        """The first main region wins over article and body."""
        html = """<html><head><title>T</title></head><body>
            <article><p>Article text</p></article>
            <main><p>Main text</p></main>
        </body></html>"""

        result = MarkupReducer().reduce(html)

        assert "Main text" in result
        assert "Article text" not in result
        assert "<main>" not in result

    def test_role_main(self):
        """role="main" counts as a main region."""
        html = '<body><div>Outside</div><div role="main"><p>Inside</p></div></body>'

        result = MarkupReducer().reduce(html)

        assert "Inside" in result
        assert "Outside" not in result

    def test_falls_back_to_article_then_body(self):
        """Without main, article is used; without both, the body."""
        reducer = MarkupReducer()

        article = reducer.reduce("<body><p>Lead</p><article><p>Story</p></article></body>")
        assert "Story" in article
        assert "Lead" not in article

        body = reducer.reduce("<html><head><title>Gone</title></head><body><p>Only body</p></body></html>")
        assert "Only body" in body
        assert "Gone" not in body

    def test_removes_non_content_regions(self):
        """Scripts, comments, landmarks, forms and frames are stripped."""
        html = """<body><main>
            <script>alert("x")</script>
            <style>.a { color: red; }</style>
            <noscript>Enable JS</noscript>
            <!-- a comment -->
            <nav>Menu</nav>
            <div role="navigation">Crumbs</div>
            <aside>Sidebar</aside>
            <footer>Footer</footer>
            <form><input name="q"></form>
            <iframe src="https://ads.example.com"></iframe>
            <p>Body copy</p>
        </main></body>"""

        result = MarkupReducer().reduce(html)

        assert "Body copy" in result
        for noise in ("alert", ".a {", "Enable JS", "a comment", "Menu", "Crumbs", "Sidebar", "Footer", "input", "ads"):
            assert noise not in result

    def test_removes_blank_anchors_only(self):
        """Anchors with no text are dropped; labelled or image anchors stay."""
        html = """<main>
            <a href="/icon" class="arrow"></a>
            <a href="/spaces">   </a>
            <a href="/labelled" aria-label="Settings"></a>
            <a href="/logo"><img alt="Logo" src="logo.png"></a>
            <a href="/text">Text</a>
        </main>"""

        result = MarkupReducer().reduce(html)

        assert "/icon" not in result
        assert "/spaces" not in result
        assert "/labelled" in result
        assert "/logo" in result
        assert "/text" in result

    def test_extra_remove_selectors(self):
        """Extra selectors extend the removal list."""
        reducer = MarkupReducer(remove_selectors=[".cookie-banner"])
        result = reducer.reduce('<main><div class="cookie-banner">Cookies!</div><p>Keep</p></main>')

        assert "Cookies!" not in result
        assert "Keep" in result


class TestRuleSet:
    """Tests for the ordered rule registry."""

    @staticmethod
    def _rule(name, priority=RulePriority.CUSTOM, tag="b", output="x"):
        return Rule(
            name=name,
            tags=frozenset({tag}),
            filter=lambda el: True,
            replacement=lambda el, text: output,
            priority=priority,
        )

    def test_priority_then_registration_order(self):
        """Lower tiers come first; registration order breaks ties."""
        rules = RuleSet()
        rules.add(self._rule("custom_a"))
        rules.add(self._rule("custom_b"))
        rules.add(self._rule("first", priority=RulePriority.FIRST))

        assert rules.names() == ["first", "custom_a", "custom_b"]

    def test_duplicate_name_rejected(self):
        """A rule name can only be registered once."""
        rules = RuleSet().add(self._rule("dup"))

        with pytest.raises(ValueError, match="dup"):
            rules.add(self._rule("dup"))

    def test_discard(self):
        """discard removes a rule and ignores unknown names."""
        rules = RuleSet().add(self._rule("a")).add(self._rule("b"))
        rules.discard("a")
        rules.discard("missing")

        assert rules.names() == ["b"]
        assert len(rules) == 1

    def test_for_tag_and_tags(self):
        """Rules are looked up by tag."""
        rules = RuleSet().add(self._rule("bold", tag="b")).add(self._rule("italic", tag="i"))

        assert rules.tags() == {"b", "i"}
        assert [rule.name for rule in rules.for_tag("i")] == ["italic"]
        assert rules.for_tag("p") == []

    def test_remove_elements_lowercases(self):
        """Removed tags are stored lower-case."""
        rules = RuleSet().remove_elements("SCRIPT", "Style")
        assert rules.removed_tags == frozenset({"script", "style"})

    def test_default_rules(self):
        """The default set holds the three custom rules and element removal."""
        rules = default_rules()

        assert rules.names() == ["layout_table", "blank_link_label", "underscore_emphasis"]
        assert {"script", "style", "noscript", "iframe", "object", "embed", "meta", "link"} <= rules.removed_tags


class TestLinkLabelResolution:
    """Tests for resolve_link_label with fake nodes."""

    def test_text_wins(self):
        node = FakeNode(text="  Docs \n", attributes={"aria-label": "Ignored"})
        assert resolve_link_label(node) == "Docs"

    def test_aria_label_before_title(self):
        node = FakeNode(attributes={"aria-label": "Example", "title": "Other"})
        assert resolve_link_label(node) == "Example"

    def test_title_attribute(self):
        node = FakeNode(attributes={"title": "Home page"})
        assert resolve_link_label(node) == "Home page"

    def test_image_alt(self):
        image = FakeNode(attributes={"alt": "needle tools logo"})
        node = FakeNode(children={"img[alt]": image})
        assert resolve_link_label(node) == "needle tools logo"

    def test_nothing_found(self):
        assert resolve_link_label(FakeNode()) == ""


class TestHtmlToMarkdown:
    """Tests for the rule-based converter."""

    def test_aria_label_anchor(self):
        """An empty anchor is labelled from aria-label."""
        result = html_to_markdown('<a aria-label="Example" href="https://example.com"></a>')
        assert result == "[Example](https://example.com)"

    def test_image_alt_anchor(self):
        """An anchor holding only an image is labelled from its alt text."""
        result = html_to_markdown('<a href="/samples"><img alt="needle tools logo" src="/logo.svg"></a>')
        assert result == "[needle tools logo](/samples)"

    def test_href_fallback_anchor(self):
        """With no label source the href is the label."""
        result = html_to_markdown('<a href="https://example.com"></a>')
        assert result == "[https://example.com](https://example.com)"

    def test_empty_anchor_without_href(self):
        """A labelled anchor with a blank href is emitted as its label."""
        result = html_to_markdown('<p>Go <a href="" title="Nowhere"></a></p>')
        assert "Nowhere" in result
        assert "](" not in result

    def test_multiline_link_text(self):
        """Whitespace inside link text collapses to one line."""
        result = html_to_markdown('<p><a href="https://example.com">\n  Example\n  </a></p>')
        assert "[Example](https://example.com)" in result

    def test_layout_table_suppressed(self):
        """Tables without header cells lose their table syntax."""
        html = "<table><tr><td>Left</td><td>Right</td></tr><tr><td>Next row</td></tr></table>"

        result = html_to_markdown(html)

        assert "|" not in result
        assert "Left Right" in result
        assert "Next row" in result

    def test_nested_header_makes_data_table(self):
        """A th anywhere inside the table makes it a data table."""
        html = "<table><thead><tr><th>Name</th><th>Value</th></tr></thead><tbody><tr><td>a</td><td>1</td></tr></tbody></table>"

        result = html_to_markdown(html)

        assert "| Name | Value |" in result
        assert "---" in result

    def test_headings_bullets_and_code(self):
        """ATX headings, hyphen bullets and fenced code blocks."""
        html = """<h1>Title</h1>
            <h2>Section</h2>
            <ul><li>One</li><li>Two</li></ul>
            <pre><code class="language-python">print("hi")</code></pre>"""

        result = html_to_markdown(html)

        assert "# Title" in result
        assert "## Section" in result
        assert "- One" in result
        assert "- Two" in result
        assert "```python" in result
        assert 'print("hi")' in result

    def test_underscore_emphasis(self):
        """Emphasis uses underscores."""
        result = html_to_markdown("<p>An <em>important</em> and <i>italic</i> word</p>")
        assert "An _important_ and _italic_ word" in result

    def test_scripted_elements_removed(self):
        """Script-like and embedded elements never reach the output."""
        html = """<p>Keep</p><script>var x = 1;</script><style>p {}</style>
            <noscript>No JS</noscript><object data="x.swf">Flash</object>
            <embed src="x.swf"><iframe src="/frame">Frame</iframe>"""

        result = html_to_markdown(html)

        assert result == "Keep"

    def test_custom_rule(self):
        """Registered rules run before the engine's default conversion."""
        rules = default_rules().add(
            Rule(
                name="strike",
                tags=frozenset({"del"}),
                filter=lambda el: True,
                replacement=lambda el, text: f"~~{text}~~",
            )
        )

        result = html_to_markdown("<p>Was <del>wrong</del></p>", HtmlToMarkdown(rules=rules))

        assert "~~wrong~~" in result

    def test_non_matching_rule_falls_through(self):
        """Elements the filter rejects use the engine's rule."""
        result = html_to_markdown('<p><a href="https://example.com/docs">Docs</a></p>')
        assert "[Docs](https://example.com/docs)" in result

    def test_engine_failure_raises_conversion_error(self):
        """Exceptions inside rules surface as ConversionError."""

        def explode(el, text):
            raise RuntimeError("boom")

        rules = RuleSet().add(Rule(name="bad", tags=frozenset({"p"}), filter=lambda el: True, replacement=explode))

        with pytest.raises(ConversionError, match="boom"):
            HtmlToMarkdown(rules=rules).convert("<p>text</p>")


class TestNormalizeMarkdown:
    """Tests for normalize_markdown."""

    def test_collapses_label_whitespace(self):
        assert normalize_markdown("[\n  Example\n  ](https://example.com)") == "[Example](https://example.com)"

    def test_protocol_relative_urls(self):
        result = normalize_markdown("[CDN](//cdn.example.com/lib.js)")
        assert result == "[CDN](https://cdn.example.com/lib.js)"

    def test_titles(self):
        """Empty titles are dropped, others kept."""
        assert normalize_markdown('[a](https://a.example "")') == "[a](https://a.example)"
        assert normalize_markdown('[a](https://a.example "Home")') == '[a](https://a.example "Home")'

    def test_empty_label_uses_url(self):
        assert normalize_markdown('[ ](https://a.example "t")') == '[https://a.example](https://a.example "t")'

    def test_image_alt_may_stay_empty(self):
        assert normalize_markdown("![](https://a.example/x.png)") == "![](https://a.example/x.png)"

    def test_removes_data_uri_links(self):
        text = "Icon ![sprite](data:image/png;base64,AAAA) and [x](DATA:text/plain,hi) end"
        result = normalize_markdown(text)

        assert "data:" not in result.lower()
        assert result.startswith("Icon")
        assert result.endswith("end")

    def test_removes_data_uri_image_inside_link(self):
        result = normalize_markdown("[![](data:image/gif;base64,R0lG)](https://example.com)")
        assert result == "[https://example.com](https://example.com)"

    def test_removes_orphan_list_numbers(self):
        assert normalize_markdown("Intro\n\n3.\n\n12. \t\nText") == "Intro\n\nText"

    def test_keeps_real_list_items(self):
        assert normalize_markdown("1. First\n2. Second") == "1. First\n2. Second"

    def test_collapses_blank_lines_and_trims(self):
        assert normalize_markdown("\n\n  # A\n\n\n\n\nB\n\n\n") == "# A\n\nB"

    @pytest.mark.parametrize(
        "text",
        [
            "[\n a \n](//x.example/y \"\")\n\n\n\n1.\n",
            "![alt](data:image/png;base64,AA)[ ](//a.example)\n\n\n",
            "[outer [inner](//i.example) ](//o.example)",
            "2.\n[ ](  )\n\n\n\n[x](a b c)",
            "Text with [link](https://example.com \"title\") and\n\n\n\n\n3.   \nmore",
            "[![](data:image/gif;base64,R0lG)](//example.com)\n\n\n7.",
            "  1.\nfoo",
            "\n\t 12. \n\nbar",
        ],
    )
    def test_idempotent(self, text):
        """Normalizing twice equals normalizing once."""
        once = normalize_markdown(text)
        assert normalize_markdown(once) == once

    def test_indented_orphan_number_removed(self):
        assert normalize_markdown("  1.\nfoo") == "foo"
