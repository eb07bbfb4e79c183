"""The built-in start page, served without touching the network."""

START_PAGE_URL = "docbrowse://start"
START_PAGE_TITLE = "DocBrowse"

_DESTINATIONS = [
    "docs.python.org",
    "peps.python.org",
    "developer.mozilla.org",
    "github.com",
    "wikipedia.org",
    "news.ycombinator.com",
]

START_PAGE_MARKDOWN = (
    f"# {START_PAGE_TITLE}\n\n"
    "A markdown-first browser. Choose a destination:\n\n"
    + "".join(f"- [{host}](https://{host})\n" for host in _DESTINATIONS)
)

START_PAGE_HTML = (
    "<!DOCTYPE html>\n<html>\n<head>\n"
    '  <meta charset="UTF-8" />\n'
    f"  <title>{START_PAGE_TITLE}</title>\n"
    "</head>\n<body>\n"
    f"  <h1>{START_PAGE_TITLE}</h1>\n"
    "  <p>A markdown-first browser. Choose a destination:</p>\n"
    "  <ul>\n"
    + "".join(f'    <li><a href="https://{host}">{host}</a></li>\n' for host in _DESTINATIONS)
    + "  </ul>\n</body>\n</html>\n"
)
