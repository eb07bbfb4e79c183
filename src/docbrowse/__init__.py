"""
docbrowse - A markdown-first web browser core.

Usage:
    from docbrowse import Browser, BrowserConfig, EventType

    async with Browser(BrowserConfig()) as browser:
        browser.session.subscribe(print)
        result = await browser.session.navigate("https://example.com")
        print(browser.session.active_tab.document.body)
"""

__version__ = "1.0.0"

from .core.browser import Browser, fetch_document_blocking
from .core.loader import DocumentLoader, DocumentSource
from .core.session import NavigationResult, Session, SettingsUpdate
from .exceptions import ConversionError, DecodeError, DocbrowseError, InvalidUrlError, NetworkError
from .models.config import BrowserConfig, BrowserSettings, NetworkConfig
from .models.document import Document
from .models.events import BrowserEvent, EventType
from .models.tab import NavigationState, TabInfo, TabState

__all__ = [
    "__version__",
    # Core
    "Browser",
    "fetch_document_blocking",
    "Session",
    "NavigationResult",
    "SettingsUpdate",
    "DocumentLoader",
    "DocumentSource",
    # Config
    "BrowserConfig",
    "BrowserSettings",
    "NetworkConfig",
    # Models
    "Document",
    "NavigationState",
    "TabInfo",
    "TabState",
    # Events
    "BrowserEvent",
    "EventType",
    # Errors
    "DocbrowseError",
    "NetworkError",
    "DecodeError",
    "InvalidUrlError",
    "ConversionError",
]
