"""Docbrowse configuration, document, tab and event models."""

from .config import BrowserConfig, BrowserSettings, ByteSize, NetworkConfig
from .document import Document
from .events import BrowserEvent, EventListener, EventType
from .tab import NEW_TAB_TITLE, NavigationState, Tab, TabInfo, TabState

__all__ = [
    # Config
    "BrowserConfig",
    "BrowserSettings",
    "ByteSize",
    "NetworkConfig",
    # Documents and tabs
    "Document",
    "NEW_TAB_TITLE",
    "NavigationState",
    "Tab",
    "TabInfo",
    "TabState",
    # Events
    "BrowserEvent",
    "EventListener",
    "EventType",
]
