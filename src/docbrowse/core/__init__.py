"""Browsing core: URL handling, document loading, tabs and sessions."""

from .browser import Browser, fetch_document_blocking
from .loader import DocumentLoader, DocumentSource
from .session import NavigationResult, Session, SettingsUpdate
from .start_page import START_PAGE_URL
from .urls import normalize_url

__all__ = [
    "Browser",
    "DocumentLoader",
    "DocumentSource",
    "NavigationResult",
    "START_PAGE_URL",
    "Session",
    "SettingsUpdate",
    "fetch_document_blocking",
    "normalize_url",
]
