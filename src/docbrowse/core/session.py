"""Tabs, their histories, and the navigation state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from ..conversion.classify import url_host
from ..exceptions import InvalidUrlError
from ..models.config import BrowserSettings
from ..models.document import Document
from ..models.events import BrowserEvent, EventListener, EventType
from ..models.tab import NavigationState, Tab, TabInfo
from ..security.url_validator import UrlValidator
from .loader import DocumentSource
from .urls import DEFAULT_SEARCH_URL, normalize_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationResult:
    """
    Outcome of a navigation-triggering operation.

    Attributes:
        success: A document was committed to the tab
        url: Final document URL (or the rejected input on failure)
        error: Why the navigation failed, or the error shown in an error document
        superseded: A newer navigation on the same tab won; nothing was committed
    """

    success: bool
    url: Optional[str] = None
    error: Optional[str] = None
    superseded: bool = False


@dataclass(frozen=True)
class SettingsUpdate:
    """Outcome of update_settings."""

    success: bool
    needs_refresh: bool = False
    error: Optional[str] = None


class Session:
    """
    All open tabs plus the active-tab pointer.

    Every mutation happens on the event loop thread, so no locking is
    needed. Loads on one tab are serialized by the tab's navigation
    token: a load that finishes after a newer one started is discarded.

    Example:
        async with AsyncHttpClient() as client:
            session = Session(DocumentLoader(client))
            session.subscribe(print)
            await session.navigate("example.com")
            print(session.active_tab.document.body)
    """

    def __init__(
        self,
        source: DocumentSource,
        settings: Optional[BrowserSettings] = None,
        search_url: str = DEFAULT_SEARCH_URL,
        url_validator: Optional[UrlValidator] = None,
    ) -> None:
        self._source = source
        self._settings = settings or BrowserSettings()
        self._search_url = search_url
        self._url_validator = url_validator or UrlValidator()
        self._listeners: list[EventListener] = []
        self._next_tab_id = 1

        first = self._new_tab()
        self._tabs: list[Tab] = [first]
        self._active_tab_id = first.id

    # -- events -------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable receiving every BrowserEvent."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: EventType, **fields: Any) -> None:
        event = BrowserEvent(type=event_type, **fields)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed on {event_type.value}")

    def _emit_tabs(self) -> None:
        self._emit(EventType.TABS_CHANGED, tabs=self.get_tabs())

    def _emit_navigation_state(self) -> None:
        tab = self.active_tab
        self._emit(
            EventType.NAVIGATION_STATE_CHANGED,
            tab_id=tab.id,
            url=tab.current_url,
            navigation=tab.navigation_state(),
        )

    def _emit_content(self, tab: Tab) -> None:
        if tab.document is not None:
            self._emit(
                EventType.CONTENT_READY,
                tab_id=tab.id,
                url=tab.document.url,
                title=tab.document.title,
                document=tab.document,
            )
        else:
            self._emit(EventType.CONTENT_CLEARED, tab_id=tab.id)

    # -- tabs ---------------------------------------------------------------

    def _new_tab(self) -> Tab:
        tab = Tab(id=self._next_tab_id)
        self._next_tab_id += 1
        return tab

    def _find_tab(self, tab_id: Optional[int]) -> Optional[Tab]:
        if tab_id is None:
            return self.active_tab
        for tab in self._tabs:
            if tab.id == tab_id:
                return tab
        return None

    @property
    def active_tab_id(self) -> int:
        return self._active_tab_id

    @property
    def active_tab(self) -> Tab:
        for tab in self._tabs:
            if tab.id == self._active_tab_id:
                return tab
        raise RuntimeError(f"Active tab {self._active_tab_id} is missing")

    @property
    def tabs(self) -> list[Tab]:
        return list(self._tabs)

    def get_tab(self, tab_id: int) -> Optional[Tab]:
        return self._find_tab(tab_id)

    def get_tabs(self) -> list[TabInfo]:
        """Snapshots of all tabs in display order."""
        return [tab.info(self._active_tab_id) for tab in self._tabs]

    def get_navigation_state(self) -> NavigationState:
        """Back/forward/loading state of the active tab."""
        return self.active_tab.navigation_state()

    async def create_tab(self, url: Optional[str] = None) -> int:
        """
        Open a new empty tab and make it active.

        Args:
            url: Optional address to navigate the new tab to

        Returns:
            The new tab's id
        """
        tab = self._new_tab()
        self._tabs.append(tab)
        self._active_tab_id = tab.id
        logger.debug(f"Created tab {tab.id}")

        self._emit_tabs()
        self._emit_navigation_state()
        self._emit_content(tab)

        if url:
            await self.navigate(url, tab_id=tab.id)
        return tab.id

    async def close_tab(self, tab_id: int) -> bool:
        """
        Close a tab.

        The tab at the same position becomes active when the closed tab
        was active. Closing the last tab leaves a fresh empty one.

        Returns:
            False if no tab has that id
        """
        tab = self._find_tab(tab_id)
        if tab is None:
            return False

        index = self._tabs.index(tab)
        tab.abandon_load()
        tab.closed = True
        del self._tabs[index]
        logger.debug(f"Closed tab {tab_id}")

        was_active = tab_id == self._active_tab_id
        if not self._tabs:
            self._tabs.append(self._new_tab())
            self._active_tab_id = self._tabs[0].id
        elif was_active:
            self._active_tab_id = self._tabs[min(index, len(self._tabs) - 1)].id

        self._emit_tabs()
        self._emit_navigation_state()
        if was_active:
            self._emit_content(self.active_tab)
            await self._refresh_if_stale(self.active_tab)
        return True

    async def switch_tab(self, tab_id: int) -> bool:
        """
        Make another tab active.

        A tab whose document predates a settings change is reloaded.

        Returns:
            False if no tab has that id
        """
        tab = self._find_tab(tab_id)
        if tab is None:
            return False

        self._active_tab_id = tab.id
        self._emit_tabs()
        self._emit_navigation_state()
        self._emit_content(tab)
        await self._refresh_if_stale(tab)
        return True

    async def _refresh_if_stale(self, tab: Tab) -> None:
        if tab.stale and tab.current_url and not tab.is_loading:
            await self._load(tab, tab.current_url, record=False, clear=False)

    # -- navigation -----------------------------------------------------------

    def _in_flight_recording(self, tab: Tab) -> bool:
        return tab.is_loading and tab.recording

    async def _fetch(self, url: str) -> Document:
        try:
            return await self._source.load(url, self._settings)
        except Exception as e:
            logger.exception(f"Document source failed for {url}")
            return Document.error_document(url, str(e) or type(e).__name__)

    async def _load(self, tab: Tab, url: str, record: bool, clear: bool = True) -> NavigationResult:
        """
        Load url into tab.

        Args:
            tab: Target tab
            url: Absolute URL to load
            record: Push the final URL onto the tab's history
            clear: Clear the view while loading
        """
        token = tab.begin_load(url, record)
        active = tab.id == self._active_tab_id

        self._emit(EventType.LOADING_STARTED, tab_id=tab.id, url=url)
        if active:
            self._emit_navigation_state()
            if clear:
                self._emit(EventType.CONTENT_CLEARED, tab_id=tab.id)
        self._emit_tabs()

        document = await self._fetch(url)

        if tab.closed or token != tab.navigation_token:
            logger.debug(f"Discarding superseded load of {url} in tab {tab.id}")
            return NavigationResult(success=False, url=url, superseded=True)

        tab.document = document
        tab.current_url = document.url
        tab.title = document.title
        tab.is_loading = False
        tab.stale = False
        if record:
            tab.push_history(document.url)

        active = tab.id == self._active_tab_id
        if active:
            self._emit_content(tab)
            self._emit_navigation_state()
        self._emit(
            EventType.LOADING_FINISHED,
            tab_id=tab.id,
            url=document.url,
            title=document.title,
            error=document.error,
        )
        self._emit_tabs()

        return NavigationResult(success=True, url=document.url, error=document.error)

    async def navigate(self, url: str, tab_id: Optional[int] = None) -> NavigationResult:
        """
        Navigate a tab to address bar input.

        Invalid input fails without touching the tab. Fetch and
        conversion failures still complete, with an error document.

        Args:
            url: URL, bare host or search terms
            tab_id: Target tab (defaults to the active tab)

        Returns:
            NavigationResult for this navigation
        """
        tab = self._find_tab(tab_id)
        if tab is None:
            return NavigationResult(success=False, url=url, error=f"No tab with id {tab_id}")

        try:
            target = normalize_url(url, search_url=self._search_url, validator=self._url_validator)
        except InvalidUrlError as e:
            logger.info(f"Rejected navigation to {url!r}: {e}")
            return NavigationResult(success=False, url=url, error=str(e))

        logger.debug(f"Tab {tab.id} navigating to {target}")
        return await self._load(tab, target, record=True)

    async def go_back(self, tab_id: Optional[int] = None) -> NavigationResult:
        """Step the history cursor back and reload that entry."""
        tab = self._find_tab(tab_id)
        if tab is None or not tab.can_go_back:
            return NavigationResult(success=False)

        tab.history_cursor -= 1
        return await self._load(tab, tab.history[tab.history_cursor], record=False)

    async def go_forward(self, tab_id: Optional[int] = None) -> NavigationResult:
        """Step the history cursor forward and reload that entry."""
        tab = self._find_tab(tab_id)
        if tab is None or not tab.can_go_forward:
            return NavigationResult(success=False)

        tab.history_cursor += 1
        return await self._load(tab, tab.history[tab.history_cursor], record=False)

    async def reload(self, tab_id: Optional[int] = None) -> NavigationResult:
        """
        Load the tab's current URL again.

        History is left alone, unless the reload replaces a navigation
        still in flight, which then gets recorded as it would have been.
        """
        tab = self._find_tab(tab_id)
        if tab is None or not tab.current_url:
            return NavigationResult(success=False)

        return await self._load(tab, tab.current_url, record=self._in_flight_recording(tab))

    def stop_loading(self, tab_id: Optional[int] = None) -> bool:
        """
        Stop waiting for the tab's in-flight load.

        The fetch itself keeps running; its result is discarded. The tab
        goes back to the URL of its current history entry.

        Returns:
            True if a load was in flight
        """
        tab = self._find_tab(tab_id)
        if tab is None or not tab.is_loading:
            return False

        tab.abandon_load()
        tab.current_url = tab.cursor_url or ""
        logger.debug(f"Stopped loading {tab.target_url} in tab {tab.id}")

        self._emit(EventType.LOADING_FINISHED, tab_id=tab.id, url=tab.current_url, title=tab.title)
        if tab.id == self._active_tab_id:
            self._emit_navigation_state()
        self._emit_tabs()
        return True

    def on_external_navigation(self, url: str, tab_id: Optional[int] = None) -> bool:
        """
        Reconcile history with a navigation that happened inside a rendered view.

        A URL next to the cursor moves the cursor, an unknown URL is
        recorded as a fresh navigation. Any in-flight load is superseded.

        Returns:
            False if nothing changed
        """
        tab = self._find_tab(tab_id)
        if tab is None or not url:
            return False

        cursor = tab.history_cursor
        if tab.cursor_url == url:
            return False
        if cursor > 0 and tab.history[cursor - 1] == url:
            tab.history_cursor -= 1
        elif cursor + 1 < len(tab.history) and tab.history[cursor + 1] == url:
            tab.history_cursor += 1
        else:
            tab.push_history(url)

        if tab.is_loading:
            tab.abandon_load()
        tab.current_url = url
        tab.title = url_host(url)
        logger.debug(f"Tab {tab.id} navigated externally to {url}")

        if tab.id == self._active_tab_id:
            self._emit_navigation_state()
        self._emit_tabs()
        return True

    # -- settings -------------------------------------------------------------

    def get_settings(self) -> BrowserSettings:
        return self._settings

    async def update_settings(self, **changes: Any) -> SettingsUpdate:
        """
        Apply a partial settings update.

        Fetch-affecting changes mark every loaded document stale and
        reload the active tab. The reload only touches history when it
        replaces a navigation still in flight.

        Returns:
            SettingsUpdate; needs_refresh is set when rendered content
            should be refreshed
        """
        try:
            updated = BrowserSettings.model_validate({**self._settings.model_dump(), **changes})
        except ValidationError as e:
            logger.warning(f"Rejected settings update {changes}: {e}")
            return SettingsUpdate(success=False, error=str(e))

        previous = self._settings
        if updated == previous:
            return SettingsUpdate(success=True)

        self._settings = updated
        fetch_affecting = updated.fetch_affecting_change(previous)
        needs_refresh = fetch_affecting or updated.allow_javascript != previous.allow_javascript
        logger.info(f"Settings changed: {updated.model_dump()}")
        self._emit(EventType.SETTINGS_CHANGED, settings=updated)

        if fetch_affecting:
            for tab in self._tabs:
                if tab.document is not None:
                    tab.stale = True
            active = self.active_tab
            if active.current_url:
                record = self._in_flight_recording(active)
                await self._load(active, active.current_url, record=record, clear=False)

        return SettingsUpdate(success=True, needs_refresh=needs_refresh)
