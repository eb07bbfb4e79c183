"""Tab state and the read-only snapshots handed to the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .document import Document

NEW_TAB_TITLE = "New Tab"


class TabState(str, Enum):
    """Lifecycle states of a tab."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"


@dataclass(frozen=True)
class TabInfo:
    """Snapshot of one tab for tab strips and pickers."""

    id: int
    url: str
    title: str
    is_active: bool
    is_loading: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "is_active": self.is_active,
            "is_loading": self.is_loading,
        }


@dataclass(frozen=True)
class NavigationState:
    """Snapshot of the active tab's navigation controls."""

    can_go_back: bool
    can_go_forward: bool
    is_loading: bool
    url: str
    title: str

    def to_dict(self) -> dict:
        return {
            "can_go_back": self.can_go_back,
            "can_go_forward": self.can_go_forward,
            "is_loading": self.is_loading,
            "url": self.url,
            "title": self.title,
        }


@dataclass
class Tab:
    """
    One independent browsing context with a linear history.

    Invariants:
        history_cursor == -1 exactly when history is empty, otherwise
        0 <= history_cursor < len(history).

    The navigation_token is bumped whenever a load starts or is abandoned.
    A load only commits its document if the token it captured is still
    the tab's current one. recording is set while the in-flight load will
    push its final URL onto history.
    """

    id: int
    current_url: str = ""
    title: str = NEW_TAB_TITLE
    is_loading: bool = False
    history: list[str] = field(default_factory=list)
    history_cursor: int = -1
    document: Optional[Document] = None

    target_url: str = ""
    recording: bool = False
    navigation_token: int = 0
    stale: bool = False
    closed: bool = False

    @property
    def can_go_back(self) -> bool:
        return self.history_cursor > 0

    @property
    def can_go_forward(self) -> bool:
        return self.history_cursor < len(self.history) - 1

    @property
    def state(self) -> TabState:
        if self.closed:
            return TabState.CLOSED
        if self.is_loading:
            return TabState.LOADING
        if self.document is None and not self.history:
            return TabState.EMPTY
        return TabState.READY

    @property
    def cursor_url(self) -> Optional[str]:
        """URL of the history entry the cursor points at."""
        if self.history_cursor < 0:
            return None
        return self.history[self.history_cursor]

    def begin_load(self, url: str, record: bool = False) -> int:
        """Mark the tab loading url and return the token guarding the load."""
        self.navigation_token += 1
        self.target_url = url
        self.recording = record
        self.current_url = url
        self.is_loading = True
        return self.navigation_token

    def abandon_load(self) -> None:
        """Invalidate any in-flight load without starting a new one."""
        self.navigation_token += 1
        self.recording = False
        self.is_loading = False

    def push_history(self, url: str) -> None:
        """Record a fresh navigation to url at the cursor.

        Forward entries past the cursor are dropped. url is not appended
        again when it already sits at the cursor.
        """
        del self.history[self.history_cursor + 1 :]
        if self.cursor_url != url:
            self.history.append(url)
        self.history_cursor = len(self.history) - 1

    def info(self, active_tab_id: int) -> TabInfo:
        return TabInfo(
            id=self.id,
            url=self.current_url,
            title=self.title or self.current_url or NEW_TAB_TITLE,
            is_active=self.id == active_tab_id,
            is_loading=self.is_loading,
        )

    def navigation_state(self) -> NavigationState:
        return NavigationState(
            can_go_back=self.can_go_back,
            can_go_forward=self.can_go_forward,
            is_loading=self.is_loading,
            url=self.current_url,
            title=self.title,
        )
