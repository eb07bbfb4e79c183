"""Event types emitted by the browsing session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .config import BrowserSettings
    from .document import Document
    from .tab import NavigationState, TabInfo


class EventType(str, Enum):
    """Types of events emitted by a Session."""

    # Content
    CONTENT_READY = "content_ready"
    CONTENT_CLEARED = "content_cleared"

    # Navigation and tabs
    NAVIGATION_STATE_CHANGED = "navigation_state_changed"
    TABS_CHANGED = "tabs_changed"

    # Loading lifecycle
    LOADING_STARTED = "loading_started"
    LOADING_FINISHED = "loading_finished"

    # Settings
    SETTINGS_CHANGED = "settings_changed"


@dataclass
class BrowserEvent:
    """
    Event emitted when session state changes.

    Provides typed fields for common event data instead of a generic dict.

    Example:
        def on_event(event: BrowserEvent) -> None:
            if event.type == EventType.CONTENT_READY:
                show(event.document)
            elif event.type == EventType.TABS_CHANGED:
                redraw_tab_strip(event.tabs)

        session.subscribe(on_event)
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    tab_id: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None
    error: Optional[str] = None

    # Typed payload fields for specific events
    document: Optional[Document] = None
    tabs: Optional[list[TabInfo]] = None
    navigation: Optional[NavigationState] = None
    settings: Optional[BrowserSettings] = None

    @property
    def is_loading_event(self) -> bool:
        """Check if this event marks the start or end of a load."""
        return self.type in (EventType.LOADING_STARTED, EventType.LOADING_FINISHED)


# Type alias for event listener callables
EventListener = Callable[[BrowserEvent], None]
