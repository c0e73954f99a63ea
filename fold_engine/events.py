"""
Observer-style event plumbing shared by the document and the fold manager.

Each publisher owns its own broker instance, so one open document never hears
about another document's folds. Delivery is synchronous: ``emit`` returns once
every subscriber has run.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .fold import Fold

DOCUMENT_SOURCE = "DOCUMENT"
TEXT_INSERTED = "text_inserted"
TEXT_REMOVED = "text_removed"
SYNTAX_STYLE_CHANGED = "syntax_style_changed"

FOLD_MANAGER_SOURCE = "FOLD_MANAGER"
FOLDS_UPDATED = "folds_updated"
FOLD_TOGGLED = "fold_toggled"


@dataclass
class Event:
    """What a publisher hands to its subscribers.

    Attributes:
        source: The publisher, e.g. ``DOCUMENT`` or ``FOLD_MANAGER``.
        name: The event name, e.g. ``text_inserted``.
        data: The payload.
    """

    source: str
    name: str
    data: Any = None


@dataclass(frozen=True)
class EditRange:
    """Offset and length of an insertion or removal."""

    offset: int
    length: int


@dataclass(frozen=True)
class FoldsUpdated:
    """Payload of ``folds_updated``: the forest before and after a reparse."""

    old_folds: list[Fold]
    new_folds: list[Fold]


@dataclass(frozen=True)
class FoldToggled:
    """Payload of ``fold_toggled``.

    Attributes:
        fold: The fold whose collapsed state changed.
        caret_offset: Where the text surface should move the caret because the
            fold just hid it, or None when the caret is still visible.
    """

    fold: Fold
    caret_offset: int | None = None


Subscriber = Callable[[Event], None]


class EventBroker:
    """Maps event names to subscriber callables for a single publisher."""

    def __init__(self, source: str):
        self.source = source
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def register_subscriber(self, event_name: str, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers[event_name]:
            self._subscribers[event_name].append(subscriber)

    def unregister_subscriber(self, event_name: str, subscriber: Subscriber) -> bool:
        subscribers = self._subscribers.get(event_name)
        if not subscribers or subscriber not in subscribers:
            return False
        subscribers.remove(subscriber)
        return True

    def subscriber_count(self, event_name: str) -> int:
        return len(self._subscribers.get(event_name, ()))

    def emit(self, event_name: str, data: Any = None) -> Event:
        """Deliver an event to every subscriber of `event_name`, in registration order.

        Subscriber exceptions propagate to the caller.
        """
        event = Event(self.source, event_name, data)
        # Copy so subscribers may unregister themselves while being notified.
        for subscriber in list(self._subscribers.get(event_name, ())):
            subscriber(event)
        return event
