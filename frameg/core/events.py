"""
Typed event bus for decoupled communication.

Event types are Enum members, so subscribers and publishers agree on
names without magic strings. The narrative engine publishes its
transitions here; presenters, audio cues and save logic listen.

Usage:
    bus = EventBus()
    bus.subscribe(NarrativeEvent.STORY_ENDED, on_story_ended)
    bus.publish(NarrativeEvent.STORY_ENDED, story_id="prologue", step=12)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class NarrativeEvent(Enum):
    """Playback transitions emitted by the state machine."""
    STORY_STARTED = auto()
    STEP_ENTERED = auto()
    STORY_REDIRECTED = auto()
    BRANCH_OPENED = auto()
    CHOICE_SELECTED = auto()
    STORY_ENDED = auto()


class ConfigEvent(Enum):
    """Player configuration lifecycle."""
    CONFIG_LOADED = auto()
    CONFIG_CHANGED = auto()
    CONFIG_RESET = auto()


class ProgressEvent(Enum):
    """Persisted progress changes."""
    STORY_COMPLETED = auto()
    ENDING_UNLOCKED = auto()
    CHAPTER_COMPLETED = auto()


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Event-specific payload
        consumed: Whether a handler stopped propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop propagation to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe hub keyed by event Enum.

    Features:
    - Priority ordering (higher first)
    - Weak references by default, so dead listeners drop out
    - One-shot handlers
    - Consumption stops propagation
    - Events published from inside a handler are queued, not nested
    """

    def __init__(self):
        # event type -> [(priority, handler_ref, one_shot)]
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        self._event_queue: list[Event] = []
        self._is_publishing = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback taking the Event
            priority: Higher priority handlers run first
            one_shot: Remove the handler after its first call
            weak: Hold the handler through a weak reference
        """
        if weak:
            if hasattr(handler, '__self__'):
                handler_ref = WeakMethod(handler)
            else:
                handler_ref = ref(handler)
        else:
            handler_ref = handler

        handlers = self._handlers.setdefault(event_type, [])

        # Stable insert: after every handler of equal or higher priority
        insert_idx = len(handlers)
        for i, (p, _, _) in enumerate(handlers):
            if priority > p:
                insert_idx = i
                break

        handlers.insert(insert_idx, (priority, handler_ref, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a handler from an event type."""
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (p, h, o) for p, h, o in self._handlers[event_type]
            if self._get_handler(h) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)

        if self._is_publishing:
            self._event_queue.append(event)
        else:
            self._dispatch(event)

        return event

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._handlers.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """Clear handlers for one event type, or all of them."""
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        handlers = self._handlers.get(event.type)
        if not handlers:
            return

        self._is_publishing = True
        to_remove = []

        try:
            for i, (_, handler_ref, one_shot) in enumerate(handlers):
                handler = self._get_handler(handler_ref)

                if handler is None:
                    to_remove.append(i)
                    continue

                try:
                    handler(event)
                except Exception:
                    logger.exception("Error in event handler for %s", event.type)

                if one_shot:
                    to_remove.append(i)

                if event.consumed:
                    break

            for i in reversed(to_remove):
                handlers.pop(i)
        finally:
            self._is_publishing = False

        while self._event_queue:
            self._dispatch(self._event_queue.pop(0))

    @staticmethod
    def _get_handler(handler_ref: Any) -> EventHandler | None:
        if isinstance(handler_ref, (ref, WeakMethod)):
            return handler_ref()
        return handler_ref
