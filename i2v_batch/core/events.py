"""
Batch lifecycle events

BatchScheduler announces each batch, window and settled item on an
EventBus passed to it. Subscribers (dashboards, metrics, tests) observe a
batch without touching its control flow: a failing subscriber is logged
and never affects the batch.

    batch_started -> (window_started -> item_* ... -> window_completed)* -> batch_completed
"""
import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Lifecycle events emitted by the batch scheduler"""

    BATCH_STARTED = "batch_started"        # total, concurrency, windows
    WINDOW_STARTED = "window_started"      # window, indices
    ITEM_COMPLETED = "item_completed"      # index, data
    ITEM_FAILED = "item_failed"            # index, error (after retries)
    WINDOW_COMPLETED = "window_completed"  # window
    BATCH_COMPLETED = "batch_completed"    # summary counts


@dataclass(frozen=True)
class Event:
    """One lifecycle event of one batch"""

    type: EventType
    batch_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def __str__(self) -> str:
        return f"Event({self.type.value}, batch={self.batch_id}, data_keys={list(self.data)})"


EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """
    Publish-subscribe channel for batch lifecycle events

    Handlers are async callables taking an Event. Subscribing with
    event_type=None receives every event.
    """

    def __init__(self, keep_history: bool = False, max_history: int = 1000):
        """
        Initialize event bus

        Args:
            keep_history: Record emitted events for get_history()
            max_history: Most recent events kept in history
        """
        self._handlers: Dict[Optional[EventType], List[EventHandler]] = {}
        self.keep_history = keep_history
        self._history: Deque[Event] = deque(maxlen=max_history)

    def on(self, event_type: Optional[Union[EventType, str]], handler: EventHandler) -> None:
        """Subscribe handler to one event type (None for all events)"""
        key = EventType(event_type) if event_type is not None else None
        self._handlers.setdefault(key, []).append(handler)

    def off(self, event_type: Optional[Union[EventType, str]], handler: EventHandler) -> None:
        """Unsubscribe handler; unknown handlers are ignored"""
        key = EventType(event_type) if event_type is not None else None
        handlers = self._handlers.get(key, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(
        self,
        event_type: Union[EventType, str],
        batch_id: Optional[str] = None,
        **data: Any,
    ) -> Event:
        """
        Deliver an event to its subscribers

        Handlers run concurrently. Handler errors are logged, not raised.

        Returns:
            The emitted Event
        """
        event = Event(type=EventType(event_type), batch_id=batch_id, data=data)
        if self.keep_history:
            self._history.append(event)

        # Copy so handlers may (un)subscribe while being called
        handlers = list(self._handlers.get(event.type, [])) + list(self._handlers.get(None, []))
        if not handlers:
            return event

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)!s} failed on {event}: {result}",
                    exc_info=result,
                )

        return event

    def get_history(self, event_type: Optional[Union[EventType, str]] = None) -> List[Event]:
        """Recorded events, optionally of one type (empty if history is off)"""
        if event_type is None:
            return list(self._history)
        wanted = EventType(event_type)
        return [event for event in self._history if event.type == wanted]
