"""Batch lifecycle events for i2v-batch"""

from i2v_batch.core.events import Event, EventBus, EventType

__all__ = [
    "Event",
    "EventBus",
    "EventType",
]
