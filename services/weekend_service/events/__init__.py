"""
Weekend Service Events

Typed bus events and the handlers weekend_service registers.
"""

from .handlers import WeekendEventHandlers
from .models import (
    DataChangedEvent,
    RemoteChangeEvent,
    SyncStatusChangedEvent,
    WeekendEventType,
    WeekendSubscribedEventType,
)

__all__ = [
    "WeekendEventHandlers",
    "DataChangedEvent",
    "RemoteChangeEvent",
    "SyncStatusChangedEvent",
    "WeekendEventType",
    "WeekendSubscribedEventType",
]
