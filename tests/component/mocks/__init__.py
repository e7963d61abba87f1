"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (remote store, notifications, bus).
"""

from .event_bus_mock import MockEventBus
from .notification_mock import MockImageCodec, MockNotificationCenter
from .record_store_mock import InMemoryRecordStore

__all__ = [
    'InMemoryRecordStore',
    'MockEventBus',
    'MockImageCodec',
    'MockNotificationCenter',
]
