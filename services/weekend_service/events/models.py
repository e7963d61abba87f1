"""
Weekend Service Event Models

Typed events published on the in-process event bus.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from core.event_bus import BaseEvent

from ..models import ChangeKind, EntityKind


# =============================================================================
# Event Type Definitions (Service-Specific)
# =============================================================================

class WeekendEventType(str, Enum):
    """
    Events published by weekend_service.

    Subjects: weekend.>
    """
    DATA_CHANGED = "weekend.data.changed"
    REMOTE_CHANGE = "weekend.remote.changed"
    SYNC_STATUS_CHANGED = "weekend.sync.status_changed"


class WeekendSubscribedEventType(str, Enum):
    """Events that weekend_service subscribes to from other services."""
    NAVIGATE_TO_EVENT = "reminder.navigate"


# =============================================================================
# Event Data Models
# =============================================================================

class DataChangedEvent(BaseEvent):
    """
    Local data changed.

    entity_id is the record identifier of the changed entity; for reminders
    related_id is the owning event's record identifier. EntityKind.ALL
    means "reload everything".
    """
    event_type: str = WeekendEventType.DATA_CHANGED.value
    entity_kind: EntityKind
    entity_id: Optional[str] = None
    change: ChangeKind = ChangeKind.UPDATED
    related_id: Optional[str] = None


class RemoteChangeEvent(BaseEvent):
    """Remote store reported changed records"""
    event_type: str = WeekendEventType.REMOTE_CHANGE.value
    record_names: list = Field(default_factory=list)


class SyncStatusChangedEvent(BaseEvent):
    event_type: str = WeekendEventType.SYNC_STATUS_CHANGED.value
    remote_available: bool
    message: Optional[str] = None
