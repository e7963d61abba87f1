"""
Reminder Service Models

Notification requests, delivery/navigation events and reminder actions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.event_bus import BaseEvent

REMINDER_CATEGORY = "EVENT_REMINDER"
NOTIFICATION_TITLE = "Weekend Planner"


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class ReminderAction(str, Enum):
    """Actions offered on a delivered reminder"""
    VIEW_EVENT = "VIEW_EVENT"
    SNOOZE_15 = "SNOOZE_15"


class NotificationRequest(BaseModel):
    """A notification registered for delivery at trigger_at"""
    identifier: str
    title: str = NOTIFICATION_TITLE
    body: str
    trigger_at: datetime
    category: str = REMINDER_CATEGORY
    event_id: str
    user_info: Dict[str, Any] = Field(default_factory=dict)


class ReminderEventType(str, Enum):
    """
    Events published by reminder_service.

    Subjects: reminder.>
    """
    DELIVERED = "reminder.delivered"
    NAVIGATE = "reminder.navigate"


class ReminderDeliveredEvent(BaseEvent):
    """A pending notification fired"""
    event_type: str = ReminderEventType.DELIVERED.value
    identifier: str
    event_id: str
    title: str
    body: str
    category: str = REMINDER_CATEGORY
    actions: List[ReminderAction] = Field(
        default_factory=lambda: [ReminderAction.VIEW_EVENT, ReminderAction.SNOOZE_15]
    )
    delivered_at: Optional[datetime] = None


class NavigateToEventEvent(BaseEvent):
    """The user asked to open the event behind a reminder"""
    event_type: str = ReminderEventType.NAVIGATE.value
    event_id: str


class ReminderActionRequest(BaseModel):
    action: ReminderAction
