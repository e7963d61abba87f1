"""
Reminder Service

Schedules event reminders on the local notification center.
"""

from .models import (
    AuthorizationStatus,
    NavigateToEventEvent,
    NotificationRequest,
    ReminderAction,
    ReminderDeliveredEvent,
    ReminderEventType,
)
from .protocols import NotificationCenterProtocol, PastTriggerError, ReminderServiceError
from .scheduler import ReminderScheduler

__all__ = [
    "AuthorizationStatus",
    "NavigateToEventEvent",
    "NotificationRequest",
    "ReminderAction",
    "ReminderDeliveredEvent",
    "ReminderEventType",
    "NotificationCenterProtocol",
    "PastTriggerError",
    "ReminderServiceError",
    "ReminderScheduler",
]
