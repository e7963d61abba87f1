"""
Reminder Service Factory

Factory functions for creating the reminder scheduler with real dependencies.
"""
import logging
from typing import Optional

from core.config import ReminderSettings

from .protocols import NotificationCenterProtocol
from .scheduler import EventLookup, ReminderScheduler

logger = logging.getLogger(__name__)


def create_notification_center(settings: ReminderSettings, event_bus=None) -> NotificationCenterProtocol:
    from .notification_center import LocalNotificationCenter

    return LocalNotificationCenter(
        event_bus=event_bus,
        authorized=settings.notifications_authorized,
    )


def create_reminder_scheduler(
    settings: ReminderSettings,
    event_bus=None,
    event_lookup: Optional[EventLookup] = None,
    notification_center: Optional[NotificationCenterProtocol] = None,
) -> ReminderScheduler:
    """
    Create ReminderScheduler with real dependencies.

    Args:
        settings: Reminder settings
        event_bus: Event bus for navigation events and data changes
        event_lookup: Async lookup of an event by record id
        notification_center: Optional notification center (for testing)
    """
    if notification_center is None:
        notification_center = create_notification_center(settings, event_bus)

    return ReminderScheduler(
        notification_center=notification_center,
        event_bus=event_bus,
        event_lookup=event_lookup,
        snooze_minutes=settings.snooze_minutes,
    )
