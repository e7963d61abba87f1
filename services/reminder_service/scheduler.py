"""
Reminder Scheduler - Business Logic

Keeps the local notification center in step with events and their
reminder configs.

- Only push-mode reminders are pre-scheduled
- One pending trigger per event, identifier "event_<record id>"
- Snoozes are separate requests, identifier "snooze_<record id>_<epoch>"
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

from services.weekend_service.events.models import DataChangedEvent, WeekendEventType
from services.weekend_service.models import (
    ChangeKind,
    EntityKind,
    EventSnapshot,
    ReminderMode,
    ReminderSnapshot,
)

from .models import (
    AuthorizationStatus,
    NavigateToEventEvent,
    NotificationRequest,
    ReminderAction,
    ReminderDeliveredEvent,
)
from .protocols import NotificationCenterProtocol, PastTriggerError

logger = logging.getLogger(__name__)

EventLookup = Callable[[str], Awaitable[Optional[EventSnapshot]]]


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def event_identifier(event_id: str) -> str:
    return f"event_{event_id}"


def snooze_identifier(event_id: str, now: datetime) -> str:
    return f"snooze_{event_id}_{int(now.timestamp())}"


def reminder_body(title: str) -> str:
    return f"Reminder: {title} starting soon"


class ReminderScheduler:
    """
    Schedules, snoozes and cancels event reminders.

    Subscribes to DataChangedEvent so created, updated and deleted events
    keep their pending notification in step.
    """

    def __init__(
        self,
        notification_center: NotificationCenterProtocol,
        event_bus=None,
        event_lookup: Optional[EventLookup] = None,
        snooze_minutes: int = 15,
    ):
        """
        Args:
            notification_center: Local notification subsystem
            event_bus: Bus for navigation events and data-change subscriptions
            event_lookup: Async lookup of an event by record id
            snooze_minutes: Delay used by the snooze action
        """
        self.center = notification_center
        self.event_bus = event_bus
        self.event_lookup = event_lookup
        self.snooze_minutes = snooze_minutes
        self._subscription_id: Optional[str] = None

    async def start(self) -> None:
        """Subscribe to data changes"""
        if self.event_bus and self._subscription_id is None:
            self._subscription_id = await self.event_bus.subscribe_to_events(
                WeekendEventType.DATA_CHANGED.value, self.handle_data_changed
            )
            logger.info("Reminder scheduler subscribed to data changes")

    async def stop(self) -> None:
        if self.event_bus and self._subscription_id is not None:
            await self.event_bus.unsubscribe(self._subscription_id)
            self._subscription_id = None

    async def _authorized(self) -> bool:
        status = await self.center.authorization_status()
        if status == AuthorizationStatus.NOT_DETERMINED:
            granted = await self.center.request_authorization()
            status = AuthorizationStatus.AUTHORIZED if granted else AuthorizationStatus.DENIED
        return status == AuthorizationStatus.AUTHORIZED

    async def schedule_reminder(
        self,
        event: EventSnapshot,
        config: Optional[ReminderSnapshot] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Register the push notification for an event's reminder.

        Returns:
            True if a request was registered; False for in-app reminders or
            when notification permission is denied

        Raises:
            PastTriggerError: The trigger time is not after now
        """
        config = config or event.reminder
        if config is None or config.mode != ReminderMode.PUSH.value:
            return False

        identifier = event_identifier(event.record_id)
        now = _utc(now or datetime.now(timezone.utc))
        trigger_at = _utc(event.start) - timedelta(minutes=config.offset_minutes)
        if trigger_at <= now:
            # A trigger computed from the previous start must not survive
            await self.center.remove_pending([identifier])
            raise PastTriggerError(
                f"Reminder for '{event.title}' would fire at {trigger_at.isoformat()}, which has passed"
            )

        if not await self._authorized():
            logger.info(f"Notifications not authorized, reminder for {event.record_id} not scheduled")
            return False

        await self.center.remove_pending([identifier])
        await self.center.add(NotificationRequest(
            identifier=identifier,
            body=reminder_body(event.title),
            trigger_at=trigger_at,
            event_id=event.record_id,
            user_info={"eventID": event.record_id},
        ))
        logger.info(f"Scheduled reminder {identifier} at {trigger_at.isoformat()}")
        return True

    async def cancel_reminder(self, event_id: str) -> int:
        """Remove the event's pending reminder and any snoozes; returns the count removed"""
        exact = event_identifier(event_id)
        prefixes = (f"{exact}_", f"snooze_{event_id}_")

        pending = await self.center.pending_requests()
        identifiers = [
            r.identifier for r in pending
            if r.identifier == exact or r.identifier.startswith(prefixes)
        ]
        if not identifiers:
            return 0

        removed = await self.center.remove_pending(identifiers)
        logger.info(f"Cancelled {len(identifiers)} reminder(s) for event {event_id}")
        return removed

    async def handle_action(
        self,
        action: ReminderAction,
        delivered: ReminderDeliveredEvent,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        React to an action chosen on a delivered reminder.

        Returns:
            The snooze request identifier for SNOOZE_15, otherwise None
        """
        if action == ReminderAction.SNOOZE_15:
            now = _utc(now or datetime.now(timezone.utc))
            identifier = snooze_identifier(delivered.event_id, now)
            await self.center.add(NotificationRequest(
                identifier=identifier,
                title=delivered.title,
                body=delivered.body,
                trigger_at=now + timedelta(minutes=self.snooze_minutes),
                event_id=delivered.event_id,
                user_info={"eventID": delivered.event_id},
            ))
            logger.info(f"Snoozed reminder for {delivered.event_id} as {identifier}")
            return identifier

        if action == ReminderAction.VIEW_EVENT:
            if self.event_bus:
                await self.event_bus.publish_event(NavigateToEventEvent(event_id=delivered.event_id))
            return None

        logger.warning(f"Unknown reminder action: {action}")
        return None

    async def handle_data_changed(self, event: DataChangedEvent) -> None:
        """Re-schedule or cancel after an event or reminder change"""
        try:
            if event.entity_kind == EntityKind.EVENT:
                event_id = event.entity_id
            elif event.entity_kind == EntityKind.REMINDER:
                event_id = event.related_id
            else:
                return
            if not event_id:
                return

            if event.entity_kind == EntityKind.EVENT and event.change == ChangeKind.DELETED:
                await self.cancel_reminder(event_id)
                return

            snapshot = await self.event_lookup(event_id) if self.event_lookup else None
            if snapshot is None or snapshot.reminder is None \
                    or snapshot.reminder.mode != ReminderMode.PUSH.value:
                await self.cancel_reminder(event_id)
                return

            try:
                await self.schedule_reminder(snapshot)
            except PastTriggerError as e:
                logger.info(f"Skipping reminder: {e}")

        except Exception as e:
            logger.error(f"Error handling data change for reminders: {e}", exc_info=True)
            # Don't raise - we don't want to break the event processing chain

    async def pending_for_event(self, event_id: str) -> List[NotificationRequest]:
        pending = await self.center.pending_requests()
        return [r for r in pending if r.event_id == event_id]
