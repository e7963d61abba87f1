"""
Local Notification Center

In-process notification subsystem: pending requests fire from asyncio
timers and are delivered as ReminderDeliveredEvent on the event bus.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .models import AuthorizationStatus, NotificationRequest, ReminderDeliveredEvent

logger = logging.getLogger(__name__)


class LocalNotificationCenter:
    """Notification center backed by asyncio timer tasks"""

    def __init__(
        self,
        event_bus=None,
        authorized: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            event_bus: Bus receiving ReminderDeliveredEvent
            authorized: Whether a permission request is granted
            clock: Current time source (aware UTC)
        """
        self.event_bus = event_bus
        self._grant = authorized
        self._status = AuthorizationStatus.NOT_DETERMINED
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._pending: Dict[str, NotificationRequest] = {}
        self._timers: Dict[str, asyncio.Task] = {}
        self.delivered: Dict[str, ReminderDeliveredEvent] = {}

    async def authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def request_authorization(self) -> bool:
        self._status = AuthorizationStatus.AUTHORIZED if self._grant else AuthorizationStatus.DENIED
        logger.info(f"Notification authorization: {self._status.value}")
        return self._status == AuthorizationStatus.AUTHORIZED

    async def add(self, request: NotificationRequest) -> None:
        """Register a request, replacing any pending one with the same identifier"""
        self._cancel_timer(request.identifier)
        self._pending[request.identifier] = request
        self._timers[request.identifier] = asyncio.ensure_future(self._deliver_later(request))
        logger.debug(f"Notification {request.identifier} pending until {request.trigger_at.isoformat()}")

    async def remove_pending(self, identifiers: List[str]) -> int:
        removed = 0
        for identifier in identifiers:
            self._cancel_timer(identifier)
            if self._pending.pop(identifier, None) is not None:
                removed += 1
        return removed

    async def pending_requests(self) -> List[NotificationRequest]:
        return sorted(self._pending.values(), key=lambda r: r.trigger_at)

    def get_delivered(self, identifier: str) -> Optional[ReminderDeliveredEvent]:
        return self.delivered.get(identifier)

    async def close(self) -> None:
        """Cancel every timer; pending requests are dropped"""
        for identifier in list(self._timers):
            self._cancel_timer(identifier)
        self._pending.clear()
        logger.info("Notification center closed")

    def _cancel_timer(self, identifier: str) -> None:
        task = self._timers.pop(identifier, None)
        if task is not None and not task.done():
            task.cancel()

    async def _deliver_later(self, request: NotificationRequest) -> None:
        delay = (request.trigger_at - self._clock()).total_seconds()
        if delay > 0:
            await asyncio.sleep(delay)

        if self._pending.get(request.identifier) is not request:
            return
        self._pending.pop(request.identifier, None)
        self._timers.pop(request.identifier, None)
        await self.deliver(request)

    async def deliver(self, request: NotificationRequest) -> ReminderDeliveredEvent:
        """Deliver a request now"""
        delivered = ReminderDeliveredEvent(
            identifier=request.identifier,
            event_id=request.event_id,
            title=request.title,
            body=request.body,
            category=request.category,
            delivered_at=self._clock(),
        )
        self.delivered[request.identifier] = delivered
        logger.info(f"Delivered notification {request.identifier}")

        if self.event_bus:
            try:
                await self.event_bus.publish_event(delivered)
            except Exception as e:
                logger.error(f"Failed to publish delivery of {request.identifier}: {e}")
        return delivered
