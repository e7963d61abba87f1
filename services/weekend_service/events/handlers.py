"""
Weekend Service Event Handlers

Handles bus events addressed to weekend_service.
"""

import logging
from typing import Callable, Dict, Optional

from ..protocols import EventNotFoundError
from .models import WeekendEventType, WeekendSubscribedEventType

logger = logging.getLogger(__name__)


class WeekendEventHandlers:
    """Weekend service event handlers"""

    def __init__(self, sync_service, on_navigate: Optional[Callable] = None):
        """
        Args:
            sync_service: SyncService instance
            on_navigate: Called with the EventSnapshot a reminder asked to show
        """
        self.service = sync_service
        self.on_navigate = on_navigate
        self.navigation_target = None

    def get_event_handler_map(self) -> Dict[str, Callable]:
        """
        Get event handler mapping

        Returns:
            Dict[event_type, handler_function]
        """
        return {
            WeekendEventType.REMOTE_CHANGE.value: self.handle_remote_change,
            WeekendSubscribedEventType.NAVIGATE_TO_EVENT.value: self.handle_navigate_to_event,
        }

    async def handle_remote_change(self, event):
        """Re-fetch and merge the records the remote store reported as changed"""
        try:
            record_names = list(getattr(event, "record_names", None) or [])
            if not record_names:
                logger.warning("Received remote change event without record names")
                return

            merged = await self.service.handle_remote_change(record_names)
            logger.info(f"Remote change handled: {merged} record(s) updated")

        except Exception as e:
            logger.error(f"Error handling remote change event: {e}", exc_info=True)
            # Don't raise - we don't want to break the event processing chain

    async def handle_navigate_to_event(self, event):
        """Resolve the event a reminder's View action points at"""
        event_id = getattr(event, "event_id", None)
        if not event_id:
            logger.warning("Received navigate event without event_id")
            return

        try:
            target = await self.service.get_event(event_id)
        except EventNotFoundError:
            logger.info(f"Navigation target {event_id} no longer exists")
            return
        except Exception as e:
            logger.error(f"Error resolving navigation target {event_id}: {e}", exc_info=True)
            return

        self.navigation_target = target
        if self.on_navigate:
            self.on_navigate(target)


__all__ = ["WeekendEventHandlers"]
