"""
In-process Event Bus

Typed change notifications between the store, sync engine, reminder
scheduler and view-models. Subjects use NATS-style patterns:

- "weekend.data.changed"  exact subject
- "weekend.*.changed"     one token wildcard
- "reminder.>"            one or more trailing tokens

Handlers run on the event loop that publishes; a failing handler is
logged and never breaks delivery to the others.
"""

import inspect
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventMetadata(BaseModel):
    """Standard metadata carried by every event"""
    event_id: str = Field(
        default_factory=lambda: f"evt_{uuid.uuid4().hex}",
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Event creation timestamp"
    )
    source_service: Optional[str] = Field(None, description="Service that generated this event")
    correlation_id: Optional[str] = Field(None, description="ID to correlate related events")


class BaseEvent(BaseModel):
    """
    Base class for all domain events.

    Example:
        class ReminderDeliveredEvent(BaseEvent):
            event_type: str = "reminder.delivered"
            identifier: str
    """
    event_type: str = Field(..., description="Type of event, used as the subject")
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    @property
    def subject(self) -> str:
        return self.event_type


def subject_matches(pattern: str, subject: str) -> bool:
    """Check if subject matches pattern (NATS-style wildcards)"""
    pattern_tokens = pattern.split(".")
    subject_tokens = subject.split(".")

    for index, token in enumerate(pattern_tokens):
        if token == ">":
            return len(subject_tokens) > index
        if index >= len(subject_tokens):
            return False
        if token != "*" and token != subject_tokens[index]:
            return False

    return len(pattern_tokens) == len(subject_tokens)


class _Subscription:
    def __init__(self, subscription_id: str, pattern: str, handler: Callable):
        self.subscription_id = subscription_id
        self.pattern = pattern
        self.handler = handler


class LocalEventBus:
    """
    Event bus delivering events to in-process subscribers.

    Delivery is awaited by the publisher, so a published change has been
    seen by every subscriber when publish_event returns.
    """

    def __init__(self, service_name: str = "weekend_service"):
        self.service_name = service_name
        self._subscriptions: List[_Subscription] = []
        self._closed = False

    async def publish_event(self, event: BaseEvent) -> bool:
        """
        Publish an event to every matching subscriber.

        Returns:
            False when the bus is closed, True otherwise
        """
        if self._closed:
            logger.warning(f"Event bus closed, dropping {event.event_type}")
            return False

        if event.metadata.source_service is None:
            event.metadata.source_service = self.service_name

        matching = [s for s in self._subscriptions if subject_matches(s.pattern, event.subject)]
        logger.debug(
            f"Publishing {event.event_type} [{event.metadata.event_id}] to {len(matching)} subscriber(s)"
        )

        for subscription in matching:
            try:
                result = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Handler for {subscription.pattern} failed on {event.event_type}: {e}",
                    exc_info=True,
                )
        return True

    async def subscribe_to_events(self, pattern: str, handler: Callable) -> str:
        """
        Subscribe to events matching pattern.

        Args:
            pattern: Subject pattern (e.g. "weekend.data.*")
            handler: Sync or async callable receiving the event

        Returns:
            Subscription id used to unsubscribe
        """
        subscription_id = f"sub_{uuid.uuid4().hex[:12]}"
        self._subscriptions.append(_Subscription(subscription_id, pattern, handler))
        logger.debug(f"Subscribed to {pattern} ({subscription_id})")
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription"""
        before = len(self._subscriptions)
        self._subscriptions = [
            s for s in self._subscriptions if s.subscription_id != subscription_id
        ]
        return len(self._subscriptions) < before

    async def close(self):
        """Drop all subscriptions and stop delivering"""
        self._subscriptions.clear()
        self._closed = True
        logger.info("Event bus closed")

    @property
    def is_connected(self) -> bool:
        return not self._closed


# Singleton instance
_event_bus: Optional[LocalEventBus] = None


async def get_event_bus(service_name: str = "weekend_service") -> LocalEventBus:
    """
    Get or create event bus instance.

    Args:
        service_name: Name of the service using the event bus

    Returns:
        LocalEventBus instance
    """
    global _event_bus

    if _event_bus is None or not _event_bus.is_connected:
        _event_bus = LocalEventBus(service_name=service_name)

    return _event_bus


def event_to_dict(event: BaseEvent) -> Dict[str, Any]:
    """Serialize an event for logging or HTTP responses"""
    return event.model_dump(mode="json")
