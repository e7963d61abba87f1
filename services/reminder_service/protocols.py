"""
Reminder Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import List, Protocol, runtime_checkable

from .models import AuthorizationStatus, NotificationRequest


class ReminderServiceError(Exception):
    """Base exception for reminder service errors"""
    pass


class PastTriggerError(ReminderServiceError):
    """The reminder's trigger time is not in the future"""
    pass


@runtime_checkable
class NotificationCenterProtocol(Protocol):
    """
    Interface for the local notification subsystem.

    Requests are keyed by identifier; adding an existing identifier
    replaces the pending request.
    """

    async def authorization_status(self) -> AuthorizationStatus:
        ...

    async def request_authorization(self) -> bool:
        """Ask for permission; returns True if granted"""
        ...

    async def add(self, request: NotificationRequest) -> None:
        ...

    async def remove_pending(self, identifiers: List[str]) -> int:
        ...

    async def pending_requests(self) -> List[NotificationRequest]:
        ...
