"""
Weekend Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import datetime
from typing import Any, List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from .models import (
    EventDraft,
    EventSnapshot,
    PendingChanges,
    ReminderDraft,
    ReminderPreferences,
    ReminderSnapshot,
    SyncState,
    UserProfileUpdate,
    UserSnapshot,
)


# Custom exceptions - defined here to avoid importing the store
class WeekendServiceError(Exception):
    """Base exception for weekend service errors"""
    pass


class WeekendValidationError(WeekendServiceError):
    """Input rejected before any mutation"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class StorageError(WeekendServiceError):
    """Local store read or write failed"""
    pass


class StoreCorruptedError(StorageError):
    """Local store could not be opened even after recreating it"""
    pass


class EventNotFoundError(WeekendServiceError):
    """Event not found in the local store"""
    pass


class NoCurrentUserError(WeekendServiceError):
    """Operation needs a signed-in cloud identity"""
    pass


@runtime_checkable
class LocalStoreProtocol(Protocol):
    """
    Interface for the local store.

    Methods are blocking; callers run them on the worker pool.
    """

    def create_event(
        self,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
        owner_record_id: Optional[str] = None,
    ) -> EventSnapshot:
        ...

    def update_event(
        self,
        record_id: str,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
    ) -> EventSnapshot:
        ...

    def delete_event(self, record_id: str) -> EventSnapshot:
        ...

    def get_event(self, record_id: str) -> Optional[EventSnapshot]:
        ...

    def create_or_update_reminder(self, event_record_id: str, reminder: ReminderDraft) -> ReminderSnapshot:
        ...

    def delete_reminder(self, event_record_id: str) -> Optional[ReminderSnapshot]:
        ...

    def fetch_events_overlapping(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        ...

    def fetch_user(self) -> Optional[UserSnapshot]:
        ...

    def get_or_create_user(self, record_id: str, default_timezone: Optional[str] = None) -> UserSnapshot:
        ...

    def save_user(
        self,
        record_id: str,
        profile: UserProfileUpdate,
        avatar_full: Optional[bytes] = None,
        avatar_thumb: Optional[bytes] = None,
    ) -> UserSnapshot:
        ...

    def mark_sync_state(
        self,
        record_ids: List[str],
        state: SyncState,
        modified_at: Optional[datetime] = None,
        only_from: Optional[List[SyncState]] = None,
    ) -> int:
        ...

    def pending_changes(self) -> PendingChanges:
        ...


@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event"""
        ...

    async def subscribe_to_events(self, pattern: str, handler: Any) -> str:
        """Subscribe to events matching pattern"""
        ...

    async def unsubscribe(self, subscription_id: str) -> bool:
        ...

    async def close(self) -> None:
        """Close the event bus"""
        ...


@runtime_checkable
class ImageCodecProtocol(Protocol):
    """Resizes and re-encodes profile images"""

    def resize(self, data: bytes, width: int, height: int, quality: float) -> bytes:
        ...


@runtime_checkable
class PreferencesStoreProtocol(Protocol):
    def load(self) -> ReminderPreferences:
        ...

    def save(self, preferences: ReminderPreferences) -> None:
        ...
