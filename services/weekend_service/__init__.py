"""
Weekend Service

Weekend planner core: weekend math, local store, offline-first sync with
the cloud record store and the view-models behind the planner screens.
"""

from .models import (
    EventDraft,
    EventKind,
    EventSnapshot,
    ReminderDraft,
    ReminderMode,
    SyncState,
    UserSnapshot,
    WeekendDay,
    WeekendStatus,
    WeekendSummary,
)
from .protocols import (
    EventNotFoundError,
    NoCurrentUserError,
    StorageError,
    StoreCorruptedError,
    WeekendServiceError,
    WeekendValidationError,
)
from .sync_service import SyncService

__version__ = "1.0.0"
__all__ = [
    "EventDraft",
    "EventKind",
    "EventSnapshot",
    "ReminderDraft",
    "ReminderMode",
    "SyncState",
    "UserSnapshot",
    "WeekendDay",
    "WeekendStatus",
    "WeekendSummary",
    "EventNotFoundError",
    "NoCurrentUserError",
    "StorageError",
    "StoreCorruptedError",
    "WeekendServiceError",
    "WeekendValidationError",
    "SyncService",
]
