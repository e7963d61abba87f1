"""
Weekend Service Models

Enums, drafts (what callers submit), snapshots (immutable reads handed to
view-models) and HTTP request/response models.
"""

from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    """Known event kinds. Stored as plain strings; unknown kinds count as plans."""
    PLAN = "plan"
    TRAVEL = "travel"


class ReminderMode(str, Enum):
    IN_APP = "inApp"
    PUSH = "push"


class WeekendStatus(str, Enum):
    FREE = "free"
    PLAN = "plan"
    TRAVEL = "travel"


class WeekendDay(IntEnum):
    """Day index within a weekend; day-mask bit is 1 << (day - 1)"""
    SATURDAY = 1
    SUNDAY = 2


class SyncState(str, Enum):
    """Per-entity synchronization state"""
    LOCAL_ONLY = "local_only"
    PENDING = "pending"
    SYNCED = "synced"
    STALE = "stale"


class EntityKind(str, Enum):
    EVENT = "event"
    REMINDER = "reminder"
    USER = "user"
    WEEKEND = "weekend"
    ALL = "all"


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    REFRESHED = "refreshed"


# =============================================================================
# Drafts
# =============================================================================

class EventDraft(BaseModel):
    """Event fields as entered in a form"""
    title: str
    start: datetime
    end: datetime
    kind: str = EventKind.PLAN.value
    location: Optional[str] = None
    description: Optional[str] = None
    day_mask: int = 0b11
    weekend_start: Optional[datetime] = Field(
        None, description="Weekend the event is planned for; bounds are checked against it"
    )


class ReminderDraft(BaseModel):
    offset_minutes: int = 60
    mode: ReminderMode = ReminderMode.IN_APP


class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    timezone: Optional[str] = None
    avatar: Optional[bytes] = None


class ReminderPreferences(BaseModel):
    """Persisted defaults for new reminders"""
    default_offset_minutes: int = 60
    default_mode: ReminderMode = ReminderMode.IN_APP


# =============================================================================
# Snapshots
# =============================================================================

class UserSnapshot(BaseModel):
    id: int
    record_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    timezone: Optional[str] = None
    avatar_full: Optional[bytes] = None
    avatar_thumb: Optional[bytes] = None
    sync_state: SyncState = SyncState.LOCAL_ONLY
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def has_avatar(self) -> bool:
        return self.avatar_thumb is not None or self.avatar_full is not None


class ReminderSnapshot(BaseModel):
    id: int
    record_id: str
    event_record_id: str
    offset_minutes: int
    mode: str
    sync_state: SyncState = SyncState.LOCAL_ONLY
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventSnapshot(BaseModel):
    id: int
    record_id: str
    title: str
    start: datetime
    end: datetime
    kind: str
    location: Optional[str] = None
    description: Optional[str] = None
    day_mask: int
    owner_id: Optional[int] = None
    owner_record_id: Optional[str] = None
    reminder: Optional[ReminderSnapshot] = None
    sync_state: SyncState = SyncState.LOCAL_ONLY
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_travel(self) -> bool:
        return self.kind == EventKind.TRAVEL


class PendingDeletion(BaseModel):
    record_type: str
    record_id: str


class PendingChanges(BaseModel):
    """Local state not yet confirmed by the remote store"""
    users: List[UserSnapshot] = Field(default_factory=list)
    events: List[EventSnapshot] = Field(default_factory=list)
    reminders: List[ReminderSnapshot] = Field(default_factory=list)
    deletions: List[PendingDeletion] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.users or self.events or self.reminders or self.deletions)


class RemovedRecords(BaseModel):
    """Local rows removed because the remote store no longer has them"""
    events: List[str] = Field(default_factory=list)
    # reminder record id -> owning event record id
    reminders: Dict[str, str] = Field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.events) + len(self.reminders)


class WeekendSummary(BaseModel):
    """One weekend with its derived or remote status"""
    weekend_start: datetime
    weekend_end: datetime
    status: WeekendStatus = WeekendStatus.FREE
    event_count: int = 0
    events: List[EventSnapshot] = Field(default_factory=list)


# =============================================================================
# HTTP request/response models
# =============================================================================

class EventCreateRequest(BaseModel):
    title: str
    start: datetime
    end: datetime
    kind: str = EventKind.PLAN.value
    location: Optional[str] = None
    description: Optional[str] = None
    days: List[WeekendDay] = Field(default_factory=lambda: [WeekendDay.SATURDAY, WeekendDay.SUNDAY])
    weekend_start: Optional[datetime] = None
    reminder: Optional[ReminderDraft] = None


class EventUpdateRequest(EventCreateRequest):
    pass


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    timezone: Optional[str] = None
    avatar_base64: Optional[str] = None


class RemoteChangeRequest(BaseModel):
    record_names: List[str] = Field(..., min_length=1)


class SyncResultResponse(BaseModel):
    remote_available: bool
    pushed: int = 0
    pulled: int = 0
    message: Optional[str] = None


class ProfileResponse(BaseModel):
    record_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    timezone: Optional[str] = None
    has_avatar: bool = False
    avatar_thumb_base64: Optional[str] = None
    sync_state: SyncState = SyncState.LOCAL_ONLY


class SyncStatusResponse(BaseModel):
    remote_available: bool
    message: Optional[str] = None
    pending_events: int = 0
    pending_reminders: int = 0
    pending_deletions: int = 0
    signed_in_user: Optional[str] = None
