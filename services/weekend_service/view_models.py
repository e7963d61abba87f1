"""
Weekend View-Models

State holders behind the screens of the planner. They call SyncService,
reload on DataChangedEvent and turn failures into error_message instead of
raising.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Set

from services.cloud_service.protocols import CloudServiceError

from .events.models import WeekendEventType
from .models import (
    EventDraft,
    EventKind,
    EventSnapshot,
    ReminderDraft,
    ReminderMode,
    ReminderPreferences,
    UserProfileUpdate,
    WeekendDay,
    WeekendStatus,
    WeekendSummary,
)
from .protocols import (
    NoCurrentUserError,
    PreferencesStoreProtocol,
    WeekendServiceError,
    WeekendValidationError,
)
from .sync_service import SyncService
from .timezones import localize
from .validation import event_draft_error, reminder_draft_error
from .weekend_calendar import (
    add_months,
    end_of_weekend,
    first_of_month,
    format_reminder_offset,
    selected_days_from_day_mask,
    start_of_weekend,
    twelve_month_window,
    upcoming_weekends,
    weekend_range_label,
    weekends_in_month,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _ReloadingViewModel:
    """Reloads whenever local data changes"""

    def __init__(self, sync: SyncService, clock: Optional[Clock] = None):
        self.sync = sync
        self.clock = clock or _utc_now
        self.error_message: Optional[str] = None
        self.is_loading = False
        self._subscription_id: Optional[str] = None

    def now(self) -> datetime:
        return localize(self.clock(), self.sync.user_timezone())

    async def start(self) -> None:
        if self.sync.event_bus and self._subscription_id is None:
            self._subscription_id = await self.sync.event_bus.subscribe_to_events(
                WeekendEventType.DATA_CHANGED.value, self._on_data_changed
            )
        await self.reload()

    async def stop(self) -> None:
        if self.sync.event_bus and self._subscription_id is not None:
            await self.sync.event_bus.unsubscribe(self._subscription_id)
            self._subscription_id = None

    async def _on_data_changed(self, event) -> None:
        await self.reload()

    async def reload(self) -> None:
        self.is_loading = True
        try:
            await self._load()
            self.error_message = None
        except (WeekendServiceError, CloudServiceError) as e:
            logger.error(f"{type(self).__name__} reload failed: {e}")
            self.error_message = str(e)
        finally:
            self.is_loading = False

    async def _load(self) -> None:
        raise NotImplementedError


# =============================================================================
# Event form
# =============================================================================

class EventFormViewModel:
    """
    Create/edit form for one event.

    New events default to 10:00-12:00 on the Saturday of the chosen weekend,
    both days selected, reminder off with the preferred offset and mode.
    """

    def __init__(
        self,
        sync: SyncService,
        preferences: Optional[ReminderPreferences] = None,
        weekend_start: Optional[datetime] = None,
        event: Optional[EventSnapshot] = None,
        clock: Optional[Clock] = None,
    ):
        self.sync = sync
        self.clock = clock or _utc_now
        preferences = preferences or ReminderPreferences()
        tz = sync.user_timezone()

        self.record_id: Optional[str] = None
        self.title = ""
        self.kind = EventKind.PLAN.value
        self.location = ""
        self.description = ""
        self.selected_days: Set[WeekendDay] = {WeekendDay.SATURDAY, WeekendDay.SUNDAY}
        self.reminder_enabled = False
        self.reminder_offset_minutes = preferences.default_offset_minutes
        self.reminder_mode = preferences.default_mode
        self.error_message: Optional[str] = None
        self.is_saving = False

        anchor = localize(weekend_start or self.clock(), tz)
        self.weekend_start = start_of_weekend(anchor)
        self.start = self.weekend_start + timedelta(hours=10)
        self.end = self.weekend_start + timedelta(hours=12)

        if event is not None:
            self._load_event(event, tz)

    def _load_event(self, event: EventSnapshot, tz) -> None:
        self.record_id = event.record_id
        self.title = event.title
        self.kind = event.kind
        self.location = event.location or ""
        self.description = event.description or ""
        self.selected_days = selected_days_from_day_mask(event.day_mask)
        self.start = event.start.astimezone(tz)
        self.end = event.end.astimezone(tz)
        self.weekend_start = start_of_weekend(self.start)
        if event.reminder is not None:
            self.reminder_enabled = True
            self.reminder_offset_minutes = event.reminder.offset_minutes
            self.reminder_mode = ReminderMode(event.reminder.mode)

    @property
    def is_editing(self) -> bool:
        return self.record_id is not None

    @property
    def weekend_label(self) -> str:
        return weekend_range_label(self.weekend_start, self.clock())

    @property
    def formatted_reminder_time(self) -> str:
        return format_reminder_offset(self.reminder_offset_minutes)

    def toggle_day(self, day: WeekendDay) -> None:
        if day in self.selected_days:
            self.selected_days.discard(day)
        else:
            self.selected_days.add(day)

    def draft(self) -> EventDraft:
        day_mask = 0
        for day in self.selected_days:
            day_mask |= 1 << (int(day) - 1)
        return EventDraft(
            title=self.title.strip(),
            start=self.start,
            end=self.end,
            kind=self.kind,
            location=self.location.strip() or None,
            description=self.description.strip() or None,
            day_mask=day_mask,
            weekend_start=self.weekend_start,
        )

    def reminder_draft(self) -> Optional[ReminderDraft]:
        if not self.reminder_enabled:
            return None
        return ReminderDraft(offset_minutes=self.reminder_offset_minutes, mode=self.reminder_mode)

    def validate_input(self) -> bool:
        """Check the form; the first problem lands in error_message"""
        message = event_draft_error(self.draft())
        reminder = self.reminder_draft()
        if message is None and reminder is not None:
            message = reminder_draft_error(reminder)
        self.error_message = message
        return message is None

    async def save(self) -> Optional[EventSnapshot]:
        """Create or update the event; returns None and sets error_message on failure"""
        if not self.validate_input():
            return None

        self.is_saving = True
        try:
            if self.is_editing:
                saved = await self.sync.update_event(self.record_id, self.draft(), self.reminder_draft())
            else:
                saved = await self.sync.create_event(self.draft(), self.reminder_draft())
            self.record_id = saved.record_id
            self.error_message = None
            return saved
        except WeekendValidationError as e:
            self.error_message = str(e)
        except CloudServiceError as e:
            logger.error(f"Event saved locally but not synced: {e}")
            self.error_message = f"Saved on this device, but syncing failed: {e}"
        except WeekendServiceError as e:
            logger.error(f"Failed to save event: {e}")
            self.error_message = str(e)
        finally:
            self.is_saving = False
        return None

    async def delete(self) -> bool:
        if not self.is_editing:
            return False
        try:
            await self.sync.delete_event(self.record_id)
            return True
        except CloudServiceError as e:
            logger.error(f"Event deleted locally but not synced: {e}")
            self.error_message = f"Deleted on this device, but syncing failed: {e}"
            return True
        except WeekendServiceError as e:
            logger.error(f"Failed to delete event {self.record_id}: {e}")
            self.error_message = str(e)
            return False


# =============================================================================
# Calendar
# =============================================================================

class CalendarViewModel(_ReloadingViewModel):
    """Month view: weekends of the month with their events and status"""

    def __init__(self, sync: SyncService, clock: Optional[Clock] = None, show_past_weekends: bool = False):
        super().__init__(sync, clock)
        self.show_past_weekends = show_past_weekends
        self.current_month = first_of_month(self.now())
        self.weekends: List[datetime] = []
        self.events_by_weekend: Dict[datetime, List[EventSnapshot]] = {}
        self.status_by_weekend: Dict[datetime, WeekendStatus] = {}

    async def next_month(self) -> None:
        self.current_month = add_months(self.current_month, 1)
        await self.reload()

    async def previous_month(self) -> None:
        self.current_month = add_months(self.current_month, -1)
        await self.reload()

    async def _load(self) -> None:
        tz = self.sync.user_timezone()
        month = self.current_month
        weekends = weekends_in_month(month.year, month.month, tz)
        if not self.show_past_weekends:
            now = self.now()
            weekends = [w for w in weekends if end_of_weekend(w) >= now]

        self.weekends = weekends
        if not weekends:
            self.events_by_weekend = {}
            self.status_by_weekend = {}
            return

        overview = await self.sync.weekend_overview(
            weekends[0], end_of_weekend(weekends[-1]), refresh=True
        )
        by_start = {summary.weekend_start: summary for summary in overview}
        self.events_by_weekend = {
            w: by_start[w].events if w in by_start else [] for w in weekends
        }
        self.status_by_weekend = {
            w: by_start[w].status if w in by_start else WeekendStatus.FREE for w in weekends
        }

    def events_for(self, weekend_start: datetime) -> List[EventSnapshot]:
        return self.events_by_weekend.get(start_of_weekend(weekend_start), [])


# =============================================================================
# Dashboard
# =============================================================================

class DashboardViewModel(_ReloadingViewModel):
    """Twelve-month status overview plus the next four weekends"""

    def __init__(self, sync: SyncService, clock: Optional[Clock] = None, upcoming_count: int = 4):
        super().__init__(sync, clock)
        self.upcoming_count = upcoming_count
        self.yearly_status: Dict[datetime, WeekendStatus] = {}
        self.upcoming: List[WeekendSummary] = []

    async def _load(self) -> None:
        now = self.now()
        window_start, window_end = twelve_month_window(now)
        overview = await self.sync.weekend_overview(window_start, window_end, refresh=True)
        self.yearly_status = {summary.weekend_start: summary.status for summary in overview}

        weekends = upcoming_weekends(now, self.upcoming_count)
        upcoming = await self.sync.weekend_overview(weekends[0], end_of_weekend(weekends[-1]))
        self.upcoming = upcoming[:self.upcoming_count]


# =============================================================================
# Profile
# =============================================================================

class ProfileViewModel:
    """Profile fields, reminder preferences and notification permission"""

    def __init__(
        self,
        sync: SyncService,
        preferences_store: PreferencesStoreProtocol,
        notification_center=None,
    ):
        self.sync = sync
        self.preferences_store = preferences_store
        self.notification_center = notification_center

        self.display_name = ""
        self.email = ""
        self.timezone = sync.default_timezone
        self.avatar: Optional[bytes] = None
        self.avatar_thumb: Optional[bytes] = None
        self.default_offset_minutes = 60
        self.default_mode = ReminderMode.IN_APP
        self.notification_status = None
        self.error_message: Optional[str] = None
        self.is_saving = False

    async def load(self) -> None:
        user = self.sync.current_user.value
        if user is not None:
            self.display_name = user.display_name or ""
            self.email = user.email or ""
            self.timezone = user.timezone or self.sync.default_timezone
            self.avatar_thumb = user.avatar_thumb
        self.avatar = None

        preferences = await self.sync.pool.run(self.preferences_store.load)
        self.default_offset_minutes = preferences.default_offset_minutes
        self.default_mode = preferences.default_mode

        if self.notification_center is not None:
            self.notification_status = await self.notification_center.authorization_status()

    @property
    def formatted_default_offset(self) -> str:
        return format_reminder_offset(self.default_offset_minutes)

    async def request_notification_permission(self) -> bool:
        if self.notification_center is None:
            return False
        granted = await self.notification_center.request_authorization()
        self.notification_status = await self.notification_center.authorization_status()
        return granted

    async def save(self) -> bool:
        """Write preferences, then the profile when a cloud user is signed in"""
        if self.default_offset_minutes < 0:
            self.error_message = "Reminder offset cannot be negative"
            return False

        self.is_saving = True
        try:
            await self.sync.pool.run(self.preferences_store.save, ReminderPreferences(
                default_offset_minutes=self.default_offset_minutes,
                default_mode=self.default_mode,
            ))

            user = await self.sync.save_user_profile(UserProfileUpdate(
                display_name=self.display_name.strip() or None,
                email=self.email.strip() or None,
                timezone=self.timezone or None,
                avatar=self.avatar,
            ))
            self.avatar = None
            self.avatar_thumb = user.avatar_thumb
            self.error_message = None
            return True
        except NoCurrentUserError as e:
            self.error_message = str(e)
        except CloudServiceError as e:
            logger.error(f"Profile saved locally but not synced: {e}")
            self.error_message = f"Saved on this device, but syncing failed: {e}"
        except WeekendServiceError as e:
            logger.error(f"Failed to save profile: {e}")
            self.error_message = str(e)
        finally:
            self.is_saving = False
        return False


# =============================================================================
# Auth
# =============================================================================

class AuthViewModel:
    """Mirrors whether the cloud identity is available"""

    def __init__(self, sync: SyncService):
        self.sync = sync
        self.is_signed_in = sync.remote_available.value
        self._remove_observer = sync.remote_available.observe(self._on_availability)

    def _on_availability(self, available: bool) -> None:
        self.is_signed_in = available

    @property
    def message(self) -> Optional[str]:
        return self.sync.account_message

    async def refresh(self) -> bool:
        return await self.sync.refresh_account_status()

    def close(self) -> None:
        self._remove_observer()
