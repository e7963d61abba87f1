"""
Component Tests: Weekend View-Models

Form, calendar, dashboard, profile and auth view-models over a SyncService
wired to mocks.

Usage:
    pytest tests/component/tdd/weekend_service/test_view_models.py -v
"""
from datetime import datetime, timedelta, timezone

import pytest

from services.cloud_service.protocols import RemoteOperationError
from services.reminder_service.models import AuthorizationStatus
from services.weekend_service.events.models import DataChangedEvent
from services.weekend_service.models import (
    ChangeKind,
    EntityKind,
    ReminderMode,
    ReminderPreferences,
    WeekendDay,
    WeekendStatus,
)
from services.weekend_service.preferences import PreferencesStore
from services.weekend_service.view_models import (
    AuthViewModel,
    CalendarViewModel,
    DashboardViewModel,
    EventFormViewModel,
    ProfileViewModel,
)
from tests.component.mocks import MockNotificationCenter
from tests.contracts.weekend import KNOWN_SATURDAY, WeekendTestDataFactory

pytestmark = [pytest.mark.component, pytest.mark.tdd]

# Wednesday before the known weekend
NOW = datetime(2024, 5, 29, 12, tzinfo=timezone.utc)


def clock():
    return NOW


@pytest.fixture
def preferences_store(tmp_path):
    return PreferencesStore(path=str(tmp_path / "prefs.json"))


# =============================================================================
# Event form
# =============================================================================

class TestEventForm:

    def test_new_event_defaults(self, offline_sync):
        """New events default to Saturday 10-12, both days, reminder off"""
        preferences = ReminderPreferences(default_offset_minutes=30, default_mode=ReminderMode.PUSH)
        form = EventFormViewModel(offline_sync, preferences, weekend_start=KNOWN_SATURDAY, clock=clock)

        assert form.start == KNOWN_SATURDAY + timedelta(hours=10)
        assert form.end == KNOWN_SATURDAY + timedelta(hours=12)
        assert form.selected_days == {WeekendDay.SATURDAY, WeekendDay.SUNDAY}
        assert form.reminder_enabled is False
        assert form.reminder_draft() is None
        assert form.reminder_mode == ReminderMode.PUSH
        assert form.formatted_reminder_time == "30 minutes before"
        assert form.weekend_label == "Jun 1 - 2"
        assert not form.is_editing

    def test_weekend_defaults_to_next(self, offline_sync):
        """Without a weekend the coming one is used"""
        form = EventFormViewModel(offline_sync, clock=clock)
        assert form.weekend_start == KNOWN_SATURDAY

    def test_validation_messages(self, offline_sync):
        """The first problem is reported"""
        form = EventFormViewModel(offline_sync, weekend_start=KNOWN_SATURDAY, clock=clock)

        assert form.validate_input() is False
        assert form.error_message == "Title cannot be empty"

        form.title = "Hiking"
        form.toggle_day(WeekendDay.SATURDAY)
        form.toggle_day(WeekendDay.SUNDAY)
        assert form.validate_input() is False
        assert form.error_message == "Please select at least one day"

        form.toggle_day(WeekendDay.SUNDAY)
        assert form.validate_input() is True
        assert form.error_message is None

    def test_negative_offset_rejected(self, offline_sync):
        """A negative reminder offset is a validation error"""
        form = EventFormViewModel(offline_sync, weekend_start=KNOWN_SATURDAY, clock=clock)
        form.title = "Hiking"
        form.reminder_enabled = True
        form.reminder_offset_minutes = -10

        assert form.validate_input() is False
        assert "negative" in form.error_message

    @pytest.mark.asyncio
    async def test_create_saturday_plan(self, started_sync):
        """Hiking on Saturday only is stored with day mask 1 and plans the weekend"""
        form = EventFormViewModel(started_sync, weekend_start=KNOWN_SATURDAY, clock=clock)
        form.title = "Hiking"
        form.toggle_day(WeekendDay.SUNDAY)

        saved = await form.save()

        assert saved.title == "Hiking"
        assert saved.day_mask == 1
        assert form.is_editing
        overview = await started_sync.weekend_overview(KNOWN_SATURDAY, KNOWN_SATURDAY + timedelta(days=2))
        assert overview[0].status == WeekendStatus.PLAN

    @pytest.mark.asyncio
    async def test_trip_flips_weekend_to_travel(self, started_sync):
        """Adding a trip to a planned weekend makes it a travel weekend"""
        plan = EventFormViewModel(started_sync, weekend_start=KNOWN_SATURDAY, clock=clock)
        plan.title = "Brunch"
        await plan.save()

        trip = EventFormViewModel(started_sync, weekend_start=KNOWN_SATURDAY, clock=clock)
        trip.title = "Porto"
        trip.kind = "travel"
        trip.start = KNOWN_SATURDAY + timedelta(hours=7)
        trip.end = KNOWN_SATURDAY + timedelta(days=1, hours=20)
        await trip.save()

        overview = await started_sync.weekend_overview(KNOWN_SATURDAY, KNOWN_SATURDAY + timedelta(days=2))
        assert overview[0].status == WeekendStatus.TRAVEL

    @pytest.mark.asyncio
    async def test_edit_existing_event(self, started_sync):
        """An existing event loads into the form and saves as an update"""
        event = await started_sync.create_event(
            WeekendTestDataFactory.make_event_draft(saturday=KNOWN_SATURDAY, day_mask=2),
            WeekendTestDataFactory.make_reminder_draft(offset_minutes=120),
        )

        form = EventFormViewModel(started_sync, event=event, clock=clock)

        assert form.is_editing
        assert form.selected_days == {WeekendDay.SUNDAY}
        assert form.reminder_enabled
        assert form.reminder_mode == ReminderMode.PUSH
        assert form.formatted_reminder_time == "2 hours before"

        form.title = "Renamed"
        form.reminder_enabled = False
        saved = await form.save()

        assert saved.record_id == event.record_id
        assert saved.title == "Renamed"
        assert saved.reminder is None

    @pytest.mark.asyncio
    async def test_sync_failure_keeps_local_save(self, started_sync, remote_store):
        """A failed push is reported; the event stays on the device"""
        remote_store.set_error(RemoteOperationError("rejected"), "save_records")
        form = EventFormViewModel(started_sync, weekend_start=KNOWN_SATURDAY, clock=clock)
        form.title = "Offline plan"

        assert await form.save() is None
        assert form.error_message.startswith("Saved on this device, but syncing failed")
        assert form.is_saving is False

        events = await started_sync.fetch_events_overlapping(KNOWN_SATURDAY, KNOWN_SATURDAY + timedelta(days=2))
        assert [e.title for e in events] == ["Offline plan"]

    @pytest.mark.asyncio
    async def test_delete(self, started_sync):
        """Deleting from the form removes the event"""
        event = await started_sync.create_event(WeekendTestDataFactory.make_event_draft(saturday=KNOWN_SATURDAY))
        form = EventFormViewModel(started_sync, event=event, clock=clock)

        assert await form.delete() is True
        assert await started_sync.find_event(event.record_id) is None

    @pytest.mark.asyncio
    async def test_delete_unsaved_form(self, offline_sync):
        """Nothing to delete on a new form"""
        form = EventFormViewModel(offline_sync, clock=clock)
        assert await form.delete() is False


# =============================================================================
# Calendar
# =============================================================================

class TestCalendar:

    @pytest.mark.asyncio
    async def test_month_weekends_with_events(self, started_sync):
        """Every weekend of the month is listed with its events and status"""
        event = await started_sync.create_event(WeekendTestDataFactory.make_event_draft(saturday=KNOWN_SATURDAY))
        calendar = CalendarViewModel(
            started_sync, clock=lambda: datetime(2024, 6, 5, tzinfo=timezone.utc), show_past_weekends=True
        )

        await calendar.start()

        assert len(calendar.weekends) == 5
        assert [e.record_id for e in calendar.events_for(KNOWN_SATURDAY)] == [event.record_id]
        assert calendar.status_by_weekend[KNOWN_SATURDAY] == WeekendStatus.PLAN
        assert calendar.status_by_weekend[KNOWN_SATURDAY + timedelta(days=7)] == WeekendStatus.FREE
        assert calendar.error_message is None

    @pytest.mark.asyncio
    async def test_past_weekends_hidden(self, started_sync):
        """Weekends that are over are hidden by default"""
        calendar = CalendarViewModel(started_sync, clock=lambda: datetime(2024, 6, 5, tzinfo=timezone.utc))

        await calendar.reload()

        assert calendar.weekends[0] == KNOWN_SATURDAY + timedelta(days=7)
        assert len(calendar.weekends) == 4

    @pytest.mark.asyncio
    async def test_month_navigation(self, started_sync):
        """Months move forward and back across years"""
        calendar = CalendarViewModel(
            started_sync, clock=lambda: datetime(2024, 12, 10, tzinfo=timezone.utc), show_past_weekends=True
        )

        await calendar.next_month()
        assert (calendar.current_month.year, calendar.current_month.month) == (2025, 1)

        await calendar.previous_month()
        await calendar.previous_month()
        assert (calendar.current_month.year, calendar.current_month.month) == (2024, 11)
        assert len(calendar.weekends) == 5

    @pytest.mark.asyncio
    async def test_reloads_on_data_change(self, started_sync, mock_event_bus):
        """A DataChangedEvent triggers a reload"""
        calendar = CalendarViewModel(
            started_sync, clock=lambda: datetime(2024, 6, 5, tzinfo=timezone.utc), show_past_weekends=True
        )
        await calendar.start()
        assert calendar.events_for(KNOWN_SATURDAY) == []

        event = await started_sync.create_event(WeekendTestDataFactory.make_event_draft(saturday=KNOWN_SATURDAY))
        await mock_event_bus.simulate_event(DataChangedEvent(
            entity_kind=EntityKind.EVENT, entity_id=event.record_id, change=ChangeKind.CREATED
        ))

        assert [e.record_id for e in calendar.events_for(KNOWN_SATURDAY)] == [event.record_id]

        await calendar.stop()
        assert mock_event_bus.subscriptions == {}

    @pytest.mark.asyncio
    async def test_store_failure_sets_error(self, started_sync, local_store):
        """Load failures land in error_message"""
        calendar = CalendarViewModel(
            started_sync, clock=lambda: datetime(2024, 6, 5, tzinfo=timezone.utc), show_past_weekends=True
        )
        local_store.close()

        await calendar.reload()

        assert "not open" in calendar.error_message
        assert calendar.is_loading is False


# =============================================================================
# Dashboard
# =============================================================================

class TestDashboard:

    @pytest.mark.asyncio
    async def test_year_and_upcoming(self, started_sync):
        """Twelve months of statuses and the next four weekends"""
        await started_sync.create_event(WeekendTestDataFactory.make_travel_draft(saturday=KNOWN_SATURDAY))
        dashboard = DashboardViewModel(started_sync, clock=clock)

        await dashboard.reload()

        assert min(dashboard.yearly_status) == datetime(2024, 5, 4, tzinfo=timezone.utc)
        assert dashboard.yearly_status[KNOWN_SATURDAY] == WeekendStatus.TRAVEL
        assert [s.weekend_start for s in dashboard.upcoming] == [
            KNOWN_SATURDAY + timedelta(days=7 * i) for i in range(4)
        ]
        assert dashboard.upcoming[0].status == WeekendStatus.TRAVEL
        assert dashboard.upcoming[1].status == WeekendStatus.FREE


# =============================================================================
# Profile
# =============================================================================

class TestProfile:

    @pytest.mark.asyncio
    async def test_load_and_save(self, started_sync, preferences_store):
        """Preferences persist and the profile is saved with its avatar"""
        center = MockNotificationCenter(status=AuthorizationStatus.NOT_DETERMINED)
        profile = ProfileViewModel(started_sync, preferences_store, center)
        await profile.load()

        assert profile.default_offset_minutes == 60
        assert profile.notification_status == AuthorizationStatus.NOT_DETERMINED

        profile.display_name = "Sam"
        profile.default_offset_minutes = 30
        profile.default_mode = ReminderMode.PUSH
        profile.avatar = b"img"

        assert await profile.save() is True
        assert profile.avatar is None
        assert profile.avatar_thumb == b"100x100@0.7:img"
        assert started_sync.current_user.value.display_name == "Sam"
        assert preferences_store.load().default_mode == ReminderMode.PUSH
        assert profile.formatted_default_offset == "30 minutes before"

    @pytest.mark.asyncio
    async def test_negative_default_offset(self, started_sync, preferences_store):
        """A negative default offset is rejected before anything is saved"""
        profile = ProfileViewModel(started_sync, preferences_store)
        profile.default_offset_minutes = -1

        assert await profile.save() is False
        assert "negative" in profile.error_message

    @pytest.mark.asyncio
    async def test_save_without_user(self, offline_sync, preferences_store):
        """Preferences are saved even when there is no user to save the profile to"""
        profile = ProfileViewModel(offline_sync, preferences_store)
        await profile.load()
        profile.default_offset_minutes = 15

        assert await profile.save() is False
        assert "Sign in" in profile.error_message
        assert preferences_store.load().default_offset_minutes == 15

    @pytest.mark.asyncio
    async def test_request_permission(self, offline_sync, preferences_store):
        """Permission requests update the status"""
        center = MockNotificationCenter(status=AuthorizationStatus.NOT_DETERMINED, grant=False)
        profile = ProfileViewModel(offline_sync, preferences_store, center)

        assert await profile.request_notification_permission() is False
        assert profile.notification_status == AuthorizationStatus.DENIED


# =============================================================================
# Auth
# =============================================================================

class TestAuth:

    @pytest.mark.asyncio
    async def test_mirrors_remote_availability(self, sync_service):
        """is_signed_in follows remote availability until closed"""
        auth = AuthViewModel(sync_service)
        assert auth.is_signed_in is False

        assert await auth.refresh() is True
        assert auth.is_signed_in is True
        assert auth.message == "Cloud account available"

        auth.close()
        sync_service.remote_available.set(False)
        assert auth.is_signed_in is True
