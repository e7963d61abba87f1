"""
Weekend Service - Main Application

HTTP façade over the weekend planner's view-models and sync engine.
"""

import base64
import binascii
from contextlib import asynccontextmanager
from datetime import date, datetime, time
from typing import List, Optional

from fastapi import Body, FastAPI, HTTPException, Path, Query

from core.config import AppConfig, get_settings
from core.event_bus import get_event_bus
from core.logger import setup_service_logger
from services.cloud_service.protocols import RemoteOperationError, RemoteUnavailableError
from services.reminder_service.factory import create_reminder_scheduler
from services.reminder_service.models import NotificationRequest, ReminderActionRequest

from .events import RemoteChangeEvent, WeekendEventHandlers
from .factory import create_preferences_store, create_sync_service
from .models import (
    EventCreateRequest,
    EventDraft,
    EventSnapshot,
    EventUpdateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    ReminderDraft,
    ReminderPreferences,
    ReminderSnapshot,
    RemoteChangeRequest,
    SyncResultResponse,
    SyncStatusResponse,
    UserSnapshot,
    WeekendSummary,
)
from .protocols import (
    EventNotFoundError,
    NoCurrentUserError,
    StorageError,
    StoreCorruptedError,
    WeekendValidationError,
)
from .timezones import localize
from .view_models import CalendarViewModel, DashboardViewModel, ProfileViewModel
from .weekend_calendar import (
    day_mask_from_selected_days,
    end_of_weekend,
    twelve_month_window,
)

SERVICE_NAME = "weekend_service"
SERVICE_VERSION = "1.0.0"

# Setup logger
logger = setup_service_logger(SERVICE_NAME)


# Application instance
class WeekendApplication:
    """
    Owns the process lifecycle: initialize() wires the store, remote store,
    sync engine and reminder scheduler; shutdown() releases them.

    store, remote, image_codec and notification_center may be set before
    initialize() to replace the configured implementations.
    """

    def __init__(self, settings: Optional[AppConfig] = None):
        self.settings = settings
        self.store = None
        self.remote = None
        self.image_codec = None
        self.notification_center = None

        self.event_bus = None
        self.sync = None
        self.scheduler = None
        self.preferences_store = None
        self.event_handlers = None

    async def initialize(self):
        settings = self.settings or get_settings()

        # Initialize event bus
        try:
            self.event_bus = await get_event_bus(SERVICE_NAME)
            logger.info("Event bus initialized")
        except Exception as e:
            logger.warning(f"Failed to initialize event bus: {e}. Continuing without change events.")
            self.event_bus = None

        # Create services with real dependencies using factories
        try:
            self.sync = create_sync_service(
                settings,
                event_bus=self.event_bus,
                store=self.store,
                remote=self.remote,
                image_codec=self.image_codec,
            )
        except StoreCorruptedError as e:
            logger.critical(f"Local store unusable, aborting startup: {e}")
            raise

        self.preferences_store = create_preferences_store(settings.reminders)
        self.scheduler = create_reminder_scheduler(
            settings.reminders,
            event_bus=self.event_bus,
            event_lookup=self.sync.find_event,
            notification_center=self.notification_center,
        )
        self.notification_center = self.scheduler.center
        await self.scheduler.start()

        # Subscribe to events
        if self.event_bus:
            self.event_handlers = WeekendEventHandlers(self.sync)
            handler_map = self.event_handlers.get_event_handler_map()
            for event_type, handler_func in handler_map.items():
                await self.event_bus.subscribe_to_events(pattern=event_type, handler=handler_func)
                logger.info(f"Subscribed to {event_type} events")

        user = await self.sync.start()
        logger.info(
            f"Weekend service initialized "
            f"(cloud {'available' if self.sync.remote_available.value else 'unavailable'}, "
            f"user {user.record_id if user else 'none'})"
        )

    async def shutdown(self):
        if self.scheduler:
            await self.scheduler.stop()
        if self.notification_center is not None and hasattr(self.notification_center, "close"):
            await self.notification_center.close()

        if self.sync:
            await self.sync.shutdown()
            if self.sync.remote is not None:
                try:
                    await self.sync.remote.close()
                except Exception as e:
                    logger.error(f"Error closing remote store: {e}")
            if hasattr(self.sync.store, "close"):
                self.sync.store.close()

        if self.event_bus:
            try:
                await self.event_bus.close()
                logger.info("Weekend event bus closed")
            except Exception as e:
                logger.error(f"Error closing event bus: {e}")
        logger.info("Weekend service shutting down")


# Global instance
application = WeekendApplication()


# Lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    await application.initialize()
    yield
    await application.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Weekend Service",
    description="Weekend planner - events, weekend overview, reminders and cloud sync",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


def _http_error(e: Exception, action: str) -> HTTPException:
    """Map a domain error onto an HTTP error"""
    if isinstance(e, (WeekendValidationError, ValueError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, EventNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, NoCurrentUserError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, RemoteUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, RemoteOperationError):
        logger.error(f"Remote error {action}: {e}")
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, StorageError):
        logger.error(f"Storage error {action}: {e}")
        return HTTPException(status_code=500, detail=str(e))
    logger.error(f"Error {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Internal server error")


def _draft_from_request(request: EventCreateRequest) -> EventDraft:
    return EventDraft(
        title=request.title,
        start=request.start,
        end=request.end,
        kind=request.kind,
        location=request.location,
        description=request.description,
        day_mask=day_mask_from_selected_days(request.days),
        weekend_start=request.weekend_start,
    )


def _profile_response(user: UserSnapshot) -> ProfileResponse:
    thumb = base64.b64encode(user.avatar_thumb).decode("ascii") if user.avatar_thumb else None
    return ProfileResponse(
        record_id=user.record_id,
        email=user.email,
        display_name=user.display_name,
        timezone=user.timezone,
        has_avatar=user.has_avatar,
        avatar_thumb_base64=thumb,
        sync_state=user.sync_state,
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/v1/weekend/health")
@app.get("/health")
async def health_check():
    """Health check"""
    sync = application.sync
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "remote_available": bool(sync and sync.remote_available.value),
    }


# =============================================================================
# Weekend Overview Endpoints
# =============================================================================


@app.get("/api/v1/weekend/overview", response_model=List[WeekendSummary])
async def get_overview(
    start: Optional[datetime] = Query(None, description="Range start (defaults to the first of this month)"),
    end: Optional[datetime] = Query(None, description="Range end (defaults to twelve months after start)"),
):
    """Weekend statuses over a range; the twelve-month window by default"""
    try:
        sync = application.sync
        window_start, window_end = twelve_month_window(
            localize(start, sync.user_timezone()) if start else datetime.now(sync.user_timezone())
        )
        return await sync.weekend_overview(start or window_start, end or window_end, refresh=True)

    except Exception as e:
        raise _http_error(e, "getting overview")


@app.get("/api/v1/weekend/upcoming", response_model=List[WeekendSummary])
async def get_upcoming(count: int = Query(4, ge=1, le=52, description="Number of weekends")):
    """The next weekends with their events"""
    dashboard = DashboardViewModel(application.sync, upcoming_count=count)
    await dashboard.reload()
    if dashboard.error_message:
        raise HTTPException(status_code=502, detail=dashboard.error_message)
    return dashboard.upcoming


@app.get("/api/v1/weekend/months/{year}/{month}", response_model=List[WeekendSummary])
async def get_month(
    year: int = Path(..., ge=1970, le=9999),
    month: int = Path(..., ge=1, le=12),
    show_past: bool = Query(False, description="Include weekends that are over"),
):
    """Weekends of a month with their events and status"""
    calendar = CalendarViewModel(application.sync, show_past_weekends=show_past)
    calendar.current_month = calendar.current_month.replace(year=year, month=month)
    await calendar.reload()
    if calendar.error_message:
        raise HTTPException(status_code=502, detail=calendar.error_message)

    return [
        WeekendSummary(
            weekend_start=weekend,
            weekend_end=end_of_weekend(weekend),
            status=calendar.status_by_weekend[weekend],
            event_count=len(calendar.events_by_weekend[weekend]),
            events=calendar.events_by_weekend[weekend],
        )
        for weekend in calendar.weekends
    ]


@app.get("/api/v1/weekend/weekends/{saturday}/events", response_model=List[EventSnapshot])
async def get_weekend_events(saturday: date = Path(..., description="Any date within the weekend")):
    """Events of one weekend"""
    try:
        sync = application.sync
        anchor = datetime.combine(saturday, time(12), tzinfo=sync.user_timezone())
        return await sync.events_for_weekend(anchor)

    except Exception as e:
        raise _http_error(e, "getting weekend events")


# =============================================================================
# Event Endpoints
# =============================================================================


@app.post("/api/v1/weekend/events", response_model=EventSnapshot, status_code=201)
async def create_event(request: EventCreateRequest = Body(...)):
    """Create an event, optionally with a reminder"""
    try:
        return await application.sync.create_event(_draft_from_request(request), request.reminder)

    except Exception as e:
        raise _http_error(e, "creating event")


@app.get("/api/v1/weekend/events/{record_id}", response_model=EventSnapshot)
async def get_event(record_id: str = Path(..., description="Event record id")):
    try:
        return await application.sync.get_event(record_id)

    except Exception as e:
        raise _http_error(e, "getting event")


@app.get("/api/v1/weekend/events", response_model=List[EventSnapshot])
async def list_events(
    start: datetime = Query(..., description="Range start (ISO format)"),
    end: datetime = Query(..., description="Range end (ISO format)"),
):
    """Events overlapping a range"""
    try:
        if start > end:
            raise ValueError("start must not be after end")
        return await application.sync.fetch_events_overlapping(start, end)

    except Exception as e:
        raise _http_error(e, "listing events")


@app.put("/api/v1/weekend/events/{record_id}", response_model=EventSnapshot)
async def update_event(
    record_id: str = Path(..., description="Event record id"),
    request: EventUpdateRequest = Body(...),
):
    """Replace an event's fields; omitting the reminder removes it"""
    try:
        return await application.sync.update_event(record_id, _draft_from_request(request), request.reminder)

    except Exception as e:
        raise _http_error(e, "updating event")


@app.delete("/api/v1/weekend/events/{record_id}", status_code=204)
async def delete_event(record_id: str = Path(..., description="Event record id")):
    try:
        await application.sync.delete_event(record_id)
        return None

    except Exception as e:
        raise _http_error(e, "deleting event")


@app.put("/api/v1/weekend/events/{record_id}/reminder", response_model=ReminderSnapshot)
async def put_reminder(
    record_id: str = Path(..., description="Event record id"),
    reminder: ReminderDraft = Body(...),
):
    try:
        return await application.sync.create_or_update_reminder(record_id, reminder)

    except Exception as e:
        raise _http_error(e, "saving reminder")


@app.delete("/api/v1/weekend/events/{record_id}/reminder", status_code=204)
async def delete_reminder(record_id: str = Path(..., description="Event record id")):
    try:
        await application.sync.get_event(record_id)
        await application.sync.delete_reminder(record_id)
        return None

    except Exception as e:
        raise _http_error(e, "removing reminder")


# =============================================================================
# Profile and Preferences Endpoints
# =============================================================================


@app.get("/api/v1/weekend/profile", response_model=ProfileResponse)
async def get_profile():
    user = application.sync.current_user.value
    if user is None:
        raise HTTPException(status_code=404, detail="No signed-in user")
    return _profile_response(user)


@app.put("/api/v1/weekend/profile", response_model=ProfileResponse)
async def update_profile(request: ProfileUpdateRequest = Body(...)):
    """Save profile fields; avatar_base64 replaces the avatar"""
    profile = ProfileViewModel(application.sync, application.preferences_store, application.notification_center)
    try:
        await profile.load()
        if "display_name" in request.model_fields_set:
            profile.display_name = request.display_name or ""
        if "email" in request.model_fields_set:
            profile.email = request.email or ""
        if request.timezone:
            profile.timezone = request.timezone
        if request.avatar_base64:
            try:
                profile.avatar = base64.b64decode(request.avatar_base64, validate=True)
            except binascii.Error as e:
                raise HTTPException(status_code=400, detail=f"Invalid avatar data: {e}")

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e, "loading profile")

    if not await profile.save():
        status_code = 409 if application.sync.current_user.value is None else 400
        raise HTTPException(status_code=status_code, detail=profile.error_message)
    return _profile_response(application.sync.current_user.value)


@app.get("/api/v1/weekend/preferences", response_model=ReminderPreferences)
async def get_preferences():
    try:
        return await application.sync.pool.run(application.preferences_store.load)

    except Exception as e:
        raise _http_error(e, "loading preferences")


@app.put("/api/v1/weekend/preferences", response_model=ReminderPreferences)
async def update_preferences(preferences: ReminderPreferences = Body(...)):
    try:
        if preferences.default_offset_minutes < 0:
            raise WeekendValidationError("Reminder offset cannot be negative")
        await application.sync.pool.run(application.preferences_store.save, preferences)
        return preferences

    except Exception as e:
        raise _http_error(e, "saving preferences")


# =============================================================================
# Reminder Endpoints
# =============================================================================


@app.get("/api/v1/weekend/reminders/pending", response_model=List[NotificationRequest])
async def list_pending_reminders():
    return await application.notification_center.pending_requests()


@app.post("/api/v1/weekend/reminders/{identifier}/actions")
async def reminder_action(
    identifier: str = Path(..., description="Delivered notification identifier"),
    request: ReminderActionRequest = Body(...),
):
    """Run the action chosen on a delivered reminder"""
    delivered = application.notification_center.get_delivered(identifier)
    if delivered is None:
        raise HTTPException(status_code=404, detail=f"No delivered reminder {identifier}")

    try:
        snooze_id = await application.scheduler.handle_action(request.action, delivered)
        return {"action": request.action.value, "snooze_identifier": snooze_id}

    except Exception as e:
        raise _http_error(e, "handling reminder action")


# =============================================================================
# Sync Endpoints
# =============================================================================


@app.get("/api/v1/weekend/sync/status", response_model=SyncStatusResponse)
async def sync_status():
    try:
        sync = application.sync
        pending = await sync.pool.run(sync.store.pending_changes)
        user = sync.current_user.value
        return SyncStatusResponse(
            remote_available=sync.remote_available.value,
            message=sync.account_message,
            pending_events=len(pending.events),
            pending_reminders=len(pending.reminders),
            pending_deletions=len(pending.deletions),
            signed_in_user=user.record_id if user else None,
        )

    except Exception as e:
        raise _http_error(e, "getting sync status")


@app.post("/api/v1/weekend/sync/push", response_model=SyncResultResponse)
async def sync_push():
    """Push every local change not yet confirmed remotely"""
    try:
        sync = application.sync
        await sync.refresh_account_status()
        pushed = await sync.push_pending()
        return SyncResultResponse(remote_available=sync.remote_available.value, pushed=pushed)

    except Exception as e:
        raise _http_error(e, "pushing changes")


@app.post("/api/v1/weekend/sync/remote-change", response_model=SyncResultResponse, status_code=202)
async def remote_change(request: RemoteChangeRequest = Body(...)):
    """Webhook for the remote store's change signal"""
    sync = application.sync
    if application.event_bus:
        await application.event_bus.publish_event(RemoteChangeEvent(record_names=request.record_names))
        return SyncResultResponse(remote_available=sync.remote_available.value, message="accepted")

    try:
        pulled = await sync.handle_remote_change(request.record_names)
        return SyncResultResponse(remote_available=sync.remote_available.value, pulled=pulled)

    except Exception as e:
        raise _http_error(e, "handling remote change")


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.service_host, port=settings.service_port, log_level="info")
