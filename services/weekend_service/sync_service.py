"""
Weekend Sync Service - Business Logic

Offline-first synchronization between the local store and the remote
record store.

- Every mutation commits locally first, publishes a DataChangedEvent, then
  pushes the changed records with the changed-keys save policy.
- Reads return local data immediately; a background pull merges remote
  records, publishes each merged or removed event and reminder, then a
  reload. Records already matching the local synced copy are skipped.
- Pull merges are remote-wins, except that a pending local edit newer than
  the remote modification is kept.

Uses dependency injection for testability.
- Store, remote store and event bus are injected
- Store calls run on the worker pool
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from core.executors import WorkerPool
from core.observable import ObservableValue
from services.cloud_service.assets import AssetStager
from services.cloud_service.models import (
    AccountStatus,
    QueryFilter,
    RecordType,
    RemoteRecord,
    SavePolicy,
)
from services.cloud_service.protocols import (
    CloudServiceError,
    RecordDecodeError,
    RemoteOperationError,
    RemoteRecordStoreProtocol,
    RemoteUnavailableError,
)
from services.cloud_service.records import (
    EventRecord,
    ReminderConfigRecord,
    TypedRecord,
    UserProfileRecord,
    WeekendRecord,
    decode_record,
)

from .events.models import DataChangedEvent, SyncStatusChangedEvent
from .models import (
    ChangeKind,
    EntityKind,
    EventDraft,
    EventSnapshot,
    ReminderDraft,
    ReminderSnapshot,
    SyncState,
    UserProfileUpdate,
    UserSnapshot,
    WeekendStatus,
    WeekendSummary,
)
from .protocols import (
    EventNotFoundError,
    ImageCodecProtocol,
    LocalStoreProtocol,
    NoCurrentUserError,
    WeekendValidationError,
)
from .timezones import localize, resolve_timezone
from .validation import reminder_draft_error, validate_event_draft
from .weekend_calendar import (
    end_of_weekend,
    enumerate_weekends,
    start_of_weekend,
    weekend_status,
)

logger = logging.getLogger(__name__)

AVATAR_FULL_SIZE = (1024, 1024, 0.8)
AVATAR_THUMB_SIZE = (100, 100, 0.7)

# Merge order for mixed fetches: owners before events before reminders
MERGE_ORDER = {
    RecordType.USER_PROFILE.value: 0,
    RecordType.EVENT.value: 1,
    RecordType.REMINDER_CONFIG.value: 2,
    RecordType.WEEKEND.value: 3,
}


class SyncService:
    """
    Owns every mutation of local entities and every remote operation.

    remote_available and current_user are observable; view-models watch
    them and the DataChangedEvent stream.
    """

    def __init__(
        self,
        store: LocalStoreProtocol,
        remote: Optional[RemoteRecordStoreProtocol] = None,
        event_bus=None,
        worker_pool: Optional[WorkerPool] = None,
        worker_threads: int = 2,
        image_codec: Optional[ImageCodecProtocol] = None,
        asset_staging_dir: Optional[str] = None,
        default_timezone: str = "UTC",
    ):
        """
        Initialize service with injected dependencies.

        Args:
            store: Local store (blocking; run on the worker pool)
            remote: Remote record store, None for local-only operation
            event_bus: Event bus for DataChangedEvent notifications
            worker_pool: Pool for store calls; when not given the service
                creates one and shuts it down itself
            worker_threads: Size of the pool the service creates
            image_codec: Resizes profile images before upload
            asset_staging_dir: Where blobs are staged for upload
            default_timezone: Timezone used when the user has none
        """
        self.store = store
        self.remote = remote
        self.event_bus = event_bus
        self.pool = worker_pool or WorkerPool(max_workers=worker_threads)
        self._owns_pool = worker_pool is None
        self.image_codec = image_codec
        self.asset_staging_dir = asset_staging_dir
        self.default_timezone = default_timezone

        self.remote_available: ObservableValue[bool] = ObservableValue(False, "remote_available")
        self.current_user: ObservableValue[Optional[UserSnapshot]] = ObservableValue(None, "current_user")
        self.account_message: Optional[str] = None
        self._background_tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # Plumbing
    # =========================================================================

    async def _run(self, func: Callable, *args, **kwargs) -> Any:
        return await self.pool.run(func, *args, **kwargs)

    async def _publish(
        self,
        entity_kind: EntityKind,
        entity_id: Optional[str],
        change: ChangeKind,
        related_id: Optional[str] = None,
    ) -> None:
        if not self.event_bus:
            return
        try:
            await self.event_bus.publish_event(DataChangedEvent(
                entity_kind=entity_kind,
                entity_id=entity_id,
                change=change,
                related_id=related_id,
            ))
        except Exception as e:
            logger.error(f"Failed to publish {entity_kind.value} {change.value} event: {e}")

    async def _set_available(self, available: bool, message: Optional[str] = None) -> None:
        self.account_message = message
        if self.remote_available.set(available):
            logger.info(f"Cloud sync {'available' if available else 'unavailable'}: {message}")
            if self.event_bus:
                try:
                    await self.event_bus.publish_event(SyncStatusChangedEvent(
                        remote_available=available, message=message
                    ))
                except Exception as e:
                    logger.error(f"Failed to publish sync status event: {e}")

    def _remote_ready(self) -> bool:
        return self.remote is not None and self.remote_available.value

    def _require_remote(self) -> None:
        if not self._remote_ready():
            raise RemoteUnavailableError(self.account_message or "Cloud sync is not available")

    async def _remote_call(self, description: str, call: Callable[..., Awaitable], *args, **kwargs):
        """Run a remote call, mapping failures onto the cloud error kinds"""
        try:
            return await call(*args, **kwargs)
        except RemoteUnavailableError as e:
            logger.warning(f"Remote unavailable during {description}: {e}")
            await self._set_available(False, str(e))
            raise
        except RemoteOperationError:
            raise
        except CloudServiceError as e:
            raise RemoteOperationError(f"{description} failed: {e}") from e

    def _spawn(self, coro: Awaitable, description: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        logger.debug(f"Started background {description}")
        self._background_tasks.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Background sync failed: {error}")

    async def wait_for_background(self) -> None:
        """Wait for every background pull launched so far"""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def user_timezone(self):
        user = self.current_user.value
        return resolve_timezone(user.timezone if user else None, self.default_timezone)

    # =========================================================================
    # Account lifecycle
    # =========================================================================

    async def refresh_account_status(self) -> bool:
        """Check the cloud identity and update remote_available"""
        if self.remote is None:
            await self._set_available(False, "Cloud sync is not configured")
            return False

        try:
            status = await self.remote.account_status()
        except CloudServiceError as e:
            logger.warning(f"Could not check cloud account status: {e}")
            await self._set_available(False, AccountStatus.COULD_NOT_DETERMINE.message)
            return False

        available = status == AccountStatus.AVAILABLE
        await self._set_available(available, status.message)
        return available

    async def start(self) -> Optional[UserSnapshot]:
        """
        Identity check on startup.

        With a cloud identity the matching local user is created or loaded
        and its profile pulled; otherwise any existing local user is used.
        """
        if await self.refresh_account_status():
            try:
                record_name = await self._remote_call(
                    "fetch user record", self.remote.fetch_user_record_name
                )
            except CloudServiceError as e:
                logger.error(f"Could not fetch cloud user record: {e}")
            else:
                user = await self._run(
                    self.store.get_or_create_user, record_name, self.default_timezone
                )
                self.current_user.set(user)
                try:
                    await self.pull_user()
                except CloudServiceError as e:
                    logger.warning(f"Could not pull user profile: {e}")
                await self._publish(EntityKind.USER, user.record_id, ChangeKind.REFRESHED)
                return self.current_user.value

        user = await self._run(self.store.fetch_user)
        self.current_user.set(user)
        return user

    async def shutdown(self) -> None:
        await self.wait_for_background()
        if self._owns_pool:
            self.pool.shutdown()
        logger.info("Sync service shut down")

    # =========================================================================
    # Record encoding
    # =========================================================================

    @staticmethod
    def _event_record(event: EventSnapshot) -> EventRecord:
        return EventRecord(
            record_name=event.record_id,
            title=event.title,
            start_date=event.start,
            end_date=event.end,
            event_type=event.kind,
            location=event.location,
            event_description=event.description,
            day_mask=event.day_mask,
            user_ref=event.owner_record_id,
            modified_at=event.modified_at,
        )

    @staticmethod
    def _reminder_record(reminder: ReminderSnapshot) -> ReminderConfigRecord:
        return ReminderConfigRecord(
            record_name=reminder.record_id,
            offset_minutes=reminder.offset_minutes,
            mode=reminder.mode,
            event_ref=reminder.event_record_id,
            modified_at=reminder.modified_at,
        )

    @staticmethod
    def _user_record(user: UserSnapshot) -> UserProfileRecord:
        return UserProfileRecord(
            record_name=user.record_id,
            email=user.email,
            display_name=user.display_name,
            timezone=user.timezone,
            avatar_full=user.avatar_full,
            avatar_thumb=user.avatar_thumb,
            modified_at=user.modified_at,
        )

    def _records_for_event(self, event: EventSnapshot) -> List[RemoteRecord]:
        records = [self._event_record(event).to_record()]
        if event.reminder is not None:
            records.append(self._reminder_record(event.reminder).to_record())
        return records

    # =========================================================================
    # Push path
    # =========================================================================

    async def _push(self, records: List[RemoteRecord], description: str) -> bool:
        """
        Save records remotely with the changed-keys policy.

        Returns:
            True if saved, False if the remote is unavailable (records stay
            pending for a later push_pending)

        Raises:
            RemoteOperationError: The remote store rejected the save
        """
        if not records or not self._remote_ready():
            return False

        names = [r.record_name for r in records]
        await self._run(self.store.mark_sync_state, names, SyncState.PENDING)

        try:
            saved = await self._remote_call(
                f"push {description}",
                self.remote.save_records,
                records,
                save_policy=SavePolicy.CHANGED_KEYS,
            )
        except RemoteUnavailableError:
            return False
        except RemoteOperationError as e:
            logger.error(f"Failed to push {description}: {e}")
            raise

        saved_by_name = {r.record_name: r for r in saved or []}
        for name in names:
            stored = saved_by_name.get(name)
            await self._run(
                self.store.mark_sync_state,
                [name],
                SyncState.SYNCED,
                stored.modified_at if stored else None,
            )
        logger.debug(f"Pushed {description} ({len(names)} record(s))")
        return True

    async def _push_deletions(self) -> int:
        if not self._remote_ready():
            return 0

        pending = await self._run(self.store.pending_changes)
        names = [d.record_id for d in pending.deletions]
        if not names:
            return 0

        try:
            await self._remote_call("delete records", self.remote.delete_records, names)
        except RemoteUnavailableError:
            return 0

        await self._run(self.store.clear_deletions, names)
        logger.debug(f"Pushed {len(names)} deletion(s)")
        return len(names)

    async def _push_event(self, event: EventSnapshot) -> EventSnapshot:
        await self._push(self._records_for_event(event), f"event '{event.title}'")
        refreshed = await self._run(self.store.get_event, event.record_id)
        return refreshed or event

    async def push_pending(self) -> int:
        """
        Push every local change not yet confirmed remotely.

        Returns:
            Number of records saved or deleted
        """
        self._require_remote()
        pending = await self._run(self.store.pending_changes)

        count = 0
        with AssetStager(self.asset_staging_dir) as stager:
            records = [self._user_record(u).to_record(stager) for u in pending.users]
            records += [self._event_record(e).to_record() for e in pending.events]
            records += [self._reminder_record(r).to_record() for r in pending.reminders]
            if await self._push(records, "pending changes"):
                count += len(records)

        count += await self._push_deletions()
        logger.info(f"Pushed {count} pending change(s)")
        return count

    # =========================================================================
    # Event CRUD
    # =========================================================================

    async def create_event(
        self,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
    ) -> EventSnapshot:
        """
        Create an event (and its reminder) locally, then push it.

        Raises:
            WeekendValidationError: Invalid input; nothing is written
            StorageError: The local write failed
            RemoteOperationError: Saved locally, remote save failed
        """
        validate_event_draft(draft, reminder)

        owner = self.current_user.value
        event = await self._run(
            self.store.create_event, draft, reminder, owner.record_id if owner else None
        )
        logger.info(f"Created event {event.record_id} '{event.title}'")

        await self._publish(EntityKind.EVENT, event.record_id, ChangeKind.CREATED)
        return await self._push_event(event)

    async def update_event(
        self,
        record_id: str,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
    ) -> EventSnapshot:
        """Update an event; a None reminder removes an existing one"""
        validate_event_draft(draft, reminder)

        before = await self._run(self.store.get_event, record_id)
        if before is None:
            raise EventNotFoundError(f"Event not found: {record_id}")

        event = await self._run(self.store.update_event, record_id, draft, reminder)
        logger.info(f"Updated event {record_id}")

        await self._publish(EntityKind.EVENT, record_id, ChangeKind.UPDATED)
        if before.reminder is not None and event.reminder is None:
            await self._publish(
                EntityKind.REMINDER, before.reminder.record_id, ChangeKind.DELETED, related_id=record_id
            )

        pushed = await self._push_event(event)
        await self._push_deletions()
        return pushed

    async def delete_event(self, record_id: str) -> EventSnapshot:
        """Delete an event and its reminder locally, then remotely"""
        event = await self._run(self.store.delete_event, record_id)
        logger.info(f"Deleted event {record_id}")

        await self._publish(EntityKind.EVENT, record_id, ChangeKind.DELETED)
        await self._push_deletions()
        return event

    async def get_event(self, record_id: str) -> EventSnapshot:
        event = await self._run(self.store.get_event, record_id)
        if event is None:
            raise EventNotFoundError(f"Event not found: {record_id}")
        return event

    async def find_event(self, record_id: str) -> Optional[EventSnapshot]:
        return await self._run(self.store.get_event, record_id)

    async def create_or_update_reminder(self, event_record_id: str, reminder: ReminderDraft) -> ReminderSnapshot:
        message = reminder_draft_error(reminder)
        if message:
            raise WeekendValidationError(message)

        saved = await self._run(self.store.create_or_update_reminder, event_record_id, reminder)
        await self._publish(
            EntityKind.REMINDER, saved.record_id, ChangeKind.UPDATED, related_id=event_record_id
        )

        await self._push([self._reminder_record(saved).to_record()], f"reminder for {event_record_id}")
        return saved

    async def delete_reminder(self, event_record_id: str) -> Optional[ReminderSnapshot]:
        removed = await self._run(self.store.delete_reminder, event_record_id)
        if removed is None:
            return None

        await self._publish(
            EntityKind.REMINDER, removed.record_id, ChangeKind.DELETED, related_id=event_record_id
        )
        await self._push_deletions()
        return removed

    # =========================================================================
    # Reads and pull path
    # =========================================================================

    async def fetch_events_overlapping(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        """
        Local events overlapping [start, end], returned immediately.

        When the remote is available a background pull for the same range is
        launched; its merge publishes a reload.
        """
        events = await self._run(self.store.fetch_events_overlapping, start, end)
        if self._remote_ready():
            self._spawn(self.pull_events(start, end), "pull events")
        return events

    async def events_for_weekend(self, weekend_start: datetime) -> List[EventSnapshot]:
        return await self.fetch_events_overlapping(
            start_of_weekend(weekend_start), end_of_weekend(weekend_start)
        )

    async def pull_events(self, start: datetime, end: datetime) -> int:
        """
        Merge remote events overlapping the range, with their reminders.

        Returns:
            Number of records merged
        """
        self._require_remote()

        records = await self._remote_call(
            "query events",
            self.remote.query,
            RecordType.EVENT.value,
            [
                QueryFilter(field="startDate", op="<=", value=end),
                QueryFilter(field="endDate", op=">=", value=start),
            ],
        )
        merged = await self._merge_records(records)

        event_names = [r.record_name for r in records]
        if event_names:
            reminders = await self._remote_call(
                "query reminders",
                self.remote.query,
                RecordType.REMINDER_CONFIG.value,
                [QueryFilter(field="eventRef", op="in", value=event_names)],
            )
            merged += await self._merge_records(reminders)

        if merged:
            logger.info(f"Pulled {merged} record(s)")
            await self._publish(EntityKind.ALL, None, ChangeKind.REFRESHED)
        return merged

    async def pull_user(self) -> Optional[UserSnapshot]:
        """Merge the current user's remote profile"""
        self._require_remote()
        user = self.current_user.value
        if user is None:
            return None

        records = await self._remote_call(
            "fetch user profile", self.remote.fetch_records, [user.record_id]
        )
        profiles = [r for r in records if r.record_type == RecordType.USER_PROFILE.value]
        await self._merge_records(profiles)
        return self.current_user.value

    async def handle_remote_change(self, record_names: List[str]) -> int:
        """
        React to the remote change signal.

        Synced copies of the named records are marked stale, re-fetched and
        merged; records the remote no longer has are removed locally. Each
        merged or removed event and reminder is published, then a full reload.
        """
        if not record_names:
            return 0

        await self._run(
            self.store.mark_sync_state,
            list(record_names),
            SyncState.STALE,
            None,
            [SyncState.SYNCED],
        )
        if not self._remote_ready():
            logger.info(f"Remote change for {len(record_names)} record(s) deferred, remote unavailable")
            return 0

        records = await self._remote_call("fetch changed records", self.remote.fetch_records, list(record_names))
        found = {r.record_name for r in records}
        merged = await self._merge_records(records)

        missing = [name for name in record_names if name not in found]
        removed = 0
        if missing:
            deleted = await self._run(self.store.delete_by_record_ids, missing)
            removed = deleted.count
            if removed:
                logger.info(f"Removed {removed} record(s) deleted remotely")
            for event_id in deleted.events:
                await self._publish(EntityKind.EVENT, event_id, ChangeKind.DELETED)
            for reminder_id, event_id in deleted.reminders.items():
                await self._publish(EntityKind.REMINDER, reminder_id, ChangeKind.DELETED, related_id=event_id)

        await self._publish(EntityKind.ALL, None, ChangeKind.REFRESHED)
        return merged + removed

    async def _merge_records(self, records: List[RemoteRecord]) -> int:
        merged = 0
        for record in sorted(records, key=lambda r: MERGE_ORDER.get(r.record_type, 99)):
            try:
                typed = decode_record(record)
            except RecordDecodeError as e:
                logger.warning(f"Skipping malformed record {record.record_name}: {e}")
                continue
            merged_snapshot = await self._merge_typed(typed)
            if merged_snapshot is None:
                continue
            merged += 1
            if isinstance(merged_snapshot, EventSnapshot):
                await self._publish(EntityKind.EVENT, merged_snapshot.record_id, ChangeKind.UPDATED)
            elif isinstance(merged_snapshot, ReminderSnapshot):
                await self._publish(
                    EntityKind.REMINDER,
                    merged_snapshot.record_id,
                    ChangeKind.UPDATED,
                    related_id=merged_snapshot.event_record_id,
                )
        return merged

    async def _merge_typed(self, record: TypedRecord):
        if isinstance(record, EventRecord):
            existing = await self._run(self.store.get_event, record.record_name)
            required = {"title", "start_date", "end_date"}
            if existing is None and not required <= record.present_fields():
                logger.warning(f"Skipping incomplete new event record {record.record_name}")
                return None
            return await self._run(self.store.merge_event_record, record)

        if isinstance(record, ReminderConfigRecord):
            return await self._run(self.store.merge_reminder_record, record)

        if isinstance(record, UserProfileRecord):
            user = await self._run(self.store.merge_user_record, record)
            current = self.current_user.value
            if user is not None and current is not None and current.record_id == user.record_id:
                self.current_user.set(user)
            return user

        return None

    # =========================================================================
    # Weekend statuses
    # =========================================================================

    async def fetch_weekend_statuses(self, start: datetime, end: datetime) -> Dict[datetime, WeekendStatus]:
        """Remote Weekend records in the range, keyed by local Saturday midnight"""
        self._require_remote()
        tz = self.user_timezone()
        range_start = start_of_weekend(localize(start, tz))

        records = await self._remote_call(
            "query weekend statuses",
            self.remote.query,
            RecordType.WEEKEND.value,
            [
                QueryFilter(field="saturdayDate", op=">=", value=range_start),
                QueryFilter(field="saturdayDate", op="<", value=localize(end, tz)),
            ],
            desired_keys=["saturdayDate", "status"],
        )

        statuses: Dict[datetime, WeekendStatus] = {}
        for record in records:
            try:
                weekend = WeekendRecord.from_record(record)
                status = WeekendStatus(weekend.status)
            except (RecordDecodeError, ValueError) as e:
                logger.warning(f"Skipping weekend record {record.record_name}: {e}")
                continue
            if weekend.saturday_date is None:
                continue
            statuses[start_of_weekend(localize(weekend.saturday_date, tz))] = status
        return statuses

    async def weekend_overview(
        self, start: datetime, end: datetime, refresh: bool = False
    ) -> List[WeekendSummary]:
        """
        Every weekend overlapping [start, end) with its status.

        Status comes from a remote Weekend record when one exists, otherwise
        it is derived from local events. A failing remote degrades to local.
        With refresh, a background pull of the range's events is launched.
        """
        tz = self.user_timezone()
        weekends = list(enumerate_weekends(localize(start, tz), localize(end, tz)))
        if not weekends:
            return []

        events = await self._run(
            self.store.fetch_events_overlapping, weekends[0], end_of_weekend(weekends[-1])
        )
        if refresh and self._remote_ready():
            self._spawn(self.pull_events(weekends[0], end_of_weekend(weekends[-1])), "pull events")

        remote_statuses: Dict[datetime, WeekendStatus] = {}
        if self._remote_ready():
            try:
                remote_statuses = await self.fetch_weekend_statuses(start, end)
            except CloudServiceError as e:
                logger.warning(f"Remote weekend statuses unavailable, using local data: {e}")

        summaries = []
        for weekend_start in weekends:
            weekend_end = end_of_weekend(weekend_start)
            weekend_events = [e for e in events if e.start <= weekend_end and e.end >= weekend_start]
            summaries.append(WeekendSummary(
                weekend_start=weekend_start,
                weekend_end=weekend_end,
                status=remote_statuses.get(weekend_start, weekend_status(weekend_events)),
                event_count=len(weekend_events),
                events=weekend_events,
            ))
        return summaries

    async def yearly_weekend_status(self, year: int) -> Dict[datetime, WeekendStatus]:
        tz = self.user_timezone()
        overview = await self.weekend_overview(
            datetime(year, 1, 1, tzinfo=tz), datetime(year + 1, 1, 1, tzinfo=tz)
        )
        return {summary.weekend_start: summary.status for summary in overview}

    # =========================================================================
    # Profile
    # =========================================================================

    async def save_user_profile(self, profile: UserProfileUpdate) -> UserSnapshot:
        """
        Save the current user's profile locally and push it.

        An avatar is resized to a full image and a thumbnail before saving.
        """
        user = self.current_user.value
        if user is None:
            raise NoCurrentUserError("Sign in to your cloud account to save a profile")

        if profile.timezone is not None:
            try:
                resolve_timezone(profile.timezone, strict=True)
            except ValueError as e:
                raise WeekendValidationError(f"Unknown timezone: {profile.timezone}") from e

        avatar_full = avatar_thumb = None
        if profile.avatar is not None:
            if self.image_codec is not None:
                avatar_full = await self._run(self.image_codec.resize, profile.avatar, *AVATAR_FULL_SIZE)
                avatar_thumb = await self._run(self.image_codec.resize, profile.avatar, *AVATAR_THUMB_SIZE)
            else:
                avatar_full = avatar_thumb = profile.avatar

        saved = await self._run(self.store.save_user, user.record_id, profile, avatar_full, avatar_thumb)
        self.current_user.set(saved)
        logger.info(f"Saved profile for user {saved.record_id}")
        await self._publish(EntityKind.USER, saved.record_id, ChangeKind.UPDATED)

        with AssetStager(self.asset_staging_dir) as stager:
            record = self._user_record(saved).to_record(stager)
            await self._push([record], "profile")

        refreshed = await self._run(self.store.get_user, saved.record_id)
        if refreshed is not None:
            self.current_user.set(refreshed)
            return refreshed
        return saved
