"""
Local Store

SQLite persistence for users, events and reminder configs via SQLAlchemy.

Every operation runs in its own session inside a UnitOfWork, so an event and
its reminder commit together or not at all. A store-wide lock serializes
sessions; callers run these blocking methods on the worker pool. Reads return
pydantic snapshots, never ORM rows.
"""

import logging
import os
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

from sqlalchemy import create_engine, event, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from services.cloud_service.records import EventRecord, ReminderConfigRecord, UserProfileRecord

from .models import (
    EventDraft,
    EventSnapshot,
    PendingChanges,
    PendingDeletion,
    ReminderDraft,
    ReminderSnapshot,
    RemovedRecords,
    SyncState,
    UserProfileUpdate,
    UserSnapshot,
)
from .protocols import (
    EventNotFoundError,
    StorageError,
    StoreCorruptedError,
    WeekendValidationError,
)
from .store_models import (
    Base,
    EventRow,
    PendingDeletionRow,
    ReminderConfigRow,
    UserRow,
    utc,
)
from .validation import reminder_draft_error, validate_event_draft

logger = logging.getLogger(__name__)

STORE_COMPANION_SUFFIXES = ("-wal", "-shm", "-journal")
UNSYNCED_STATES = (SyncState.LOCAL_ONLY.value, SyncState.PENDING.value)


def new_record_id() -> str:
    return uuid.uuid4().hex


class UnitOfWork:
    """
    One session per unit of work.

    Usage:
        with UnitOfWork(session_factory) as uow:
            uow.session.add(row)
            uow.commit()
        # Automatic rollback on exception, cleanup on exit
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session: Optional[Session] = None
        self._committed = False

    def __enter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None or not self._committed:
                self.rollback()
        finally:
            self.session.close()
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
            self._committed = True
        except SQLAlchemyError as e:
            logger.error(f"Error during commit, rolling back: {e}")
            self.rollback()
            raise

    def rollback(self) -> None:
        self.session.rollback()

    def flush(self) -> None:
        self.session.flush()


class LocalStore:
    """SQLite-backed store for the weekend planner's entities"""

    def __init__(
        self,
        database_url: str = "sqlite://",
        echo: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.database_url = database_url
        self.echo = echo
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._engine = None
        self._session_factory: Optional[sessionmaker] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def store_path(self) -> Optional[str]:
        prefix = "sqlite:///"
        if self.database_url.startswith(prefix) and len(self.database_url) > len(prefix):
            return self.database_url[len(prefix):]
        return None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        """
        Open the store, recreating it if the file cannot be read.

        Raises:
            StoreCorruptedError: The store could not be opened even after
                deleting and recreating its files
        """
        try:
            self._connect()
            return
        except (SQLAlchemyError, StoreCorruptedError) as e:
            self._dispose()
            if self.store_path is None:
                raise StoreCorruptedError(f"Could not open local store: {e}") from e
            logger.critical(
                f"Local store {self.store_path} is unreadable ({e}); "
                f"deleting it and creating an empty store. Unsynced local data is lost."
            )

        self._delete_store_files()
        try:
            self._connect()
        except (SQLAlchemyError, StoreCorruptedError) as e:
            self._dispose()
            raise StoreCorruptedError(
                f"Local store {self.store_path} could not be recreated: {e}"
            ) from e

    def close(self) -> None:
        self._dispose()
        logger.info("Local store closed")

    def _connect(self) -> None:
        path = self.store_path
        if path:
            directory = os.path.dirname(os.path.abspath(path))
            os.makedirs(directory, exist_ok=True)
            engine = create_engine(
                self.database_url,
                echo=self.echo,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(
                self.database_url,
                echo=self.echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        self._engine = engine
        with engine.connect() as conn:
            result = conn.execute(text("PRAGMA quick_check")).scalar()
            if result != "ok":
                raise StoreCorruptedError(f"integrity check failed: {result}")

        Base.metadata.create_all(engine)
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info(f"Local store opened at {path or 'memory'}")

    def _dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def _delete_store_files(self) -> None:
        path = self.store_path
        for candidate in [path] + [path + suffix for suffix in STORE_COMPANION_SUFFIXES]:
            try:
                os.remove(candidate)
                logger.warning(f"Deleted store file {candidate}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Could not delete store file {candidate}: {e}")

    @contextmanager
    def _unit(self, operation: str) -> Iterator[UnitOfWork]:
        if self._session_factory is None:
            raise StorageError("Local store is not open")
        with self._lock:
            try:
                with UnitOfWork(self._session_factory) as uow:
                    yield uow
            except SQLAlchemyError as e:
                logger.error(f"Local store {operation} failed: {e}")
                raise StorageError(f"Failed to {operation}: {e}") from e

    def _now(self) -> datetime:
        return self._clock()

    # =========================================================================
    # Row helpers
    # =========================================================================

    @staticmethod
    def _event_row(session: Session, record_id: str) -> Optional[EventRow]:
        return session.execute(
            select(EventRow).where(EventRow.record_id == record_id)
        ).scalar_one_or_none()

    @staticmethod
    def _user_row(session: Session, record_id: str) -> Optional[UserRow]:
        return session.execute(
            select(UserRow).where(UserRow.record_id == record_id)
        ).scalar_one_or_none()

    @staticmethod
    def _reminder_row(session: Session, record_id: str) -> Optional[ReminderConfigRow]:
        return session.execute(
            select(ReminderConfigRow).where(ReminderConfigRow.record_id == record_id)
        ).scalar_one_or_none()

    def _require_event(self, session: Session, record_id: str) -> EventRow:
        row = self._event_row(session, record_id)
        if row is None:
            raise EventNotFoundError(f"Event not found: {record_id}")
        return row

    def _touch(self, row) -> None:
        """Record a local mutation"""
        row.modified_at = self._now()
        if row.sync_state != SyncState.LOCAL_ONLY.value:
            row.sync_state = SyncState.PENDING.value

    def _tombstone(self, session: Session, row, record_type: str) -> None:
        if row.sync_state == SyncState.LOCAL_ONLY.value:
            return
        session.add(PendingDeletionRow(
            record_type=record_type,
            record_id=row.record_id,
            created_at=self._now(),
        ))

    def _apply_draft(self, row: EventRow, draft: EventDraft) -> None:
        row.title = draft.title.strip()
        row.start = utc(draft.start)
        row.end = utc(draft.end)
        row.kind = draft.kind
        row.location = draft.location or None
        row.description = draft.description or None
        row.day_mask = draft.day_mask

    def _apply_reminder(self, session: Session, event_row: EventRow, draft: ReminderDraft) -> ReminderConfigRow:
        reminder = event_row.reminder
        if reminder is None:
            reminder = ReminderConfigRow(
                record_id=new_record_id(),
                sync_state=SyncState.LOCAL_ONLY.value,
            )
            event_row.reminder = reminder
        reminder.offset_minutes = draft.offset_minutes
        reminder.mode = draft.mode.value
        self._touch(reminder)
        return reminder

    def _remove_reminder(self, session: Session, event_row: EventRow) -> Optional[ReminderSnapshot]:
        reminder = event_row.reminder
        if reminder is None:
            return None
        snapshot = ReminderSnapshot.model_validate(reminder)
        self._tombstone(session, reminder, "ReminderConfig")
        event_row.reminder = None
        session.flush()
        return snapshot

    def _attach_orphans(self, session: Session, user: UserRow, include_unowned: bool = False) -> int:
        """
        Link events naming this user to its row.

        With include_unowned, events with no owner reference at all are
        claimed too (the signed-in identity owns what was made offline).
        """
        owned_by_user = EventRow.owner_record_id == user.record_id
        if include_unowned:
            owned_by_user = owned_by_user | EventRow.owner_record_id.is_(None)
        rows = session.execute(
            select(EventRow).where(EventRow.owner_id.is_(None), owned_by_user)
        ).scalars().all()
        for row in rows:
            row.owner = user
            row.owner_record_id = user.record_id
        if rows:
            logger.info(f"Attached {len(rows)} event(s) to user {user.record_id}")
        return len(rows)

    # =========================================================================
    # Events
    # =========================================================================

    def create_event(
        self,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
        owner_record_id: Optional[str] = None,
    ) -> EventSnapshot:
        """Insert an event (and its reminder) in one transaction"""
        validate_event_draft(draft, reminder, check_weekend_bounds=False)

        with self._unit("create event") as uow:
            row = EventRow(
                record_id=new_record_id(),
                owner_record_id=owner_record_id,
                sync_state=SyncState.LOCAL_ONLY.value,
                modified_at=self._now(),
            )
            self._apply_draft(row, draft)
            if owner_record_id:
                row.owner = self._user_row(uow.session, owner_record_id)
            if reminder is not None:
                self._apply_reminder(uow.session, row, reminder)

            uow.session.add(row)
            uow.flush()
            snapshot = EventSnapshot.model_validate(row)
            uow.commit()

        logger.debug(f"Created event {snapshot.record_id}")
        return snapshot

    def update_event(
        self,
        record_id: str,
        draft: EventDraft,
        reminder: Optional[ReminderDraft] = None,
    ) -> EventSnapshot:
        """
        Update an event's fields.

        A None reminder removes the event's reminder if it has one.
        """
        validate_event_draft(draft, reminder, check_weekend_bounds=False)

        with self._unit("update event") as uow:
            row = self._require_event(uow.session, record_id)
            self._apply_draft(row, draft)
            self._touch(row)
            if reminder is not None:
                self._apply_reminder(uow.session, row, reminder)
            else:
                self._remove_reminder(uow.session, row)

            uow.flush()
            snapshot = EventSnapshot.model_validate(row)
            uow.commit()

        return snapshot

    def delete_event(self, record_id: str) -> EventSnapshot:
        """Delete an event; its reminder goes with it"""
        with self._unit("delete event") as uow:
            row = self._require_event(uow.session, record_id)
            snapshot = EventSnapshot.model_validate(row)
            if row.reminder is not None:
                self._tombstone(uow.session, row.reminder, "ReminderConfig")
            self._tombstone(uow.session, row, "Event")
            uow.session.delete(row)
            uow.commit()

        logger.debug(f"Deleted event {record_id}")
        return snapshot

    def get_event(self, record_id: str) -> Optional[EventSnapshot]:
        with self._unit("get event") as uow:
            row = self._event_row(uow.session, record_id)
            return EventSnapshot.model_validate(row) if row else None

    def fetch_events_overlapping(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        """Events with start <= end and end >= start, ordered by start"""
        with self._unit("fetch events") as uow:
            rows = uow.session.execute(
                select(EventRow)
                .where(EventRow.start <= utc(end), EventRow.end >= utc(start))
                .order_by(EventRow.start, EventRow.id)
            ).scalars().all()
            return [EventSnapshot.model_validate(row) for row in rows]

    # =========================================================================
    # Reminders
    # =========================================================================

    def create_or_update_reminder(self, event_record_id: str, reminder: ReminderDraft) -> ReminderSnapshot:
        message = reminder_draft_error(reminder)
        if message:
            raise WeekendValidationError(message)

        with self._unit("save reminder") as uow:
            event_row = self._require_event(uow.session, event_record_id)
            row = self._apply_reminder(uow.session, event_row, reminder)
            uow.flush()
            snapshot = ReminderSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    def delete_reminder(self, event_record_id: str) -> Optional[ReminderSnapshot]:
        """Remove the event's reminder; the event itself is untouched"""
        with self._unit("delete reminder") as uow:
            event_row = self._require_event(uow.session, event_record_id)
            snapshot = self._remove_reminder(uow.session, event_row)
            uow.commit()
        return snapshot

    # =========================================================================
    # Users
    # =========================================================================

    def fetch_user(self) -> Optional[UserSnapshot]:
        with self._unit("fetch user") as uow:
            row = uow.session.execute(
                select(UserRow).order_by(UserRow.id).limit(1)
            ).scalar_one_or_none()
            return UserSnapshot.model_validate(row) if row else None

    def get_user(self, record_id: str) -> Optional[UserSnapshot]:
        with self._unit("get user") as uow:
            row = self._user_row(uow.session, record_id)
            return UserSnapshot.model_validate(row) if row else None

    def get_or_create_user(self, record_id: str, default_timezone: Optional[str] = None) -> UserSnapshot:
        """Local user for a cloud identity, created on first sight"""
        with self._unit("get or create user") as uow:
            row = self._user_row(uow.session, record_id)
            if row is None:
                # No modified_at: the remote profile always wins over a fresh row
                row = UserRow(
                    record_id=record_id,
                    timezone=default_timezone,
                    sync_state=SyncState.LOCAL_ONLY.value,
                )
                uow.session.add(row)
                uow.flush()
                logger.info(f"Created local user {record_id}")
            self._attach_orphans(uow.session, row, include_unowned=True)
            uow.flush()
            snapshot = UserSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    def save_user(
        self,
        record_id: str,
        profile: UserProfileUpdate,
        avatar_full: Optional[bytes] = None,
        avatar_thumb: Optional[bytes] = None,
    ) -> UserSnapshot:
        """Write the profile fields that were provided"""
        with self._unit("save user") as uow:
            row = self._user_row(uow.session, record_id)
            if row is None:
                raise StorageError(f"User not found: {record_id}")

            for field in ("display_name", "email", "timezone"):
                if field in profile.model_fields_set:
                    setattr(row, field, getattr(profile, field))
            if avatar_full is not None:
                row.avatar_full = avatar_full
            if avatar_thumb is not None:
                row.avatar_thumb = avatar_thumb

            self._touch(row)
            uow.flush()
            snapshot = UserSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    # =========================================================================
    # Sync bookkeeping
    # =========================================================================

    def mark_sync_state(
        self,
        record_ids: List[str],
        state: SyncState,
        modified_at: Optional[datetime] = None,
        only_from: Optional[List[SyncState]] = None,
    ) -> int:
        """
        Set the sync state of every row with one of the record ids.

        With only_from, rows in other states are left alone.
        """
        if not record_ids:
            return 0
        updated = 0
        with self._unit("mark sync state") as uow:
            for model in (UserRow, EventRow, ReminderConfigRow):
                query = select(model).where(model.record_id.in_(record_ids))
                if only_from:
                    query = query.where(model.sync_state.in_([s.value for s in only_from]))
                rows = uow.session.execute(query).scalars().all()
                for row in rows:
                    row.sync_state = state.value
                    if modified_at is not None:
                        row.modified_at = utc(modified_at)
                updated += len(rows)
            uow.commit()
        return updated

    def pending_changes(self) -> PendingChanges:
        with self._unit("list pending changes") as uow:
            session = uow.session
            users = session.execute(
                select(UserRow).where(UserRow.sync_state.in_(UNSYNCED_STATES))
            ).scalars().all()
            events = session.execute(
                select(EventRow).where(EventRow.sync_state.in_(UNSYNCED_STATES)).order_by(EventRow.id)
            ).scalars().all()
            reminders = session.execute(
                select(ReminderConfigRow).where(ReminderConfigRow.sync_state.in_(UNSYNCED_STATES))
            ).scalars().all()
            deletions = session.execute(
                select(PendingDeletionRow).order_by(PendingDeletionRow.id)
            ).scalars().all()

            return PendingChanges(
                users=[UserSnapshot.model_validate(r) for r in users],
                events=[EventSnapshot.model_validate(r) for r in events],
                reminders=[ReminderSnapshot.model_validate(r) for r in reminders],
                deletions=[
                    PendingDeletion(record_type=d.record_type, record_id=d.record_id)
                    for d in deletions
                ],
            )

    def clear_deletions(self, record_ids: List[str]) -> int:
        if not record_ids:
            return 0
        with self._unit("clear deletions") as uow:
            rows = uow.session.execute(
                select(PendingDeletionRow).where(PendingDeletionRow.record_id.in_(record_ids))
            ).scalars().all()
            for row in rows:
                uow.session.delete(row)
            uow.commit()
        return len(rows)

    # =========================================================================
    # Pull-side merges (remote wins unless the local row is pending and newer)
    # =========================================================================

    @staticmethod
    def _local_wins(row, remote_modified: Optional[datetime]) -> bool:
        if row.sync_state not in UNSYNCED_STATES:
            return False
        if remote_modified is None or row.modified_at is None:
            return False
        return row.modified_at > utc(remote_modified)

    @staticmethod
    def _already_current(row, remote_modified: Optional[datetime]) -> bool:
        if row.sync_state != SyncState.SYNCED.value:
            return False
        if remote_modified is None or row.modified_at is None:
            return False
        return row.modified_at == utc(remote_modified)

    def _merged_state(self, row, remote_modified: Optional[datetime]) -> None:
        row.sync_state = SyncState.SYNCED.value
        row.modified_at = utc(remote_modified) if remote_modified else self._now()

    def merge_event_record(self, record: EventRecord) -> Optional[EventSnapshot]:
        """
        Upsert an event from a remote record.

        Only fields present on the record are written. Returns None when the
        local version was kept or already matches the record.
        """
        with self._unit("merge event") as uow:
            session = uow.session
            row = self._event_row(session, record.record_name)

            if row is not None and self._local_wins(row, record.modified_at):
                logger.info(f"Keeping newer local edit of event {row.record_id}")
                return None
            if row is not None and self._already_current(row, record.modified_at):
                return None

            if row is None:
                row = EventRow(record_id=record.record_name, kind="plan", day_mask=3)
                session.add(row)

            present = record.present_fields()
            if "title" in present:
                row.title = record.title
            if "start_date" in present:
                row.start = utc(record.start_date)
            if "end_date" in present:
                row.end = utc(record.end_date)
            if "event_type" in present:
                row.kind = record.event_type
            if "location" in present:
                row.location = record.location
            if "event_description" in present:
                row.description = record.event_description
            if "day_mask" in present:
                row.day_mask = record.day_mask
            if "user_ref" in present:
                row.owner_record_id = record.user_ref
                row.owner = self._user_row(session, record.user_ref)

            self._merged_state(row, record.modified_at)
            uow.flush()
            snapshot = EventSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    def merge_reminder_record(self, record: ReminderConfigRecord) -> Optional[ReminderSnapshot]:
        """Upsert a reminder config; skipped when its event is not known locally"""
        with self._unit("merge reminder") as uow:
            session = uow.session
            row = self._reminder_row(session, record.record_name)

            if row is not None and self._local_wins(row, record.modified_at):
                logger.info(f"Keeping newer local edit of reminder {row.record_id}")
                return None
            if row is not None and self._already_current(row, record.modified_at):
                return None

            if row is None:
                if not record.event_ref:
                    logger.warning(f"Reminder {record.record_name} has no event reference, skipping")
                    return None
                event_row = self._event_row(session, record.event_ref)
                if event_row is None:
                    logger.warning(
                        f"Reminder {record.record_name} references unknown event {record.event_ref}, skipping"
                    )
                    return None
                if event_row.reminder is not None:
                    event_row.reminder = None
                    session.flush()
                row = ReminderConfigRow(record_id=record.record_name, offset_minutes=60, mode="inApp")
                event_row.reminder = row

            present = record.present_fields()
            if "offset_minutes" in present:
                row.offset_minutes = record.offset_minutes
            if "mode" in present:
                row.mode = record.mode

            self._merged_state(row, record.modified_at)
            uow.flush()
            snapshot = ReminderSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    def merge_user_record(self, record: UserProfileRecord) -> Optional[UserSnapshot]:
        with self._unit("merge user") as uow:
            session = uow.session
            row = self._user_row(session, record.record_name)

            if row is not None and self._local_wins(row, record.modified_at):
                logger.info(f"Keeping newer local edit of user {row.record_id}")
                return None
            if row is not None and self._already_current(row, record.modified_at):
                return None

            if row is None:
                row = UserRow(record_id=record.record_name)
                session.add(row)
                session.flush()

            present = record.present_fields()
            for field in ("email", "display_name", "timezone", "avatar_full", "avatar_thumb"):
                if field in present:
                    setattr(row, field, getattr(record, field))

            self._merged_state(row, record.modified_at)
            self._attach_orphans(session, row)
            uow.flush()
            snapshot = UserSnapshot.model_validate(row)
            uow.commit()
        return snapshot

    def delete_by_record_ids(self, record_ids: List[str]) -> RemovedRecords:
        """Remove events and reminders deleted remotely (no tombstones)"""
        removed = RemovedRecords()
        if not record_ids:
            return removed
        with self._unit("apply remote deletions") as uow:
            for model in (ReminderConfigRow, EventRow):
                rows = uow.session.execute(
                    select(model).where(model.record_id.in_(record_ids))
                ).scalars().all()
                for row in rows:
                    if model is ReminderConfigRow:
                        removed.reminders[row.record_id] = row.event_record_id
                    else:
                        removed.events.append(row.record_id)
                    uow.session.delete(row)
                uow.flush()
            uow.commit()
        return removed
