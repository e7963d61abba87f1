"""
Local store ORM models.

Users own events, an event owns at most one reminder config. Every row
carries its record identifier plus sync bookkeeping.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from .models import SyncState

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores instants as naive UTC and loads them back as aware UTC"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def utc(value: datetime) -> datetime:
    """Aware UTC copy of value; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    record_id = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    timezone = Column(String, nullable=True)
    avatar_full = Column(LargeBinary, nullable=True)
    avatar_thumb = Column(LargeBinary, nullable=True)
    sync_state = Column(String, nullable=False, default=SyncState.LOCAL_ONLY.value)
    modified_at = Column(UTCDateTime, nullable=True)

    events = relationship("EventRow", back_populates="owner")


class EventRow(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("day_mask BETWEEN 1 AND 3", name="ck_events_day_mask"),
    )

    id = Column(Integer, primary_key=True)
    record_id = Column(String, nullable=False, unique=True, index=True)
    title = Column(String(100), nullable=False)
    start = Column("start_at", UTCDateTime, nullable=False, index=True)
    end = Column("end_at", UTCDateTime, nullable=False, index=True)
    kind = Column(String, nullable=False, default="plan")
    location = Column(String(150), nullable=True)
    description = Column(Text, nullable=True)
    day_mask = Column(Integer, nullable=False, default=3)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    owner_record_id = Column(String, nullable=True, index=True)
    sync_state = Column(String, nullable=False, default=SyncState.LOCAL_ONLY.value)
    modified_at = Column(UTCDateTime, nullable=True)

    owner = relationship("UserRow", back_populates="events")
    reminder = relationship(
        "ReminderConfigRow",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ReminderConfigRow(Base):
    __tablename__ = "reminder_configs"
    __table_args__ = (
        CheckConstraint("offset_minutes >= 0", name="ck_reminder_offset"),
    )

    id = Column(Integer, primary_key=True)
    record_id = Column(String, nullable=False, unique=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    offset_minutes = Column(Integer, nullable=False, default=60)
    mode = Column(String, nullable=False, default="inApp")
    sync_state = Column(String, nullable=False, default=SyncState.LOCAL_ONLY.value)
    modified_at = Column(UTCDateTime, nullable=True)

    event = relationship("EventRow", back_populates="reminder")

    @property
    def event_record_id(self) -> str:
        return self.event.record_id


class PendingDeletionRow(Base):
    """Deletion still to be pushed to the remote store"""

    __tablename__ = "pending_deletions"

    id = Column(Integer, primary_key=True)
    record_type = Column(String, nullable=False)
    record_id = Column(String, nullable=False, unique=True)
    created_at = Column(UTCDateTime, nullable=False)
