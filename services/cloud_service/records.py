"""
Typed Record Schema

Each record type has a pydantic model with explicit field names. Encoding
writes only the fields that are set (so a changed-keys save never clears
remote fields the local side does not know); decoding rejects records
whose fields have the wrong shape.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Set, Tuple

from pydantic import BaseModel, ValidationError

from .models import RecordAsset, RecordReference, RecordType, RemoteRecord
from .protocols import RecordDecodeError

if TYPE_CHECKING:
    from .assets import AssetStager


def _reference_name(raw: Any) -> str:
    if isinstance(raw, RecordReference):
        return raw.record_name
    if isinstance(raw, dict):
        return RecordReference(**raw).record_name
    if isinstance(raw, str):
        return raw
    raise TypeError(f"not a reference: {type(raw).__name__}")


def _asset_bytes(raw: Any) -> bytes:
    if isinstance(raw, RecordAsset):
        return raw.read_bytes()
    if isinstance(raw, dict):
        return RecordAsset(**raw).read_bytes()
    if isinstance(raw, bytes):
        return raw
    raise TypeError(f"not an asset: {type(raw).__name__}")


class TypedRecord(BaseModel):
    """Base for typed remote records"""

    RECORD_TYPE: ClassVar[RecordType]
    FIELD_MAP: ClassVar[Dict[str, str]] = {}
    REFERENCE_FIELDS: ClassVar[Tuple[str, ...]] = ()
    ASSET_FIELDS: ClassVar[Tuple[str, ...]] = ()
    REFERENCE_ACTION: ClassVar[str] = "none"

    record_name: str
    modified_at: Optional[datetime] = None

    def to_record(self, stager: Optional["AssetStager"] = None) -> RemoteRecord:
        """Encode the set fields into a remote record"""
        fields: Dict[str, Any] = {}
        for attr, key in self.FIELD_MAP.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if attr in self.REFERENCE_FIELDS:
                value = RecordReference(record_name=value, action=self.REFERENCE_ACTION)
            elif attr in self.ASSET_FIELDS:
                value = stager.stage(value) if stager else RecordAsset(data=value)
            fields[key] = value

        return RemoteRecord(
            record_type=self.RECORD_TYPE.value,
            record_name=self.record_name,
            fields=fields,
            modified_at=self.modified_at,
        )

    @classmethod
    def from_record(cls, record: RemoteRecord):
        """Decode a remote record, raising RecordDecodeError on a bad shape"""
        if record.record_type != cls.RECORD_TYPE.value:
            raise RecordDecodeError(
                f"Expected {cls.RECORD_TYPE.value} record, got {record.record_type} ({record.record_name})"
            )

        values: Dict[str, Any] = {
            "record_name": record.record_name,
            "modified_at": record.modified_at,
        }
        for attr, key in cls.FIELD_MAP.items():
            raw = record.fields.get(key)
            if raw is None:
                continue
            try:
                if attr in cls.REFERENCE_FIELDS:
                    raw = _reference_name(raw)
                elif attr in cls.ASSET_FIELDS:
                    raw = _asset_bytes(raw)
            except (TypeError, ValueError, OSError) as e:
                raise RecordDecodeError(f"Bad {key} on {record.record_name}: {e}") from e
            values[attr] = raw

        try:
            return cls(**values)
        except ValidationError as e:
            raise RecordDecodeError(f"Malformed {record.record_type} record {record.record_name}: {e}") from e

    def present_fields(self) -> Set[str]:
        """Schema fields carried by this record"""
        return {
            attr for attr in self.FIELD_MAP
            if attr in self.model_fields_set and getattr(self, attr) is not None
        }


class EventRecord(TypedRecord):
    RECORD_TYPE: ClassVar[RecordType] = RecordType.EVENT
    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "title": "title",
        "start_date": "startDate",
        "end_date": "endDate",
        "event_type": "eventType",
        "location": "location",
        "event_description": "eventDescription",
        "day_mask": "dayMask",
        "user_ref": "userRef",
    }
    REFERENCE_FIELDS: ClassVar[Tuple[str, ...]] = ("user_ref",)
    REFERENCE_ACTION: ClassVar[str] = "deleteSelf"

    title: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    event_description: Optional[str] = None
    day_mask: Optional[int] = None
    user_ref: Optional[str] = None


class UserProfileRecord(TypedRecord):
    RECORD_TYPE: ClassVar[RecordType] = RecordType.USER_PROFILE
    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "email": "email",
        "display_name": "displayName",
        "timezone": "timezone",
        "avatar_full": "avatarFull",
        "avatar_thumb": "avatarThumb",
    }
    ASSET_FIELDS: ClassVar[Tuple[str, ...]] = ("avatar_full", "avatar_thumb")

    email: Optional[str] = None
    display_name: Optional[str] = None
    timezone: Optional[str] = None
    avatar_full: Optional[bytes] = None
    avatar_thumb: Optional[bytes] = None


class ReminderConfigRecord(TypedRecord):
    RECORD_TYPE: ClassVar[RecordType] = RecordType.REMINDER_CONFIG
    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "offset_minutes": "offsetMinutes",
        "mode": "mode",
        "event_ref": "eventRef",
    }
    REFERENCE_FIELDS: ClassVar[Tuple[str, ...]] = ("event_ref",)
    REFERENCE_ACTION: ClassVar[str] = "deleteSelf"

    offset_minutes: Optional[int] = None
    mode: Optional[str] = None
    event_ref: Optional[str] = None


class WeekendRecord(TypedRecord):
    RECORD_TYPE: ClassVar[RecordType] = RecordType.WEEKEND
    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "saturday_date": "saturdayDate",
        "status": "status",
    }

    saturday_date: Optional[datetime] = None
    status: Optional[str] = None


RECORD_CLASSES = {
    RecordType.EVENT.value: EventRecord,
    RecordType.USER_PROFILE.value: UserProfileRecord,
    RecordType.REMINDER_CONFIG.value: ReminderConfigRecord,
    RecordType.WEEKEND.value: WeekendRecord,
}


def decode_record(record: RemoteRecord) -> TypedRecord:
    """Decode any known record type"""
    record_class = RECORD_CLASSES.get(record.record_type)
    if record_class is None:
        raise RecordDecodeError(f"Unknown record type {record.record_type}")
    return record_class.from_record(record)
