"""
Cloud Service Models

Wire-level types of the remote record store: records, typed field values,
query filters and account status.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RecordType(str, Enum):
    """Record types stored remotely"""
    EVENT = "Event"
    USER_PROFILE = "UserProfile"
    REMINDER_CONFIG = "ReminderConfig"
    WEEKEND = "Weekend"


class SavePolicy(str, Enum):
    """How a save treats fields already present remotely"""
    CHANGED_KEYS = "changed_keys"


class AccountStatus(str, Enum):
    """Cloud identity status"""
    AVAILABLE = "available"
    NO_ACCOUNT = "no_account"
    RESTRICTED = "restricted"
    COULD_NOT_DETERMINE = "could_not_determine"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"

    @property
    def message(self) -> str:
        return {
            AccountStatus.AVAILABLE: "Cloud account available",
            AccountStatus.NO_ACCOUNT: "No cloud account. Please sign in to enable sync.",
            AccountStatus.RESTRICTED: "Cloud account is restricted",
            AccountStatus.COULD_NOT_DETERMINE: "Could not determine cloud account status",
            AccountStatus.TEMPORARILY_UNAVAILABLE: "Cloud account is temporarily unavailable",
        }[self]


class RecordReference(BaseModel):
    """Reference field pointing at another record"""
    record_name: str
    action: str = "none"


class RecordAsset(BaseModel):
    """
    Binary field value.

    Outgoing assets point at a staged file; incoming assets carry their bytes.
    """
    file_path: Optional[str] = None
    data: Optional[bytes] = None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.file_path:
            return Path(self.file_path).read_bytes()
        raise ValueError("Asset has neither data nor a staged file")


class RemoteRecord(BaseModel):
    """A record as stored remotely"""
    record_type: str
    record_name: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    modified_at: Optional[datetime] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)


class QueryFilter(BaseModel):
    """Predicate on one record field"""
    field: str
    op: str = Field("==", pattern=r"^(==|!=|<|<=|>|>=|in)$")
    value: Any = None

    def matches(self, candidate: Any) -> bool:
        """Evaluate the predicate against a field value"""
        if isinstance(candidate, RecordReference):
            candidate = candidate.record_name
        if candidate is None:
            return False
        if self.op == "in":
            return candidate in (self.value or [])
        if self.op == "==":
            return candidate == self.value
        if self.op == "!=":
            return candidate != self.value
        if self.op == "<":
            return candidate < self.value
        if self.op == "<=":
            return candidate <= self.value
        if self.op == ">":
            return candidate > self.value
        return candidate >= self.value


def record_names(records: List[RemoteRecord]) -> List[str]:
    return [r.record_name for r in records]
