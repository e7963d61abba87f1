"""
Cloud Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import List, Optional, Protocol, runtime_checkable

from .models import AccountStatus, QueryFilter, RemoteRecord, SavePolicy


# Custom exceptions - defined here to avoid importing the HTTP client
class CloudServiceError(Exception):
    """Base exception for remote record store errors"""
    pass


class RemoteUnavailableError(CloudServiceError):
    """Remote store or cloud identity is not available"""
    pass


class RemoteOperationError(CloudServiceError):
    """A remote save, delete, fetch or query failed"""
    pass


class RecordDecodeError(RemoteOperationError):
    """A remote record does not match its typed schema"""
    pass


@runtime_checkable
class RemoteRecordStoreProtocol(Protocol):
    """
    Interface for the remote record store.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def account_status(self) -> AccountStatus:
        """Return the cloud identity status"""
        ...

    async def fetch_user_record_name(self) -> str:
        """Return the record name of the signed-in identity's user record"""
        ...

    async def save_records(
        self,
        records: List[RemoteRecord],
        save_policy: SavePolicy = SavePolicy.CHANGED_KEYS,
    ) -> List[RemoteRecord]:
        """Save records, returning them as stored (with modification times)"""
        ...

    async def delete_records(self, record_names: List[str]) -> List[str]:
        """Delete records by name, returning the names deleted"""
        ...

    async def fetch_records(self, record_names: List[str]) -> List[RemoteRecord]:
        """Fetch records by name; missing records are omitted"""
        ...

    async def query(
        self,
        record_type: str,
        filters: Optional[List[QueryFilter]] = None,
        desired_keys: Optional[List[str]] = None,
    ) -> List[RemoteRecord]:
        """Query records of a type matching every filter"""
        ...

    async def close(self) -> None:
        """Release client resources"""
        ...
