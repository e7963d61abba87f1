"""
Cloud Service

Remote record store: typed record schema, asset staging and the HTTP client.
"""

from .models import (
    AccountStatus,
    QueryFilter,
    RecordAsset,
    RecordReference,
    RecordType,
    RemoteRecord,
    SavePolicy,
)
from .protocols import (
    CloudServiceError,
    RecordDecodeError,
    RemoteOperationError,
    RemoteRecordStoreProtocol,
    RemoteUnavailableError,
)

__all__ = [
    "AccountStatus",
    "QueryFilter",
    "RecordAsset",
    "RecordReference",
    "RecordType",
    "RemoteRecord",
    "SavePolicy",
    "CloudServiceError",
    "RecordDecodeError",
    "RemoteOperationError",
    "RemoteRecordStoreProtocol",
    "RemoteUnavailableError",
]
