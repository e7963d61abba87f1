"""
HTTP Record Store

RemoteRecordStoreProtocol implementation over a JSON REST API.

Field values travel as {"type": ..., "value": ...} pairs so timestamps,
references and assets survive the round trip. Assets are sent as base64
read from their staged files.
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from core.service_client_base import BaseServiceClient

from .models import (
    AccountStatus,
    QueryFilter,
    RecordAsset,
    RecordReference,
    RemoteRecord,
    SavePolicy,
)
from .protocols import RecordDecodeError, RemoteOperationError, RemoteUnavailableError

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a record field value for the wire"""
    if isinstance(value, RecordReference):
        return {"type": "reference", "value": value.record_name, "action": value.action}
    if isinstance(value, RecordAsset):
        return {"type": "asset", "value": base64.b64encode(value.read_bytes()).decode("ascii")}
    if isinstance(value, datetime):
        return {"type": "timestamp", "value": value.isoformat()}
    if isinstance(value, bool):
        return {"type": "int", "value": int(value)}
    if isinstance(value, int):
        return {"type": "int", "value": value}
    if isinstance(value, (list, tuple)):
        return {"type": "list", "value": [encode_value(v) for v in value]}
    return {"type": "string", "value": str(value)}


def decode_value(payload: Dict[str, Any]) -> Any:
    """Decode a wire field value"""
    if not isinstance(payload, dict) or "type" not in payload:
        raise RecordDecodeError(f"Malformed field value: {payload!r}")

    kind = payload["type"]
    raw = payload.get("value")
    try:
        if kind == "string":
            return raw
        if kind == "int":
            return int(raw)
        if kind == "timestamp":
            return datetime.fromisoformat(raw)
        if kind == "reference":
            return RecordReference(record_name=raw, action=payload.get("action", "none"))
        if kind == "asset":
            return RecordAsset(data=base64.b64decode(raw, validate=True))
        if kind == "list":
            return [decode_value(v) for v in raw]
    except (TypeError, ValueError, binascii.Error) as e:
        raise RecordDecodeError(f"Bad {kind} value {raw!r}: {e}") from e

    raise RecordDecodeError(f"Unknown field type {kind}")


def _encode_filter_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_encode_filter_value(v) for v in value]
    return value


class HttpRecordStore(BaseServiceClient):
    """Remote record store client"""

    service_name = "cloud_record_store"
    default_port = 8250

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        container: str = "weekend-horizon",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout, transport=transport)
        self.container = container

    # ========================================
    # Wire helpers
    # ========================================

    def _path(self, suffix: str) -> str:
        return f"/api/v1/containers/{self.container}{suffix}"

    def _check(self, response: httpx.Response, operation: str) -> Dict[str, Any]:
        if response.status_code in (401, 403, 503):
            raise RemoteUnavailableError(
                f"{operation}: remote store unavailable ({response.status_code})"
            )
        if response.status_code >= 400:
            raise RemoteOperationError(
                f"{operation} failed: {response.status_code} {response.text}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteOperationError(f"{operation}: invalid JSON response") from e

    async def _get_json(self, suffix: str, operation: str) -> Dict[str, Any]:
        try:
            response = await self.get(self._path(suffix))
        except httpx.TransportError as e:
            raise RemoteUnavailableError(f"{operation}: {e}") from e
        return self._check(response, operation)

    async def _post_json(self, suffix: str, payload: Dict[str, Any], operation: str) -> Dict[str, Any]:
        try:
            response = await self.post(self._path(suffix), json=payload)
        except httpx.TransportError as e:
            raise RemoteUnavailableError(f"{operation}: {e}") from e
        return self._check(response, operation)

    @staticmethod
    def _encode_record(record: RemoteRecord) -> Dict[str, Any]:
        return {
            "record_type": record.record_type,
            "record_name": record.record_name,
            "fields": {key: encode_value(value) for key, value in record.fields.items()},
            "modified_at": record.modified_at.isoformat() if record.modified_at else None,
        }

    @staticmethod
    def _decode_record(payload: Dict[str, Any]) -> RemoteRecord:
        try:
            fields = {key: decode_value(value) for key, value in (payload.get("fields") or {}).items()}
            return RemoteRecord(
                record_type=payload["record_type"],
                record_name=payload["record_name"],
                fields=fields,
                modified_at=payload.get("modified_at"),
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise RecordDecodeError(f"Malformed record payload: {e}") from e

    def _decode_records(self, body: Dict[str, Any]) -> List[RemoteRecord]:
        return [self._decode_record(item) for item in body.get("records", [])]

    # ========================================
    # RemoteRecordStoreProtocol
    # ========================================

    async def account_status(self) -> AccountStatus:
        body = await self._get_json("/account/status", "account status")
        try:
            return AccountStatus(body.get("status"))
        except ValueError:
            logger.warning(f"Unknown account status {body.get('status')!r}")
            return AccountStatus.COULD_NOT_DETERMINE

    async def fetch_user_record_name(self) -> str:
        body = await self._get_json("/account/user-record", "fetch user record")
        record_name = body.get("record_name")
        if not record_name:
            raise RemoteOperationError("fetch user record: response has no record_name")
        return record_name

    async def save_records(
        self,
        records: List[RemoteRecord],
        save_policy: SavePolicy = SavePolicy.CHANGED_KEYS,
    ) -> List[RemoteRecord]:
        payload = {
            "records": [self._encode_record(r) for r in records],
            "save_policy": save_policy.value,
        }
        body = await self._post_json("/records/save", payload, "save records")
        saved = self._decode_records(body)
        logger.debug(f"Saved {len(saved)} record(s) with policy {save_policy.value}")
        return saved

    async def delete_records(self, record_names: List[str]) -> List[str]:
        body = await self._post_json(
            "/records/delete", {"record_names": list(record_names)}, "delete records"
        )
        return list(body.get("deleted", []))

    async def fetch_records(self, record_names: List[str]) -> List[RemoteRecord]:
        body = await self._post_json(
            "/records/fetch", {"record_names": list(record_names)}, "fetch records"
        )
        return self._decode_records(body)

    async def query(
        self,
        record_type: str,
        filters: Optional[List[QueryFilter]] = None,
        desired_keys: Optional[List[str]] = None,
    ) -> List[RemoteRecord]:
        payload = {
            "record_type": record_type,
            "filters": [
                {"field": f.field, "op": f.op, "value": _encode_filter_value(f.value)}
                for f in (filters or [])
            ],
            "desired_keys": desired_keys,
        }
        body = await self._post_json("/records/query", payload, f"query {record_type}")
        return self._decode_records(body)
