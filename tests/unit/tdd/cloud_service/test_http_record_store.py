"""
Unit Tests: HTTP Record Store

Wire codec and client error mapping against httpx.MockTransport.

Usage:
    pytest tests/unit/tdd/cloud_service/test_http_record_store.py -v
"""
import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from services.cloud_service.http_store import HttpRecordStore, decode_value, encode_value
from services.cloud_service.models import (
    AccountStatus,
    QueryFilter,
    RecordAsset,
    RecordReference,
    RemoteRecord,
    SavePolicy,
)
from services.cloud_service.protocols import (
    RecordDecodeError,
    RemoteOperationError,
    RemoteUnavailableError,
)

pytestmark = [pytest.mark.unit, pytest.mark.tdd]

BASE_URL = "http://cloud.test"
PREFIX = "/api/v1/containers/weekend-horizon"
STAMP = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


def make_store(handler, **kwargs) -> HttpRecordStore:
    return HttpRecordStore(base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


# =============================================================================
# Field codec
# =============================================================================

class TestFieldCodec:

    def test_timestamp(self):
        encoded = encode_value(STAMP)
        assert encoded == {"type": "timestamp", "value": STAMP.isoformat()}
        assert decode_value(encoded) == STAMP

    def test_reference(self):
        encoded = encode_value(RecordReference(record_name="evt1", action="deleteSelf"))
        assert encoded == {"type": "reference", "value": "evt1", "action": "deleteSelf"}
        assert decode_value(encoded).record_name == "evt1"

    def test_asset_is_base64(self):
        encoded = encode_value(RecordAsset(data=b"\x00\xffpng"))
        assert encoded["type"] == "asset"
        assert base64.b64decode(encoded["value"]) == b"\x00\xffpng"
        assert decode_value(encoded).data == b"\x00\xffpng"

    def test_int_and_string(self):
        assert encode_value(3) == {"type": "int", "value": 3}
        assert encode_value("plan") == {"type": "string", "value": "plan"}
        assert decode_value({"type": "int", "value": "3"}) == 3

    def test_list(self):
        encoded = encode_value(["a", 1])
        assert decode_value(encoded) == ["a", 1]

    def test_malformed_payload(self):
        with pytest.raises(RecordDecodeError):
            decode_value("plain")

    def test_bad_timestamp(self):
        with pytest.raises(RecordDecodeError, match="timestamp"):
            decode_value({"type": "timestamp", "value": "yesterday"})

    def test_bad_asset(self):
        with pytest.raises(RecordDecodeError):
            decode_value({"type": "asset", "value": "not base64!"})

    def test_unknown_type(self):
        with pytest.raises(RecordDecodeError, match="Unknown field type"):
            decode_value({"type": "location", "value": "1,2"})


# =============================================================================
# Client
# =============================================================================

class TestAccountStatus:

    @pytest.mark.asyncio
    async def test_available(self):
        """Account status is read from the container's account endpoint"""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "available"})

        store = make_store(handler, api_key="secret")
        try:
            assert await store.account_status() == AccountStatus.AVAILABLE
        finally:
            await store.close()

        assert seen[0].url.path == f"{PREFIX}/account/status"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_unknown_status(self):
        """Unrecognized statuses are reported as undetermined"""
        store = make_store(lambda request: httpx.Response(200, json={"status": "mystery"}))
        try:
            assert await store.account_status() == AccountStatus.COULD_NOT_DETERMINE
        finally:
            await store.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403, 503])
    async def test_unavailable_statuses(self, status_code):
        """Auth failures and 503 mean the remote is unavailable"""
        store = make_store(lambda request: httpx.Response(status_code, json={}))
        try:
            with pytest.raises(RemoteUnavailableError):
                await store.account_status()
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection failures mean the remote is unavailable"""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(handler)
        try:
            with pytest.raises(RemoteUnavailableError):
                await store.account_status()
        finally:
            await store.close()


class TestRecordOperations:

    @pytest.mark.asyncio
    async def test_save_sends_policy_and_encoded_fields(self):
        """Saves post every record with the changed-keys policy"""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            bodies.append(body)
            saved = dict(body["records"][0], modified_at=STAMP.isoformat())
            return httpx.Response(200, json={"records": [saved]})

        record = RemoteRecord(
            record_type="Event", record_name="evt1",
            fields={"title": "Hiking", "startDate": STAMP, "dayMask": 1},
        )
        store = make_store(handler)
        try:
            saved = await store.save_records([record], save_policy=SavePolicy.CHANGED_KEYS)
        finally:
            await store.close()

        assert bodies[0]["save_policy"] == "changed_keys"
        assert bodies[0]["records"][0]["fields"]["startDate"] == {
            "type": "timestamp", "value": STAMP.isoformat()
        }
        assert saved[0].record_name == "evt1"
        assert saved[0].modified_at == STAMP
        assert saved[0].fields["startDate"] == STAMP

    @pytest.mark.asyncio
    async def test_save_rejected(self):
        """Other error statuses are operation failures"""
        store = make_store(lambda request: httpx.Response(409, text="conflict"))
        try:
            with pytest.raises(RemoteOperationError, match="409"):
                await store.save_records([RemoteRecord(record_type="Event", record_name="e")])
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_query_payload(self):
        """Filters travel with their values encoded"""
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"records": []})

        store = make_store(handler)
        try:
            result = await store.query(
                "ReminderConfig",
                [QueryFilter(field="eventRef", op="in", value=["a", "b"]),
                 QueryFilter(field="startDate", op="<=", value=STAMP)],
                desired_keys=["mode"],
            )
        finally:
            await store.close()

        assert result == []
        assert bodies[0] == {
            "record_type": "ReminderConfig",
            "filters": [
                {"field": "eventRef", "op": "in", "value": ["a", "b"]},
                {"field": "startDate", "op": "<=", "value": STAMP.isoformat()},
            ],
            "desired_keys": ["mode"],
        }

    @pytest.mark.asyncio
    async def test_fetch_decodes_references(self):
        """Fetched records come back with typed field values"""
        payload = {"records": [{
            "record_type": "ReminderConfig",
            "record_name": "rem1",
            "fields": {
                "eventRef": {"type": "reference", "value": "evt1", "action": "deleteSelf"},
                "offsetMinutes": {"type": "int", "value": 30},
            },
            "modified_at": STAMP.isoformat(),
        }]}
        store = make_store(lambda request: httpx.Response(200, json=payload))
        try:
            records = await store.fetch_records(["rem1"])
        finally:
            await store.close()

        assert records[0].fields["eventRef"].record_name == "evt1"
        assert records[0].fields["offsetMinutes"] == 30

    @pytest.mark.asyncio
    async def test_malformed_record_payload(self):
        """A record without a type is rejected at the boundary"""
        store = make_store(lambda request: httpx.Response(200, json={"records": [{"record_name": "x"}]}))
        try:
            with pytest.raises(RecordDecodeError):
                await store.fetch_records(["x"])
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_delete_returns_names(self):
        """Deletes report the names removed"""
        store = make_store(lambda request: httpx.Response(200, json={"deleted": ["a"]}))
        try:
            assert await store.delete_records(["a", "b"]) == ["a"]
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_user_record_name_required(self):
        """A user-record response without a name is an operation failure"""
        store = make_store(lambda request: httpx.Response(200, json={}))
        try:
            with pytest.raises(RemoteOperationError):
                await store.fetch_user_record_name()
        finally:
            await store.close()
