"""
API Test Layer Configuration (Layer 1)

HTTP contract tests against the FastAPI app through TestClient. The
application runs its real lifespan with an in-memory store, the in-process
event bus and an in-memory remote record store.

Usage:
    pytest tests/api -v
"""
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import AppConfig, CloudConfig, ReminderSettings, StoreConfig
from services.cloud_service.models import AccountStatus
from services.weekend_service import main
from tests.component.mocks import InMemoryRecordStore, MockImageCodec
from tests.contracts.weekend import WeekendTestDataFactory

API_PREFIX = "/api/v1/weekend"


def _make_application(tmp_path, remote: InMemoryRecordStore) -> "main.WeekendApplication":
    settings = AppConfig(
        environment="testing",
        store=StoreConfig(in_memory=True),
        cloud=CloudConfig(asset_staging_dir=str(tmp_path / "staging")),
        reminders=ReminderSettings(preferences_path=str(tmp_path / "prefs.json")),
    )
    application = main.WeekendApplication(settings=settings)
    application.remote = remote
    application.image_codec = MockImageCodec()
    return application


@pytest.fixture
def remote_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(user_record_name=WeekendTestDataFactory.make_user_record_name())


@pytest.fixture
def application(tmp_path, remote_store, monkeypatch):
    application = _make_application(tmp_path, remote_store)
    monkeypatch.setattr(main, "application", application)
    return application


@pytest.fixture
def client(application):
    """TestClient with the app started and signed in"""
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def signed_out_client(tmp_path, monkeypatch):
    """TestClient whose remote store reports no cloud account"""
    remote = InMemoryRecordStore(status=AccountStatus.NO_ACCOUNT)
    monkeypatch.setattr(main, "application", _make_application(tmp_path, remote))
    with TestClient(main.app) as test_client:
        yield test_client
