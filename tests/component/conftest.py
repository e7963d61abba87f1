"""
Component Test Layer Configuration (Layer 3)

Structure:
    tests/component/
    ├── tdd/         Service behaviour with mocked dependencies
    └── mocks/       Mock implementations

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.executors import WorkerPool
from services.weekend_service.local_store import LocalStore
from services.weekend_service.sync_service import SyncService
from tests.component.mocks import (
    InMemoryRecordStore,
    MockEventBus,
    MockImageCodec,
    MockNotificationCenter,
)
from tests.contracts.weekend import WeekendTestDataFactory


# =============================================================================
# Store and pool
# =============================================================================

@pytest.fixture
def local_store():
    """Fresh in-memory store"""
    store = LocalStore("sqlite://")
    store.open()
    yield store
    store.close()


@pytest.fixture
def worker_pool():
    pool = WorkerPool(max_workers=2)
    yield pool
    pool.shutdown()


# =============================================================================
# Mocks
# =============================================================================

@pytest.fixture
def mock_event_bus() -> MockEventBus:
    return MockEventBus()


@pytest.fixture
def remote_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(user_record_name=WeekendTestDataFactory.make_user_record_name())


@pytest.fixture
def notification_center() -> MockNotificationCenter:
    return MockNotificationCenter()


@pytest.fixture
def image_codec() -> MockImageCodec:
    return MockImageCodec()


# =============================================================================
# Sync service
# =============================================================================

@pytest.fixture
def sync_service(local_store, remote_store, mock_event_bus, worker_pool, image_codec, tmp_path):
    """SyncService wired to mocks; call start() to sign in"""
    return SyncService(
        store=local_store,
        remote=remote_store,
        event_bus=mock_event_bus,
        worker_pool=worker_pool,
        image_codec=image_codec,
        asset_staging_dir=str(tmp_path / "staging"),
    )


@pytest_asyncio.fixture
async def started_sync(sync_service):
    """SyncService with the cloud identity resolved"""
    await sync_service.start()
    yield sync_service
    await sync_service.wait_for_background()


@pytest.fixture
def offline_sync(local_store, mock_event_bus, worker_pool):
    """SyncService with no remote store"""
    return SyncService(store=local_store, remote=None, event_bus=mock_event_bus, worker_pool=worker_pool)
