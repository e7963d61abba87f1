"""
Integration Test Layer Configuration (Layer 2)

Real SQLite files, the in-process event bus and several "devices" sharing
one in-memory remote record store.

Usage:
    pytest tests/integration -v
"""
import os
import sys

import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.event_bus import LocalEventBus
from core.executors import WorkerPool
from services.weekend_service.local_store import LocalStore
from services.weekend_service.sync_service import SyncService
from tests.component.mocks import InMemoryRecordStore
from tests.contracts.weekend import WeekendTestDataFactory


@pytest.fixture
def shared_remote() -> InMemoryRecordStore:
    """Remote store every device talks to, signed in as one cloud identity"""
    return InMemoryRecordStore(user_record_name=WeekendTestDataFactory.make_user_record_name())


@pytest.fixture
def store_url(tmp_path):
    def make(name: str) -> str:
        return f"sqlite:///{tmp_path / name}.sqlite"
    return make


@pytest_asyncio.fixture
async def make_device(tmp_path, shared_remote, store_url):
    """
    Factory for a device: file-backed store, own event bus and worker pool.

    The returned SyncService is not started.
    """
    created = []

    async def make(name: str) -> SyncService:
        bus = LocalEventBus(service_name=name)
        store = LocalStore(store_url(name))
        store.open()
        pool = WorkerPool(max_workers=2)
        sync = SyncService(
            store=store,
            remote=shared_remote,
            event_bus=bus,
            worker_pool=pool,
            asset_staging_dir=str(tmp_path / name / "staging"),
        )
        created.append((sync, bus, pool, store))
        return sync

    yield make

    for sync, bus, pool, store in created:
        await sync.wait_for_background()
        pool.shutdown()
        store.close()
        await bus.close()
