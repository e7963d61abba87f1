"""
Weekend Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_sync_service
    sync = create_sync_service(settings, event_bus)
"""
from typing import Optional

from core.config import AppConfig, ReminderSettings, StoreConfig

from .models import ReminderMode
from .protocols import ImageCodecProtocol, LocalStoreProtocol
from .sync_service import SyncService


def create_local_store(config: StoreConfig) -> LocalStoreProtocol:
    """
    Create and open the SQLite store.

    Raises:
        StoreCorruptedError: The store could not be opened or recreated
    """
    # Import real store here (not at module level)
    from .local_store import LocalStore

    store = LocalStore(database_url=config.database_url, echo=config.echo_sql)
    store.open()
    return store


def create_preferences_store(settings: ReminderSettings):
    from .preferences import PreferencesStore

    return PreferencesStore(
        path=settings.preferences_path,
        default_offset_minutes=settings.default_offset_minutes,
        default_mode=ReminderMode(settings.default_mode),
    )


def create_sync_service(
    settings: AppConfig,
    event_bus=None,
    store: Optional[LocalStoreProtocol] = None,
    remote=None,
    image_codec: Optional[ImageCodecProtocol] = None,
) -> SyncService:
    """
    Create SyncService with real dependencies.

    Args:
        settings: Application settings
        event_bus: Event bus for publishing data changes
        store: Optional local store (defaults to the configured SQLite store)
        remote: Optional remote record store (defaults to the configured one)
        image_codec: Optional avatar resizer

    Returns:
        SyncService instance with real dependencies
    """
    if store is None:
        store = create_local_store(settings.store)

    if remote is None:
        from services.cloud_service.factory import create_record_store

        remote = create_record_store(settings.cloud)

    return SyncService(
        store=store,
        remote=remote,
        event_bus=event_bus,
        worker_threads=settings.store.worker_threads,
        image_codec=image_codec,
        asset_staging_dir=settings.cloud.asset_staging_dir or None,
        default_timezone=settings.default_timezone,
    )
