"""
Cloud Service Factory

Factory functions for creating the remote record store with real dependencies.
This is the ONLY place that imports the HTTP client.
"""
import logging
from typing import Optional

from core.config import CloudConfig

from .protocols import RemoteRecordStoreProtocol

logger = logging.getLogger(__name__)


def create_record_store(config: CloudConfig) -> Optional[RemoteRecordStoreProtocol]:
    """
    Create the HTTP record store.

    Returns:
        None when no store URL is configured (local-only mode)
    """
    if not config.enabled:
        logger.info("No cloud store configured, running local-only")
        return None

    from .http_store import HttpRecordStore

    return HttpRecordStore(
        base_url=config.store_url,
        api_key=config.api_key,
        timeout=config.timeout,
        container=config.container,
    )
