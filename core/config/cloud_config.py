#!/usr/bin/env python3
"""Cloud record store configuration"""
import os
import tempfile
from dataclasses import dataclass
from typing import Optional

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class CloudConfig:
    """Remote record store settings"""
    store_url: Optional[str] = None
    timeout: float = 30.0
    api_key: Optional[str] = None
    container: str = "weekend-horizon"
    asset_staging_dir: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.store_url)

    @classmethod
    def from_env(cls) -> 'CloudConfig':
        """Load cloud config from environment variables"""
        return cls(
            store_url=os.getenv("CLOUD_STORE_URL") or None,
            timeout=_float(os.getenv("CLOUD_STORE_TIMEOUT", "30"), 30.0),
            api_key=os.getenv("CLOUD_STORE_API_KEY") or None,
            container=os.getenv("CLOUD_STORE_CONTAINER", "weekend-horizon"),
            asset_staging_dir=os.getenv("CLOUD_ASSET_STAGING_DIR", tempfile.gettempdir()),
        )
