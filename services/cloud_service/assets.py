"""
Asset Staging

Binary fields are uploaded from files. Blobs are written to temporary
files before a save and removed once the save has finished.
"""

import logging
import os
import tempfile
from typing import List, Optional

from .models import RecordAsset

logger = logging.getLogger(__name__)


class AssetStager:
    """Writes blobs to temp files for upload and cleans them up"""

    def __init__(self, staging_dir: Optional[str] = None):
        self.staging_dir = staging_dir or tempfile.gettempdir()
        self._staged: List[str] = []

    def stage(self, data: bytes, suffix: str = ".jpg") -> RecordAsset:
        """Write data to a new temp file and return the asset pointing at it"""
        os.makedirs(self.staging_dir, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            prefix="asset_", suffix=suffix, dir=self.staging_dir, delete=False
        )
        with handle:
            handle.write(data)
        self._staged.append(handle.name)
        logger.debug(f"Staged asset {handle.name} ({len(data)} bytes)")
        return RecordAsset(file_path=handle.name)

    def cleanup(self) -> int:
        """Remove every staged file, returning how many were removed"""
        removed = 0
        for path in self._staged:
            try:
                os.remove(path)
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove staged asset {path}: {e}")
        self._staged = []
        return removed

    @property
    def staged_paths(self) -> List[str]:
        return list(self._staged)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
