"""
Reminder preferences persisted as a small JSON file.
"""

import json
import logging
import os
import threading
from typing import Optional

from pydantic import ValidationError

from .models import ReminderMode, ReminderPreferences
from .protocols import StorageError

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Reads and writes ReminderPreferences; a missing file means defaults"""

    def __init__(
        self,
        path: Optional[str] = None,
        default_offset_minutes: int = 60,
        default_mode: ReminderMode = ReminderMode.IN_APP,
    ):
        self.path = path
        self._defaults = ReminderPreferences(
            default_offset_minutes=default_offset_minutes,
            default_mode=default_mode,
        )
        self._cached: Optional[ReminderPreferences] = None
        self._lock = threading.Lock()

    def load(self) -> ReminderPreferences:
        with self._lock:
            if self._cached is not None:
                return self._cached.model_copy()

            preferences = self._defaults.model_copy()
            if self.path and os.path.exists(self.path):
                try:
                    with open(self.path, "r", encoding="utf-8") as f:
                        preferences = ReminderPreferences.model_validate(json.load(f))
                except (OSError, ValueError, ValidationError) as e:
                    logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")

            # A stored zero offset means the preference was never set
            if preferences.default_offset_minutes == 0:
                preferences.default_offset_minutes = self._defaults.default_offset_minutes

            self._cached = preferences
            return preferences.model_copy()

    def save(self, preferences: ReminderPreferences) -> None:
        with self._lock:
            if self.path:
                try:
                    directory = os.path.dirname(os.path.abspath(self.path))
                    os.makedirs(directory, exist_ok=True)
                    with open(self.path, "w", encoding="utf-8") as f:
                        json.dump(preferences.model_dump(mode="json"), f, indent=2)
                except OSError as e:
                    raise StorageError(f"Failed to save preferences: {e}") from e
            self._cached = preferences.model_copy()
        logger.info(
            f"Saved reminder preferences: {preferences.default_offset_minutes} min, "
            f"{preferences.default_mode.value}"
        )
