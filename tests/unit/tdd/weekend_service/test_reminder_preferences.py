"""
Unit Tests: Reminder Preferences and Timezone Helpers

Usage:
    pytest tests/unit/tdd/weekend_service/test_reminder_preferences.py -v
"""
import json
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from services.weekend_service.models import ReminderMode, ReminderPreferences
from services.weekend_service.preferences import PreferencesStore
from services.weekend_service.timezones import localize, resolve_timezone

pytestmark = [pytest.mark.unit, pytest.mark.tdd]


class TestPreferencesStore:

    def test_missing_file_gives_defaults(self, tmp_path):
        store = PreferencesStore(path=str(tmp_path / "prefs.json"), default_offset_minutes=30)

        preferences = store.load()

        assert preferences.default_offset_minutes == 30
        assert preferences.default_mode == ReminderMode.IN_APP

    def test_save_then_load_from_new_store(self, tmp_path):
        path = str(tmp_path / "nested" / "prefs.json")
        PreferencesStore(path=path).save(
            ReminderPreferences(default_offset_minutes=90, default_mode=ReminderMode.PUSH)
        )

        preferences = PreferencesStore(path=path).load()

        assert preferences.default_offset_minutes == 90
        assert preferences.default_mode == ReminderMode.PUSH

    def test_file_is_json(self, tmp_path):
        path = tmp_path / "prefs.json"
        PreferencesStore(path=str(path)).save(ReminderPreferences(default_offset_minutes=15))

        data = json.loads(path.read_text())
        assert data == {"default_offset_minutes": 15, "default_mode": "inApp"}

    def test_zero_offset_falls_back_to_default(self, tmp_path):
        """A stored zero means the preference was never set"""
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"default_offset_minutes": 0, "default_mode": "push"}))

        preferences = PreferencesStore(path=str(path), default_offset_minutes=60).load()

        assert preferences.default_offset_minutes == 60
        assert preferences.default_mode == ReminderMode.PUSH

    def test_unreadable_file_gives_defaults(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")

        assert PreferencesStore(path=str(path)).load() == ReminderPreferences()

    def test_load_returns_copies(self, tmp_path):
        store = PreferencesStore(path=str(tmp_path / "prefs.json"))
        first = store.load()
        first.default_offset_minutes = 5

        assert store.load().default_offset_minutes == 60

    def test_memory_only_store(self):
        store = PreferencesStore(path=None)
        store.save(ReminderPreferences(default_offset_minutes=45))
        assert store.load().default_offset_minutes == 45


class TestTimezones:

    def test_resolves_known_zone(self):
        assert resolve_timezone("Europe/Paris") == ZoneInfo("Europe/Paris")

    def test_unknown_zone_uses_fallback(self):
        assert resolve_timezone("Mars/Olympus", fallback="Asia/Tokyo") == ZoneInfo("Asia/Tokyo")

    def test_unknown_fallback_uses_utc(self):
        assert resolve_timezone("Nowhere/Place", fallback="Also/Nowhere") == timezone.utc

    def test_none_uses_fallback(self):
        assert resolve_timezone(None) == ZoneInfo("UTC")

    def test_strict_raises(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            resolve_timezone("Mars/Olympus", strict=True)

    def test_localize_naive_is_wall_clock(self):
        tz = ZoneInfo("America/Chicago")
        result = localize(datetime(2024, 6, 1, 10), tz)
        assert result.hour == 10
        assert result.tzinfo is tz

    def test_localize_aware_converts(self):
        tz = ZoneInfo("Asia/Tokyo")
        result = localize(datetime(2024, 6, 1, 0, tzinfo=timezone.utc), tz)
        assert result.hour == 9
        assert result == datetime(2024, 6, 1, 0, tzinfo=timezone.utc)
