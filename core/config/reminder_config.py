#!/usr/bin/env python3
"""Reminder and local notification configuration"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class ReminderSettings:
    """Reminder scheduling settings"""
    preferences_path: str = "data/reminder_preferences.json"
    notifications_authorized: bool = True
    snooze_minutes: int = 15
    default_offset_minutes: int = 60
    default_mode: str = "inApp"

    @classmethod
    def from_env(cls) -> 'ReminderSettings':
        """Load reminder settings from environment variables"""
        return cls(
            preferences_path=os.getenv("REMINDER_PREFERENCES_PATH", "data/reminder_preferences.json"),
            notifications_authorized=_bool(os.getenv("NOTIFICATIONS_AUTHORIZED", "true")),
            snooze_minutes=_int(os.getenv("SNOOZE_MINUTES", "15"), 15),
            default_offset_minutes=_int(os.getenv("DEFAULT_REMINDER_OFFSET", "60"), 60),
            default_mode=os.getenv("DEFAULT_REMINDER_MODE", "inApp"),
        )
