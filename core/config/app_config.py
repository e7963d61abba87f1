#!/usr/bin/env python3
"""Weekend Horizon main configuration

Combines all sub-configs for the weekend planner process.
"""
import os
from dataclasses import dataclass, field

from .cloud_config import CloudConfig
from .logging_config import LoggingConfig
from .reminder_config import ReminderSettings
from .store_config import StoreConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class AppConfig:
    """Complete application configuration"""
    environment: str = "development"
    debug: bool = False

    service_host: str = "0.0.0.0"
    service_port: int = 8240
    default_timezone: str = "UTC"

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    cloud: CloudConfig = field(default_factory=CloudConfig)
    reminders: ReminderSettings = field(default_factory=ReminderSettings)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),

            service_host=os.getenv("HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8240"), 8240),
            default_timezone=os.getenv("DEFAULT_TIMEZONE", "UTC"),

            logging=LoggingConfig.from_env(),
            store=StoreConfig.from_env(),
            cloud=CloudConfig.from_env(),
            reminders=ReminderSettings.from_env(),
        )
