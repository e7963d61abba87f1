#!/usr/bin/env python3
"""Local store configuration

SQLite file location and worker pool sizing for the on-device store.
"""
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
class StoreConfig:
    """Local store configuration"""
    store_path: str = "data/weekend_horizon.sqlite"
    in_memory: bool = False
    worker_threads: int = 2
    echo_sql: bool = False

    @property
    def database_url(self) -> str:
        if self.in_memory:
            return "sqlite://"
        return f"sqlite:///{self.store_path}"

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Load store config from environment variables"""
        return cls(
            store_path=os.getenv("WEEKEND_STORE_PATH", "data/weekend_horizon.sqlite"),
            in_memory=_bool(os.getenv("WEEKEND_STORE_IN_MEMORY", "false")),
            worker_threads=_int(os.getenv("WEEKEND_WORKER_THREADS", "2"), 2),
            echo_sql=_bool(os.getenv("WEEKEND_STORE_ECHO", "false")),
        )
