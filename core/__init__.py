#!/usr/bin/env python3
"""
Core Module for Weekend Horizon

Shared infrastructure used by every service package.

COMPONENTS:
    - config/: Environment-driven configuration dataclasses
    - logger.py: Service logger setup
    - event_bus.py: In-process event bus with NATS-style subject patterns
    - observable.py: Observable values for UI-affine state
    - executors.py: Worker pool for blocking store work

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger
    from core.event_bus import get_event_bus

    settings = get_settings()
    logger = setup_service_logger("weekend_service")
"""

__version__ = "1.0.0"
