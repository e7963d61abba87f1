#!/usr/bin/env python3
"""
Service Logger Setup

Configures the root handlers for a service process from LoggingConfig.
Modules keep using ``logging.getLogger(__name__)``; this only decides
where records go and how they look.
"""

import logging
import os
import sys
from typing import Optional

from core.config import LoggingConfig, get_settings

_configured_services = set()

LIBRARY_LOGGERS = ("sqlalchemy", "httpx", "httpcore", "uvicorn.access")


def setup_service_logger(
    service_name: str,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure logging for a service and return its logger.

    Args:
        service_name: Logger name (e.g. "weekend_service")
        config: Logging config, defaults to the global settings

    Returns:
        Logger for the service
    """
    config = config or get_settings().logging
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(config.log_format)

    root = logging.getLogger()
    root.setLevel(level)

    if service_name not in _configured_services:
        if config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)

        if config.log_file:
            log_dir = os.path.dirname(config.log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(config.log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        library_level = getattr(logging, config.library_log_level.upper(), logging.WARNING)
        for name in LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(library_level)

        _configured_services.add(service_name)

    logger = logging.getLogger(service_name)
    logger.setLevel(level)
    return logger
