"""Logging configuration."""

import logging
import sys
from typing import Optional

from cryptovault.config.settings import get_settings

# Price refresh and the live ticker log from their own threads
LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "websocket": logging.WARNING,
}


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging from settings (or an explicit level name)."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name, logger_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logger_level)
