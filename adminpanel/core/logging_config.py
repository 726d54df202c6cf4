"""Centralized logging configuration for the dashboard."""
from __future__ import annotations

import hashlib
import logging
import logging.handlers
import os
import time

from adminpanel.core.config import settings

SECURITY_LOGGER_NAME = "adminpanel.security"


def setup_logging(log_dir: str = "logs") -> None:
    """Configure dashboard and uvicorn loggers with UTC timestamps."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logging.Formatter.converter = time.gmtime

    file_handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, "adminpanel.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [file_handler, stream_handler]

    security_logger = logging.getLogger(SECURITY_LOGGER_NAME)
    security_logger.setLevel(log_level)
    security_logger.propagate = True

    # httpx logs every request line at INFO; the access middleware already does.
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)


def anonymise(value: str | None) -> str:
    """Short stable hash used to mention emails in logs without leaking them."""
    return hashlib.sha256((value or "").strip().lower().encode()).hexdigest()[:12]


__all__ = ["SECURITY_LOGGER_NAME", "anonymise", "setup_logging"]
