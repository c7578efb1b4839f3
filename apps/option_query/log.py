"""Logging setup for scripts and notebooks driving the query layer."""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S %Z%z"


def setup_logging(level: str | int | None = None, log_dir: str | None = None) -> logging.Logger:
    """
    Configure the root logger:
      - StreamHandler at *level* (default: settings LOG_LEVEL) to stdout.
      - TimedRotatingFileHandler at INFO to <log_dir>/option_query.log when
        *log_dir* is given (rotates at midnight, keeps 7 days).
    """
    if level is None:
        level = get_settings().LOG_LEVEL
    logger = logging.getLogger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=os.path.join(log_dir, "option_query.log"),
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
