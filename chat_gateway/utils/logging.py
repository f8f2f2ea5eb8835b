"""Central logging configuration utilities."""
from __future__ import annotations

import logging
from logging.config import dictConfig


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure application-wide logging."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "rich": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "rich",
                    "level": level,
                }
            },
            "loggers": {
                "": {
                    "handlers": ["console"],
                    "level": level,
                },
                "httpx": {"level": logging.WARNING},
            },
        }
    )
