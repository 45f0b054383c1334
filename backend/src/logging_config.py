"""Central logging configuration for the API server and CLI."""

from __future__ import annotations

import logging.config
import os
from typing import Optional


_CONFIGURED = False

_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(default_level: Optional[str] = None, *, sql_echo: bool = False) -> None:
    """Send application, uvicorn and SQLAlchemy logs to stdout with one formatter."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    level_name = (default_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    loggers: dict[str, dict] = {
        name: {"level": level_name, "handlers": ["stdout"], "propagate": False}
        for name in _ROUTED_LOGGERS
    }
    # SQL statement logging is opt-in; otherwise it drowns the label events
    loggers["sqlalchemy.engine"] = {"level": "INFO" if sql_echo else "WARNING"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {
                "level": level_name,
                "handlers": ["stdout"],
            },
            "loggers": loggers,
        }
    )

    _CONFIGURED = True
