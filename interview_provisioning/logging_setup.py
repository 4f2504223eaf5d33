"""Central logging configuration for the provisioning service.

Installs one stdout handler on the root logger so every module logger emits
INFO-level `event key=value` lines without per-module setup. Keeps uvicorn
loggers on the same handler and avoids duplicate handlers on reloads.

The storage gateway logger (`interview_provisioning.db.gateway`) takes its
level from `STORAGE_LOG_LEVEL` (default INFO); set it to DEBUG to see one line
per insert and delete, including row counts.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "interview_provisioning.db.gateway": {"level": os.environ.get("STORAGE_LOG_LEVEL", "INFO")},
    },
}


def configure_logging() -> None:
    """Configure application-wide logging once.

    Returns early when the root logger already has handlers (reloaders,
    test runners).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_DICT_CONFIG)
