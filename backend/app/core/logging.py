"""Logging setup shared by the API and the service layer.

Log messages are dotted event names followed by ``key=value`` context, e.g.
``task.transition.rejected task_id=... current=todo requested=completed``.
"""

from __future__ import annotations

import logging
import logging.config

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": _FORMAT}},
            "handlers": {
                "stream": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "app": {"handlers": ["stream"], "level": level.upper(), "propagate": False},
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
