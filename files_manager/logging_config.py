"""
Logging configuration shared by the API and worker processes.

Status checks hit GET /status every few seconds; their access lines are
dropped so the log shows real traffic.
"""

import logging
import logging.config
from typing import Any, Dict, Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STATUS_PATHS = ("/status",)


class StatusCheckFilter(logging.Filter):
    """Filter to suppress status endpoint logs."""

    def __init__(self, paths: Iterable[str] = STATUS_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out status check requests from uvicorn access logs."""
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in self.paths))


def _stream_handler(formatter: str, *filters: str) -> Dict[str, Any]:
    handler = {"class": "logging.StreamHandler", "formatter": formatter, "stream": "ext://sys.stdout"}
    if filters:
        handler["filters"] = list(filters)
    return handler


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Build a dictConfig for uvicorn and the files_manager loggers.

    Args:
        level: Level for files_manager and root loggers; uvicorn stays at INFO
    """
    uvicorn_loggers = {
        name: {"handlers": [handler], "level": "INFO", "propagate": False}
        for name, handler in (
            ("uvicorn", "default"),
            ("uvicorn.error", "default"),
            ("uvicorn.access", "access"),
        )
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"status_check": {"()": StatusCheckFilter}},
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": _stream_handler("default"),
            "access": _stream_handler("access", "status_check"),
        },
        "loggers": {
            **uvicorn_loggers,
            "files_manager": {"handlers": ["default"], "level": level, "propagate": False},
        },
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the logging configuration for API and worker processes."""
    logging.config.dictConfig(get_logging_config(level))
