from __future__ import annotations

import logging
import logging.config
from pathlib import Path

LOG_FILE_NAME = "gmail_reader.log"


def configure_logging(log_dir: Path, level: str = "INFO") -> Path:
    """Configure console and rotating ``gmail_reader.log`` output for the reader service.

    uvicorn's server and access loggers drop their own handlers and propagate to
    the root handlers, so HTTP requests land in the same file as Gmail calls.
    The discovery-cache warnings from ``googleapiclient`` are silenced because
    every client is built with ``cache_discovery=False``. Access tokens are never
    logged in full; callers pass them through :func:`mask_token`.
    """

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
            "console": {
                "format": "%(levelname)s | %(message)s",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "standard",
                "filename": str(log_path),
                "maxBytes": 1_000_000,
                "backupCount": 3,
                "encoding": "utf-8",
            },
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "console",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": [], "propagate": True},
            "uvicorn.access": {"handlers": [], "propagate": True},
            "googleapiclient.discovery_cache": {"level": "ERROR"},
        },
        "root": {
            "handlers": ["file", "stdout"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured at %s", level)
    return log_path


def mask_token(token: str) -> str:
    return f"{token[:10]}..." if token else "<empty>"
