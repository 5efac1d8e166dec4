# /smart-lms-backend/app/core/logging_config.py

"""
Centralized logging setup.

Development gets a compact human-readable format; production emits one JSON
object per line so the output can be shipped to a log aggregator. Modules
never configure handlers themselves, they only call `logging.getLogger(__name__)`.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from . import config


class JSONFormatter(logging.Formatter):
    """Formats a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging() -> logging.Logger:
    """Configures the `app` logger hierarchy once at startup."""
    logger = logging.getLogger("app")
    logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if config.ENVIRONMENT == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    # Suppress noisy loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger.info("Logging initialized (environment=%s, level=%s)", config.ENVIRONMENT, config.LOG_LEVEL)
    return logger
