"""
Logging configuration for LogiFlow.

Call ``setup_logging()`` once at process start (``server.py`` does this).
Library modules keep using ``logging.getLogger(__name__)``; the store layer
logs through the shared ``logger`` exported here.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOGGER_NAME = "logiflow"

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Logger:
    """Configure the root logger from LOG_LEVEL / LOG_FORMAT."""
    global _configured

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("LOG_FORMAT", "plain")).lower()

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        if log_format == "json":
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(
                logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
            )
        root.handlers = [handler]
        _configured = True

    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Too chatty at INFO
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger(LOGGER_NAME)


logger = logging.getLogger(LOGGER_NAME)
