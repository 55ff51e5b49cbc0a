"""Logging setup: one stdout handler, plain text or one JSON object per line."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Loggers that are noise at INFO: SQL echo and passlib's bcrypt version check.
QUIET_LOGGERS = {"sqlalchemy.engine": logging.WARNING, "passlib": logging.ERROR}


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Replace the root handlers with a single stdout handler.

    ``format_type`` is ``"standard"`` or ``"json"``; ``LOG_LEVEL`` and
    ``LOG_FORMAT`` in the settings feed both arguments.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    logging.getLogger("nivasa").setLevel(log_level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Structured values passed as ``extra={"fields": {...}}`` (the request
    method, path, status and duration from the HTTP middleware) are merged
    into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            data.update(fields)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
