"""
Logging setup for the API, the Celery worker and scripts.

Production emits one JSON object per line, including any `extra=` fields,
so payment events can be searched by order or payment id. Development uses
plain text.
"""

import sys
import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict

from sammilan.config import settings

# Attributes present on every LogRecord; anything else came in via `extra=`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "urllib3", "celery.beat")


class JSONFormatter(logging.Formatter):
    
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging() -> None:
    """Install a single stdout handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    if settings.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    
    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(logging.INFO if settings.is_production else logging.DEBUG)
    
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
