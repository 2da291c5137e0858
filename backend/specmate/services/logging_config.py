"""Structured logging configuration for the SpecMate report service."""
import json
import logging
import sys
from datetime import datetime, timezone

# Optional ``extra=`` fields copied into the JSON record when present
_EXTRA_FIELDS = (
    "request_id",
    "log_id",
    "report_format",
    "duration_ms",
    "http_method",
    "http_path",
    "http_status",
)


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    # Suppress noisy loggers
    for name in ["uvicorn.access", "PIL", "httpx"]:
        logging.getLogger(name).setLevel(logging.WARNING)
