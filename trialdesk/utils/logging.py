"""
Structured JSON Logging
Console logging for the trialdesk client, with optional JSON records carrying request context.
"""
import json
import logging
import sys
from datetime import datetime, timezone
import os

# Check if JSON logging is enabled
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info", "taskName",
}


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Log format:
    {
        "ts": "2024-01-01T00:00:00Z",
        "level": "INFO",
        "logger": "trialdesk.services.backend_client",
        "message": "PATCH /api/v1/therapeutic/overview/42 -> 200",
        "method": "PATCH",
        "route": "/api/v1/therapeutic/overview/42",
        "status": 200,
        "latency_ms": 123,
        "user_id": "uuid",
        "error": null
    }
    """

    def __init__(self, json_output: bool = None, **kwargs):
        super().__init__(**kwargs)
        self.json_output = LOG_JSON if json_output is None else json_output

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        if not self.json_output:
            # Use standard format if JSON logging not enabled
            return super().format(record)

        log_data = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Request context passed through `extra=`
        for key in ("method", "route", "status", "latency_ms", "user_id", "record_id"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["error"] = self.formatException(record.exc_info)
        elif hasattr(record, "error"):
            log_data["error"] = record.error

        # Any other extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_structured_logging(level: str = None, json_output: bool = None):
    """Setup console logging for CLI runs."""
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        StructuredJSONFormatter(
            json_output=json_output,
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    )
    root_logger.addHandler(handler)

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    return root_logger
