"""
Structured logging configuration for the knowledge sync service.

JSON output in production, a readable single-line format in development.
Both carry the correlation ID of the current request or migration run.

Usage:
    from app.shared.logging_config import setup_logging

    # At application startup (main.py, run_migration.py):
    setup_logging(service_name="linkai-knowledge-sync")

    # In modules:
    logger = logging.getLogger("LinkAI.Knowledge.Orchestrator")
    logger.info("Synced content", extra={"source_id": source_id})

Output format (JSON, one line per log):
    {
        "timestamp": "2026-01-28T10:30:00.123456Z",
        "level": "INFO",
        "logger": "LinkAI.Knowledge.Orchestrator",
        "message": "Synced catalog content c1",
        "service": "linkai-knowledge-sync",
        "correlation_id": "migration-1a2b3c4d",
        "source_id": "s1"
    }
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

# Attributes every LogRecord carries; anything else came in via ``extra``
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class CorrelationIdFilter(logging.Filter):
    """Inject the context's correlation_id into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            from app.shared.correlation import get_correlation_id
            record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        extras = ", ".join(f"{k}={v}" for k, v in _extra_fields(record).items())
        formatted = f"{timestamp} [{record.levelname}] [{correlation_id}] {record.name}: {record.getMessage()}"
        if extras:
            formatted += f" | {extras}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(
    service_name: str,
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure root logging for the application.

    Args:
        service_name: Name of the service, stamped on JSON records
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        json_output: JSON vs human-readable. Defaults to JSON unless
                     ENVIRONMENT is "development".
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, level, logging.INFO)

    if json_output is None:
        json_output = os.getenv("ENVIRONMENT", "production").lower() != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter(service_name) if json_output else HumanReadableFormatter())
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    for logger_name in ("httpx", "httpcore", "openai", "postgrest", "hpack"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(f"{service_name}.startup").info(
        "Logging configured",
        extra={"log_level": level, "json_output": json_output},
    )
