"""
Log formatters for structured and console output.

JSONFormatter emits one JSON object per line with the `extra` fields of the
record promoted to top-level keys, so a run summary logged with
`extra={"count": ..., "success": ...}` can be consumed directly by log
pipelines. ConsoleFormatter renders the same information for humans.
"""

import json
import logging
import os
import sys
import traceback
from datetime import UTC, datetime

# Attributes every LogRecord carries; anything else came in through `extra`
RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})


def extract_extra(record: logging.LogRecord) -> dict:
    """Return the user supplied `extra` fields of a log record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    JSON line formatter

    Produces `{"time", "level", "msg", "logger", "app", ...extra}`. Extra
    fields that collide with the base keys are nested under "fields" instead
    of overwriting them.
    """

    BASE_KEYS = ("time", "level", "msg", "logger", "app", "hostname")

    def __init__(
        self,
        include_timestamp: bool = True,
        include_hostname: bool = False,
        include_source: bool = False,
        app_name: str = "sqlload",
    ):
        """
        Initialize JSON formatter

        Args:
            include_timestamp: Include ISO8601 timestamp under "time"
            include_hostname: Include hostname in log records
            include_source: Include file/line/function and thread info
            app_name: Application name to include in logs
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_hostname = include_hostname
        self.include_source = include_source
        self.app_name = app_name
        self.hostname = os.uname().nodename if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
            "logger": record.name,
            "app": self.app_name,
        }

        if self.include_timestamp:
            log_data["time"] = datetime.fromtimestamp(
                record.created, UTC
            ).isoformat()

        if self.include_hostname and self.hostname:
            log_data["hostname"] = self.hostname

        if self.include_source:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
                "thread": record.threadName,
            }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        collisions = {}
        for key, value in extract_extra(record).items():
            if key in self.BASE_KEYS or key in log_data:
                collisions[key] = value
            else:
                log_data[key] = value

        if collisions:
            log_data["fields"] = collisions

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with optional ANSI colours."""

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        try:
            formatted = super().format(record)
        finally:
            record.levelname = levelname

        extra_items = [f"{key}={value}" for key, value in extract_extra(record).items()]
        if extra_items:
            formatted += f" [{', '.join(extra_items)}]"

        return formatted
