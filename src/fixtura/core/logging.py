"""
fixtura logging setup.

Library modules log under the ``fixtura`` logger and never configure
handlers themselves. Applications and the CLI call ``setup_logging`` to get:
- Console output in a short human-readable form (stderr)
- Optionally, a JSONL file where each line is one complete JSON object
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOGGER_NAME = "fixtura"

_NO_COLOR = bool(os.environ.get("NO_COLOR")) or not sys.stderr.isatty()


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "" if _NO_COLOR else "\033[0m"
    DIM = "" if _NO_COLOR else "\033[2m"

    DEBUG = "" if _NO_COLOR else "\033[36m"  # Cyan
    INFO = "" if _NO_COLOR else "\033[32m"  # Green
    WARNING = "" if _NO_COLOR else "\033[33m"  # Yellow
    ERROR = "" if _NO_COLOR else "\033[31m"  # Red
    CRITICAL = "" if _NO_COLOR else "\033[35m"  # Magenta


class JSONLFormatter(logging.Formatter):
    """
    Formats log records as JSON Lines.

    Each entry holds timestamp, level, logger, message, and where present
    the ``context`` extra, the source location (WARNING and above) and
    exception details.

    Example output:
    {"timestamp":"2024-01-15T10:30:45.123+00:00","level":"DEBUG","logger":"fixtura.core.resolver","message":"Compiled plan for user with traits ('admin',): 3 layers, 4 attributes"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.levelno >= logging.WARNING:
            source_info: dict[str, Any] = {}
            if record.pathname:
                source_info["file"] = record.pathname
            if record.lineno:
                source_info["line"] = record.lineno
            if record.funcName and record.funcName != "<module>":
                source_info["function"] = record.funcName
            if source_info:
                entry["source"] = source_info

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DEBUG,
        logging.INFO: Colors.INFO,
        logging.WARNING: Colors.WARNING,
        logging.ERROR: Colors.ERROR,
        logging.CRITICAL: Colors.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        # fixtura.core.resolver -> resolver
        component = record.name.rsplit(".", 1)[-1]

        if _NO_COLOR:
            prefix = f"[{timestamp}] [{component}]"
        else:
            prefix = f"{Colors.DIM}{timestamp}{Colors.RESET} [{component}]"

        if record.levelno != logging.INFO:
            level_name = record.levelname
            if not _NO_COLOR:
                level_color = self.LEVEL_COLORS.get(record.levelno, "")
                level_name = f"{level_color}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(
    level: int | str = logging.WARNING,
    log_file: Path | str | None = None,
    json: bool = False,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``fixtura`` logger.

    Replaces any handlers installed by an earlier call, so calling it
    twice does not duplicate output.

    Args:
        level: Minimum level, as a number or a name like "DEBUG"
        log_file: Also write JSONL records to this file (rotated)
        json: Write JSONL to the console instead of the readable format
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured ``fixtura`` logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(JSONLFormatter() if json else ConsoleFormatter())
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONLFormatter())
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

        logger.debug(
            "fixtura logging initialized",
            extra={"context": {"log_format": "jsonl", "log_file": str(path)}},
        )

    return logger
