"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Adds service, env
    and version to every record and carries the structured `extra={...}` fields
    that repository events attach (model, operation, rowcount, ...).

  - ColorFormatter: compact ANSI-coloured lines for a developer console.

builder.py picks one per handler from LOG_FORMAT.
"""

import copy
import json
import logging
from typing import Any
from logging import LogRecord
from ...utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord carries; anything else on the record came from `extra`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g. "development" | "production").
      - service: logical service name included in every line.
      - datefmt: passed to logging.Formatter (used by formatTime).

    Non-serializable extras are converted with str() so formatting never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "common-repository", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter. The default layout is

        TIMESTAMP | LEVEL | LOGGER | MESSAGE [key=value ...]

    and `fmt` replaces it with the same semantics as logging.Formatter. Only
    %(levelname)s is colorized. Structured extras (model, operation, ...) are
    appended as key=value pairs so repository events stay readable.
    """

    DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)-30s | %(message)s"

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",  # bold cyan on white
        "INFO": "\033[32m",  # green
        "WARNING": "\033[33m",  # yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[1;41m",  # bold on red background
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt or self.DEFAULT_FORMAT, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        # reset right after the level name so the color does not spill into the message
        reset = self.COLOR_CODES["RESET"]

        # color a copy; other handlers share the same record
        colored = copy.copy(record)
        colored.levelname = f"{color}{record.levelname:<10}{reset}"
        colored.message = record.getMessage()
        if self.usesTime():
            colored.asctime = self.formatTime(record, self.datefmt)
        base = self.formatMessage(colored)

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        ]
        if extras:
            base = f"{base} [{' '.join(extras)}]"

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
