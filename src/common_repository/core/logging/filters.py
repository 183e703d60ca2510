"""
Logging filters.

RedactFilter masks sensitive attributes on a LogRecord before any handler
formats it. Attributes arrive on the record through `extra={...}`, so a
careless `logger.info("...", extra={"password": ...})` is still safe to emit.

Install it through dictConfig and attach it to every handler:

    "filters": {"redact": {"()": RedactFilter}},
    "handlers": {"console": {..., "filters": ["redact"]}}
"""

import logging
from logging import LogRecord
from typing import Any

REDACTED = "***REDACTED***"


def _redact_mapping(value: dict, sensitive: frozenset[str]) -> dict:
    redacted: dict[str, Any] = {}
    for key, item in value.items():
        if isinstance(key, str) and key.lower() in sensitive:
            redacted[key] = REDACTED
        elif isinstance(item, dict):
            redacted[key] = _redact_mapping(item, sensitive)
        else:
            redacted[key] = item
    return redacted


# Redact sensitive information
class RedactFilter(logging.Filter):
    """
    Mask record attributes (and keys of dict-valued attributes) whose name is sensitive.

    Always returns True: the filter annotates records, it never drops them.
    """

    SENSITIVE = frozenset(
        {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization", "api_key"}
    )

    def filter(self, record: LogRecord) -> bool:
        for key, value in list(record.__dict__.items()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = REDACTED
            elif isinstance(value, dict) and key != "__dict__":
                record.__dict__[key] = _redact_mapping(value, self.SENSITIVE)
        return True
