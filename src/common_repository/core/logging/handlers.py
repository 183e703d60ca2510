"""
Handler factories for logging.dictConfig.

Each helper returns a handler configuration dictionary (not a handler instance),
so the builder stays a plain data assembler and every helper is a pure function
that is trivial to unit test.

The formatter names ("json", "standard") and the filter name ("redact") must
exist in the surrounding dictConfig; builder.py defines them.
"""

from pathlib import Path

from ...config.settings import Settings


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    """
    Console/stream handler for every record at or above LOG_LEVEL.

    StreamHandler writes to sys.stderr unless a "stream" key is given
    (e.g. "ext://sys.stdout").
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": ["redact"],
    }


def get_file_handler(settings: Settings) -> dict:
    file_path = str(Path(settings.LOG_DIR) / "app.log")
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": file_path,
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        # open lazily so building the config never touches the filesystem
        "delay": True,
        "filters": ["redact"],
    }


# Error-specific rotating file to separate errors (useful for alerting/archival).
def get_error_file_handler(settings: Settings) -> dict:
    error_file_path = str(Path(settings.LOG_DIR) / "errors.log")
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",  # keep error files structured for easier ingestion
        "level": "ERROR",
        "filename": error_file_path,
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "delay": True,
        "filters": ["redact"],
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": ["redact"],
    }
