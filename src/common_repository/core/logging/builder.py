"""
Logging builder: create and apply a dictConfig logging configuration from Settings.

    setup_logging(get_settings())

is all an application needs. make_dict_config() is split out so the mapping
can be inspected (and tested) without touching the global logging state.

Handler selection:
| `LOG_TO_STDOUT` | `LOG_DIR` set  | Active handlers                  |
| --------------- | -------------- | -------------------------------- |
| `true`          | doesn't matter | `console` + `error_console`      |
| `false`         | no             | `console` + `error_console`      |
| `false`         | yes            | `console` + `file` + `error_file`|
"""

from pathlib import Path
import logging
import logging.config

from ...config.settings import Settings
from ...utils.logging import get_project_name
from .formatters import JsonFormatter, ColorFormatter
from .filters import RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color in text mode) and "json"
      - filters: "redact"
      - handlers: console, (file/error_file) OR error_console depending on LOG_TO_STDOUT
      - loggers: root, common_repository, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "common_repository": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # SQL logging may contain sensitive bound values
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging from settings.

    Creates LOG_DIR when logging to files, then applies make_dict_config(settings).
    """
    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
