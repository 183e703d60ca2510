# src/common_repository/core/logging/
# ├─ __init__.py            # public API: setup_logging, make_dict_config
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # RedactFilter
# └─ handlers.py            # handler config factories (console, file, error file, error console)

from .builder import setup_logging, make_dict_config
from .filters import RedactFilter
from .formatters import JsonFormatter, ColorFormatter

__all__ = ["setup_logging", "make_dict_config", "RedactFilter", "JsonFormatter", "ColorFormatter"]
