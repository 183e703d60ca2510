
# common_repository/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (RepositoryError, DuplicateError, NotFoundError, ...)
# │   ├── duplicate_entry.py         # Duplicate-entry message parser (MySQL 1062)
# │   └── mapper.py                  # Map IntegrityError to app-level errors, db_error_handler

from .base import RepositoryError, NotFoundError, DuplicateError, InvalidFieldError
from .duplicate_entry import parse_duplicate_entry

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
    "parse_duplicate_entry",
]
