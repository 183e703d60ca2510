"""
common_repository: a generic async data-access layer over SQLAlchemy.

    from common_repository import BaseRepository, parse_query_params

    repo = BaseRepository(User, session)
    page = await repo.get_page(parse_query_params({"limit": ["20"], "name.like": ["bon"]}))
"""

from .exceptions import DuplicateError, InvalidFieldError, NotFoundError, RepositoryError, parse_duplicate_entry
from .query import QueryParams, parse_query_params
from .repositories import BaseRepository
from .schemas import PageResponse

__all__ = [
    "BaseRepository",
    "QueryParams",
    "parse_query_params",
    "PageResponse",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
    "parse_duplicate_entry",
]
