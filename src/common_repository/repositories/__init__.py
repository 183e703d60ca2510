"""
Repository layer.

A single generic repository serves every mapped model:

    from common_repository.repositories import BaseRepository

    users = BaseRepository(User, db)
    page = await users.get_page(query_params)
"""

from .base_repository import BaseRepository

__all__ = [
    "BaseRepository",
]
