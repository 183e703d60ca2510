"""
Base repository class providing common database operations.

This class serves as a reusable foundation for repositories that interact with
the database using SQLAlchemy's async sessions. One implementation serves every
mapped model: it is parameterized by the model class, not duplicated per type.

It covers single and bulk creation, reads by primary key or by attribute values,
filtered/sorted/paginated listing driven by `QueryParams`, counting, and
update/delete by primary key or by attribute values.

Error vocabulary surfaced to callers:
    - NotFoundError: single-record reads and deletes that match no rows.
    - DuplicateError: creates that violate a uniqueness constraint.
    - InvalidFieldError: attribute names the model does not map.
Any other SQLAlchemy / driver error propagates unchanged.

The repository never commits; transaction boundaries belong to the caller that
owns the session.
"""
from common_repository.exceptions.base import InvalidFieldError, NotFoundError
from common_repository.exceptions.mapper import db_error_handler
from common_repository.query.params import QueryParams
from common_repository.schemas.page_response import PageResponse
from common_repository.validators.model_validators import (
    find_unknown_model_kwargs,
    get_column_attributes,
    get_primary_key_attribute,
)

import time
from typing import TypeVar, Generic, Type, Any, Iterable, Mapping, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select, update, delete, func
import logging

from common_repository.database.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

# Setup logging
logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize the repository.

        Args:
            model: The SQLAlchemy model class (e.g. User, not User())
            db: The async database session, owned by the caller

        Raises:
            ValueError: If the model does not have exactly one primary key column.
        """
        self.model = model
        self.db = db
        self.table_name: str = model.__table__.name
        self.pk_attribute = get_primary_key_attribute(model)
        self._columns = get_column_attributes(model)

    # =================================================================================================================
    # Helpers
    # =================================================================================================================

    @property
    def _pk_column(self):
        return getattr(self.model, self.pk_attribute)

    def _check_columns(self, names: Iterable[str], operation: str) -> None:
        unknown = sorted(name for name in names if name not in self._columns)
        if unknown:
            logger.info(
                "repo.invalid_fields",
                extra={"model": self.model.__name__, "operation": operation, "invalid_fields": unknown},
            )
            raise InvalidFieldError(f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown)

    def _where_equals(self, statement, attributes: Mapping[str, Any]):
        for field, value in attributes.items():
            statement = statement.where(getattr(self.model, field) == value)
        return statement

    def _require_attributes(self, attributes: Mapping[str, Any], operation: str) -> None:
        # An empty mapping would touch every row of the table
        if not attributes:
            raise InvalidFieldError(f"At least one attribute is required to {operation} {self.model.__name__}")
        self._check_columns(attributes.keys(), operation)

    # =================================================================================================================
    # Create Operations
    # =================================================================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Create an entity. Logging:
        - DEBUG: start event with model name and provided keys (not values).
        - INFO: invalid fields, duplicates (from the mapper), success with id and duration_ms.

        Raises:
            InvalidFieldError: If a keyword is not a mapped attribute of the model.
            DuplicateError: If the insert violates a uniqueness constraint.
            SQLAlchemyError: Any other failure, unchanged.
        """
        logger.debug(
            "repo.create.start",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                # keys only, values may be sensitive
                "provided_keys": sorted(kwargs.keys()),
            },
        )

        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                "repo.create.invalid_fields",
                extra={"model": self.model.__name__, "operation": "create", "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown)

        start = time.perf_counter()

        async with db_error_handler(self.db, self.model.__name__):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            # reload server-generated fields (ids, timestamps)
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                "id": str(getattr(entity, self.pk_attribute, None)),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

        # `flush()` sends the INSERT in a savepoint of the caller's transaction without committing it,
        # so generated keys are available and a later rollback still undoes the insert.

    async def create_many(self, records: Sequence[Mapping[str, Any]]) -> list[ModelType]:
        """
        Create several entities in one flush.

        Args:
            records: One mapping of field -> value per entity.

        Returns:
            The created entities, in input order.

        Raises:
            InvalidFieldError: If any record carries an unknown field (nothing is inserted).
            DuplicateError: If any insert violates a uniqueness constraint (none of these records is kept; earlier writes are).
        """
        if not records:
            return []

        unknown = sorted({k for record in records for k in find_unknown_model_kwargs(self.model, record)})
        if unknown:
            logger.info(
                "repo.create_many.invalid_fields",
                extra={"model": self.model.__name__, "operation": "create_many", "invalid_fields": unknown},
            )
            raise InvalidFieldError(f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown)

        start = time.perf_counter()

        async with db_error_handler(self.db, self.model.__name__):
            entities = [self.model(**record) for record in records]
            self.db.add_all(entities)
            await self.db.flush()
            for entity in entities:
                await self.db.refresh(entity)

        logger.info(
            "repo.create_many.success",
            extra={
                "model": self.model.__name__,
                "operation": "create_many",
                "count": len(entities),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entities

    # =================================================================================================================
    # Read Operations (Single Entity)
    # =================================================================================================================

    async def get_by_id(self, entity_id: Any) -> ModelType:
        """
        Get an entity by its primary key.

        Raises:
            NotFoundError: If no row has this primary key.
        """
        return await self.get_by_attributes({self.pk_attribute: entity_id})

    async def get_by_attributes(self, attributes: Mapping[str, Any]) -> ModelType:
        """
        Get the first entity (by primary key) whose fields equal all given values.

        Args:
            attributes: field -> value equalities, combined with AND.
                An empty mapping matches the first row of the table.

        Raises:
            InvalidFieldError: If a key is not a column of the model.
            NotFoundError: If no row matches.
        """
        self._check_columns(attributes.keys(), "get_by_attributes")

        # Example: SELECT * FROM users WHERE name = :name ORDER BY users.id LIMIT 1
        query = self._where_equals(select(self.model), attributes).order_by(self._pk_column).limit(1)
        result = await self.db.execute(query)
        entity = result.scalars().first()

        if entity is None:
            logger.debug(
                "repo.get.not_found",
                extra={"model": self.model.__name__, "operation": "get_by_attributes", "keys": sorted(attributes)},
            )
            raise NotFoundError(f"{self.model.__name__} not found", fields=sorted(attributes))

        return entity

    # =================================================================================================================
    # Read Operations (Multiple Entities)
    # =================================================================================================================

    async def get_many_by_ids(self, entity_ids: Iterable[Any]) -> list[ModelType]:
        """Get every entity whose primary key is in `entity_ids` (missing ids are skipped)."""
        return await self.get_many_by_attribute_values({self.pk_attribute: list(entity_ids)})

    async def get_many_by_attribute_values(self, values: Mapping[str, Iterable[Any]]) -> list[ModelType]:
        """
        Get entities where, for every key, the field is IN the given values.

        Example:
            await repo.get_many_by_attribute_values({"city": ["dhaka", "khulna"]})
            # SELECT * FROM users WHERE city IN ('dhaka', 'khulna')
        """
        self._check_columns(values.keys(), "get_many_by_attribute_values")

        query = select(self.model)
        for field, field_values in values.items():
            query = query.where(getattr(self.model, field).in_(list(field_values)))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all(self) -> list[ModelType]:
        """Get every entity of the table, unfiltered and unpaginated."""
        result = await self.db.execute(select(self.model))
        entities = result.scalars().all()
        logger.debug(f"Retrieved {len(entities)} {self.model.__name__} entities")
        return list(entities)

    def build_query(self, query_params: QueryParams | None = None) -> Select:
        """
        Return the SELECT for `query_params` without executing it.
        Filter attributes are qualified with this repository's table name.
        """
        query = select(self.model)
        if query_params is not None:
            query = query_params.apply(query, self.table_name)
        return query

    async def get_many(self, query_params: QueryParams | None = None) -> list[ModelType]:
        """
        Get entities filtered, sorted and paginated by `query_params`.

        Args:
            query_params: None returns the full table result set.

        Raises:
            InvalidFieldError: If a filter references an unknown column or an unusable value.
        """
        result = await self.db.execute(self.build_query(query_params))
        entities = result.scalars().all()

        logger.debug(
            "repo.get_many.success",
            extra={"model": self.model.__name__, "operation": "get_many", "count": len(entities)},
        )
        return list(entities)

    # =================================================================================================================
    # Aggregation / Count Operations
    # =================================================================================================================

    async def count(self, query_params: QueryParams | None = None) -> int:
        """
        Count entities matching the filters of `query_params`.

        Pagination and sorting are ignored so the result is the total across pages.
        None counts the whole table.
        """
        # Equivalent SQL: SELECT count(*) FROM users WHERE ...
        query = select(func.count()).select_from(self.model)
        if query_params is not None:
            query = query_params.filter_modifier(self.table_name)(query)

        result = await self.db.execute(query)
        return result.scalar_one()

    async def get_page(self, query_params: QueryParams | None = None) -> PageResponse:
        """
        Get one page of entities together with the total count and the applied parameters.
        """
        data = await self.get_many(query_params)
        total = await self.count(query_params)
        return PageResponse.build(data, total, query_params)

    # =================================================================================================================
    # Update Operations
    # =================================================================================================================

    async def update_by_id(self, entity_id: Any, data: Mapping[str, Any]) -> int:
        """
        Update the entity with this primary key.

        Returns:
            Number of rows updated. Zero is not an error.
        """
        return await self.update_by_attributes({self.pk_attribute: entity_id}, data)

    async def update_by_attributes(self, attributes: Mapping[str, Any], data: Mapping[str, Any]) -> int:
        """
        Update every entity whose fields equal all given values.

        Args:
            attributes: field -> value equalities selecting the rows (must not be empty).
            data: field -> new value.

        Returns:
            Number of rows updated. Unlike deletes, zero matching rows is not an error.
            Loaded instances are synchronized in the session; attributes set from SQL
            expressions (the `updated_at` stamp) are expired and must be refreshed before reading.

        Raises:
            InvalidFieldError: If `attributes` is empty or a key is not a column of the model.
            SQLAlchemyError: Any DB failure, unchanged (only this write is rolled back).
        """
        self._require_attributes(attributes, "update")
        self._check_columns(data.keys(), "update")

        if not data:
            logger.warning(f"No data provided for updating {self.model.__name__}")
            return 0

        values = dict(data)
        # Use the database clock for the modification timestamp
        if "updated_at" in self._columns and "updated_at" not in values:
            values["updated_at"] = func.now()

        stmt = self._where_equals(update(self.model), attributes).values(**values)

        async with db_error_handler(self.db, self.model.__name__, map_duplicates=False):
            result = await self.db.execute(stmt)

        logger.debug(
            "repo.update.success",
            extra={"model": self.model.__name__, "operation": "update", "rowcount": result.rowcount},
        )
        return result.rowcount

    # =================================================================================================================
    # Delete Operations
    # =================================================================================================================

    async def delete_by_id(self, entity_id: Any) -> int:
        """
        Delete the entity with this primary key.

        Raises:
            NotFoundError: If no row has this primary key.
        """
        return await self.delete_by_attributes({self.pk_attribute: entity_id})

    async def delete_by_attributes(self, attributes: Mapping[str, Any]) -> int:
        """
        Delete every entity whose fields equal all given values.

        Returns:
            Number of rows deleted (always > 0).

        Raises:
            InvalidFieldError: If `attributes` is empty or a key is not a column of the model.
            NotFoundError: If no row matched.
            SQLAlchemyError: Any DB failure, unchanged (only this write is rolled back).
        """
        self._require_attributes(attributes, "delete")

        stmt = self._where_equals(delete(self.model), attributes)

        async with db_error_handler(self.db, self.model.__name__, map_duplicates=False):
            result = await self.db.execute(stmt)

        if result.rowcount == 0:
            logger.info(
                "repo.delete.not_found",
                extra={"model": self.model.__name__, "operation": "delete", "keys": sorted(attributes)},
            )
            raise NotFoundError(f"{self.model.__name__} not found for deletion", fields=sorted(attributes))

        logger.debug(
            "repo.delete.success",
            extra={"model": self.model.__name__, "operation": "delete", "rowcount": result.rowcount},
        )
        return result.rowcount

        # `rowcount` is reliable for DELETE on Postgres, SQLite and MySQL. For UPDATE, MySQL
        # reports rows *changed* rather than matched unless the client sets CLIENT.FOUND_ROWS.


# BaseRepository Method Summary
# | Method Name                               | Returns            | Zero matching rows         |
# | ----------------------------------------- | ------------------ | -------------------------- |
# | `create(**kwargs)`                        | created entity     | n/a                        |
# | `create_many(records)`                    | created entities   | n/a                        |
# | `get_by_id(id)`                           | entity             | NotFoundError              |
# | `get_by_attributes(mapping)`              | entity             | NotFoundError              |
# | `get_many_by_ids(ids)`                    | list               | empty list                 |
# | `get_many_by_attribute_values(mapping)`   | list               | empty list                 |
# | `get_all()`                               | list               | empty list                 |
# | `get_many(query_params)`                  | list               | empty list                 |
# | `count(query_params)`                     | int                | 0                          |
# | `get_page(query_params)`                  | PageResponse       | empty data, total 0        |
# | `update_by_id(id, data)`                  | rowcount           | 0 (no error)               |
# | `update_by_attributes(mapping, data)`     | rowcount           | 0 (no error)               |
# | `delete_by_id(id)`                        | rowcount           | NotFoundError              |
# | `delete_by_attributes(mapping)`           | rowcount           | NotFoundError              |
