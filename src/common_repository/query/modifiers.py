"""
Composable query modifiers.

A modifier is a function `Select -> Select`. Modifiers never execute anything,
so they can be built once and applied to both a row query and a count query.

Attribute names are resolved against the columns of the statement's FROM
tables, which act as the allow-list: a name is never interpolated into SQL.
"""
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Iterator

from sqlalchemy import Select
from sqlalchemy.sql.expression import ColumnElement, FromClause, Join

from ..exceptions.base import InvalidFieldError
from .models import FilterAction, FilterParam, Page, Sort, SortDirection

logger = logging.getLogger(__name__)

QueryModifier = Callable[[Select], Select]

_TRUE_VALUES = {"1", "true", "yes", "y"}
_FALSE_VALUES = {"0", "false", "no", "n"}


# =================================================================================================================
# Column resolution
# =================================================================================================================

def _iter_tables(from_clause: FromClause) -> Iterator[FromClause]:
    if isinstance(from_clause, Join):
        yield from _iter_tables(from_clause.left)
        yield from _iter_tables(from_clause.right)
    else:
        yield from_clause


def resolve_column(statement: Select, attribute: str, table_name_prefix: str = "") -> ColumnElement | None:
    """
    Find the column named `attribute` among the statement's FROM tables.

    With a prefix only the table (or alias) named `table_name_prefix` is searched,
    giving `prefix.attribute`. Without one the first table that has the column wins.
    """
    for from_clause in statement.get_final_froms():
        for table in _iter_tables(from_clause):
            if table_name_prefix and getattr(table, "name", None) != table_name_prefix:
                continue
            column = table.c.get(attribute)
            if column is not None:
                return column
    return None


# =================================================================================================================
# Value coercion
# =================================================================================================================

def _column_python_type(column: ColumnElement) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _coerce_value(column: ColumnElement, attribute: str, raw: str) -> Any:
    """
    Convert a raw string to the column's Python type.

    Raises:
        InvalidFieldError: the value cannot be represented in the column type.
    """
    python_type = _column_python_type(column)
    if python_type is None or python_type is str:
        return raw

    text = raw.strip()
    try:
        if python_type is bool:
            lowered = text.lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if python_type is int:
            return int(text)
        if python_type is float:
            return float(text)
        if python_type is Decimal:
            return Decimal(text)
        if python_type is datetime:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        if python_type is date:
            return date.fromisoformat(text)
        if python_type is uuid.UUID:
            return uuid.UUID(text)
    except (ValueError, InvalidOperation) as exc:
        raise InvalidFieldError(
            f"Invalid filter value for '{attribute}' ({python_type.__name__})", fields=[attribute]
        ) from exc

    return raw


# =================================================================================================================
# Modifiers
# =================================================================================================================

def _predicate(column: ColumnElement, filter_param: FilterParam) -> ColumnElement:
    action = filter_param.action
    attribute = filter_param.attribute

    if action is FilterAction.LIKE:
        return column.like(f"%{filter_param.value}%")

    if action is FilterAction.IN:
        values = [_coerce_value(column, attribute, v) for v in filter_param.value.split(",")]
        return column.in_(values)

    value = _coerce_value(column, attribute, filter_param.value)
    if action is FilterAction.EQUALS:
        return column == value
    if action is FilterAction.GREATER_THAN:
        return column > value
    if action is FilterAction.GREATER_THAN_EQUAL:
        return column >= value
    if action is FilterAction.LESS_THAN:
        return column < value
    return column <= value


def filter_by_params(filter_params: Iterable[FilterParam], table_name_prefix: str = "") -> QueryModifier:
    """
    Modifier adding one WHERE predicate per FilterParam, AND-ed in order.

    Raises (when applied):
        InvalidFieldError: an attribute is not a column of the statement's tables,
        or a value does not fit the column type.
    """
    filter_params = tuple(filter_params)

    def modifier(statement: Select) -> Select:
        for filter_param in filter_params:
            column = resolve_column(statement, filter_param.attribute, table_name_prefix)
            if column is None:
                qualified = (
                    f"{table_name_prefix}.{filter_param.attribute}" if table_name_prefix else filter_param.attribute
                )
                raise InvalidFieldError(f"Unknown filter attribute: {qualified}", fields=[filter_param.attribute])
            statement = statement.where(_predicate(column, filter_param))
        return statement

    return modifier


def sort_by_direction(sort: Sort) -> QueryModifier:
    """
    Modifier ordering by `sort.by` in `sort.direction`.

    A field that is not a column of the statement's tables is skipped with a warning.
    """

    def modifier(statement: Select) -> Select:
        column = resolve_column(statement, sort.by)
        if column is None:
            logger.warning("Ignored invalid sort field", extra={"sort_by": sort.by})
            return statement
        if sort.direction is SortDirection.ASCENDING:
            return statement.order_by(column.asc())
        return statement.order_by(column.desc())

    return modifier


def paginate(page: Page) -> QueryModifier:
    """Modifier applying OFFSET (number - 1) * limit and LIMIT limit."""

    def modifier(statement: Select) -> Select:
        return statement.offset(page.offset).limit(page.limit)

    return modifier
