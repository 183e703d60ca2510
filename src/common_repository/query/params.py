"""
Query parameters: pagination, sorting and filter predicates for one query.

Raw query-string input (a mapping of key -> list of values, as produced by any
web framework's multi-dict) is translated into an immutable `QueryParams`.
`QueryParams` then hands out composable modifiers: plain functions that take a
SQLAlchemy `Select` and return a new `Select`.

Recognized keys:
    limit, page             -> Page
    sort_by, sort_direction -> Sort
    <attribute>.<action>    -> FilterParam (e.g. "name.like=bon", "age.greater-than=18")

Example:
    params = parse_query_params({"limit": ["20"], "page": ["2"], "name.like": ["bon"]})
    stmt = params.apply(select(User), table_name_prefix="users")
"""
import logging
import re
from enum import Enum
from typing import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Select

from .models import (
    DEFAULT_PAGE_LIMIT,
    DEFAULT_PAGE_NUMBER,
    DEFAULT_SORT_BY,
    IDENTIFIER_PATTERN,
    MAX_INT64,
    FilterAction,
    FilterParam,
    Page,
    Sort,
    SortDirection,
)
from .modifiers import QueryModifier, filter_by_params, paginate, sort_by_direction

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(IDENTIFIER_PATTERN)
_POSITIVE_INT_RE = re.compile(r"\+?[0-9]+")


class QueryKey(str, Enum):
    PAGE_LIMIT = "limit"
    PAGE_NUMBER = "page"
    SORT_BY = "sort_by"
    SORT_DIRECTION = "sort_direction"


class QueryParams(BaseModel):
    """
    Page + Sort + ordered filter predicates for a single query.

    Filter predicates are combined with AND, in the order they appear.
    """

    model_config = ConfigDict(frozen=True)

    page: Page = Field(default_factory=Page)
    sort: Sort = Field(default_factory=Sort)
    filter_params: tuple[FilterParam, ...] = ()

    def sort_modifier(self) -> QueryModifier:
        return sort_by_direction(self.sort)

    def pagination_modifier(self) -> QueryModifier:
        return paginate(self.page)

    def filter_modifier(self, table_name_prefix: str = "") -> QueryModifier:
        return filter_by_params(self.filter_params, table_name_prefix)

    def apply(self, statement: Select, table_name_prefix: str = "") -> Select:
        """Apply filtering, sorting and pagination to `statement`."""
        for modifier in (
            self.filter_modifier(table_name_prefix),
            self.sort_modifier(),
            self.pagination_modifier(),
        ):
            statement = modifier(statement)
        return statement


# =================================================================================================================
# Parsing untyped query input
# =================================================================================================================

def _parse_positive_int(raw: str, current: int) -> int:
    # Unparsable, non-positive or out-of-range (signed 64-bit) values keep the current value
    text = raw.strip()
    if not _POSITIVE_INT_RE.fullmatch(text) or not 1 <= int(text) <= MAX_INT64:
        logger.debug("Ignored invalid page value", extra={"value": raw})
        return current
    return int(text)


def _parse_sort_direction(raw: str, current: SortDirection) -> SortDirection:
    try:
        return SortDirection(raw.strip().upper())
    except ValueError:
        logger.debug("Ignored invalid sort direction", extra={"value": raw})
        return current


def _parse_filter_param(key: str, value: str) -> FilterParam | None:
    parts = key.split(".")
    attribute, action = parts[0], parts[1]

    if not _IDENTIFIER_RE.fullmatch(attribute):
        logger.debug("Ignored filter with invalid attribute", extra={"key": key})
        return None

    try:
        filter_action = FilterAction(action)
    except ValueError:
        logger.debug("Ignored filter with unknown action", extra={"key": key})
        return None

    return FilterParam(attribute=attribute, action=filter_action, value=value)


def parse_query_params(raw: Mapping[str, Sequence[str]]) -> QueryParams:
    """
    Build QueryParams from a key -> values mapping.

    - For limit/page/sort_by/sort_direction only the last value is used.
    - Unparsable limit/page values are ignored and the default is kept.
    - Keys of the form "<attribute>.<action>" become FilterParams; unknown actions
      are dropped. Other keys are ignored.
    """
    page_number = DEFAULT_PAGE_NUMBER
    page_limit = DEFAULT_PAGE_LIMIT
    sort_by = DEFAULT_SORT_BY
    sort_direction = SortDirection.DESCENDING
    filter_params: list[FilterParam] = []

    for key, values in raw.items():
        if isinstance(values, str):
            values = [values]
        if not values:
            continue
        value = values[-1]

        if key == QueryKey.PAGE_LIMIT:
            page_limit = _parse_positive_int(value, page_limit)
        elif key == QueryKey.PAGE_NUMBER:
            page_number = _parse_positive_int(value, page_number)
        elif key == QueryKey.SORT_BY:
            if _IDENTIFIER_RE.fullmatch(value):
                sort_by = value
            else:
                logger.debug("Ignored invalid sort field", extra={"value": value})
        elif key == QueryKey.SORT_DIRECTION:
            sort_direction = _parse_sort_direction(value, sort_direction)
        elif "." in key:
            filter_param = _parse_filter_param(key, value)
            if filter_param is not None:
                filter_params.append(filter_param)

    return QueryParams(
        page=Page(number=page_number, limit=page_limit),
        sort=Sort(by=sort_by, direction=sort_direction),
        filter_params=tuple(filter_params),
    )
