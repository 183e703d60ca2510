from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_LIMIT = 10
# Largest value a signed 64-bit INTEGER column or LIMIT/OFFSET accepts
MAX_INT64 = 2**63 - 1
DEFAULT_SORT_BY = "created_at"


class SortDirection(str, Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"


class FilterAction(str, Enum):
    EQUALS = "equals"
    LIKE = "like"
    IN = "in"
    GREATER_THAN = "greater-than"
    GREATER_THAN_EQUAL = "greater-than-equal"
    LESS_THAN = "less-than"
    LESS_THAN_EQUAL = "less-than-equal"


class Page(BaseModel):
    """Requested page number (1-based) and page size."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(default=DEFAULT_PAGE_NUMBER, ge=1, le=MAX_INT64)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_INT64)

    @property
    def offset(self) -> int:
        # pages past the 64-bit range are simply empty
        return min((self.number - 1) * self.limit, MAX_INT64)


class Sort(BaseModel):
    """Field to order by and its direction."""

    model_config = ConfigDict(frozen=True)

    by: str = Field(default=DEFAULT_SORT_BY, pattern=IDENTIFIER_PATTERN)
    direction: SortDirection = SortDirection.DESCENDING


class FilterParam(BaseModel):
    """One predicate over one attribute."""

    model_config = ConfigDict(frozen=True)

    attribute: str = Field(pattern=IDENTIFIER_PATTERN)
    action: FilterAction
    value: str
