from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..query.models import FilterParam, Page, Sort
from ..query.params import QueryParams

DataT = TypeVar("DataT")


class PageResponse(BaseModel, Generic[DataT]):
    """
    Paginated result returned to callers.

    Parametrize with a response schema (`PageResponse[UserOut]`) to validate ORM
    rows through `from_attributes`; unparametrized it carries the rows as-is.
    `sort`/`page` are None when the query ran without QueryParams.
    """

    model_config = ConfigDict(from_attributes=True)

    data: list[DataT] = Field(default_factory=list)
    total: int = 0
    sort: Sort | None = None
    page: Page | None = None
    filter_params: list[FilterParam] = Field(default_factory=list)

    @classmethod
    def build(cls, data: Sequence[Any], total: int, query_params: QueryParams | None = None) -> "PageResponse":
        if query_params is None:
            return cls(data=list(data), total=total)
        return cls(
            data=list(data),
            total=total,
            sort=query_params.sort,
            page=query_params.page,
            filter_params=list(query_params.filter_params),
        )
