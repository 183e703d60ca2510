from .models import Page, Sort, SortDirection, FilterAction, FilterParam
from .modifiers import QueryModifier
from .params import QueryParams, QueryKey, parse_query_params

__all__ = [
    "Page",
    "Sort",
    "SortDirection",
    "FilterAction",
    "FilterParam",
    "QueryModifier",
    "QueryParams",
    "QueryKey",
    "parse_query_params",
]
