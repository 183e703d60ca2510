"""
FastAPI dependencies for list endpoints.

    @router.get("/users", response_model=PageResponse[UserOut])
    async def list_users(
        query_params: QueryParams = Depends(get_query_params),
        db: AsyncSession = Depends(get_async_session),
    ):
        return await BaseRepository(User, db).get_page(query_params)

GET /users?limit=20&page=2&sort_by=name&sort_direction=asc&name.like=bon
"""

from collections import defaultdict

from fastapi import Request

from ..query.params import QueryParams, parse_query_params


def collect_query_values(request: Request) -> dict[str, list[str]]:
    """Group the request's query string into key -> values, keeping repeated keys in order."""
    raw: dict[str, list[str]] = defaultdict(list)
    for key, value in request.query_params.multi_items():
        raw[key].append(value)
    return dict(raw)


async def get_query_params(request: Request) -> QueryParams:
    # Returns QueryParams built from the request query string
    return parse_query_params(collect_query_values(request))
