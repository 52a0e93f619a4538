"""Cursor pagination dependency for FastAPI routes.

Parses the Relay query parameters into a ``PaginationRequest`` that can be
handed straight to ``Paginator.paginate``.

Usage:
    from relay_pager.core.dependencies.pagination import CursorPagination

    @router.get("/items")
    async def list_items(pagination: CursorPagination) -> dict:
        page = await paginator.paginate(scope, pagination)
        return page.to_cursor_page().model_dump()
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Query

from relay_pager.core.pagination.schemas import PaginationRequest
from relay_pager.core.settings import get_pagination_settings


def get_cursor_pagination(
    after: Annotated[
        str | None,
        Query(description="Return items after this cursor"),
    ] = None,
    before: Annotated[
        str | None,
        Query(description="Return items before this cursor"),
    ] = None,
    first: Annotated[
        int | None,
        Query(ge=0, description="Number of items from the start of the window"),
    ] = None,
    last: Annotated[
        int | None,
        Query(ge=0, description="Number of items from the end of the window"),
    ] = None,
    sort: Annotated[
        str | None,
        Query(max_length=100, description="Sort expression, '-' prefix for descending"),
    ] = None,
    with_meta: Annotated[
        bool,
        Query(description="Compute has_previous_page / has_next_page with probe queries"),
    ] = True,
) -> PaginationRequest:
    """Get cursor pagination parameters.

    Page sizes are clamped to ``PaginationSettings.max_limit``.

    Raises:
        InvalidPaginationRequestError: If both first and last are given
    """
    max_limit = get_pagination_settings().max_limit
    return PaginationRequest(
        after=after,
        before=before,
        first=min(first, max_limit) if first is not None else None,
        last=min(last, max_limit) if last is not None else None,
        sort=sort,
        with_meta=with_meta,
    )


CursorPagination = Annotated[PaginationRequest, Depends(get_cursor_pagination)]
