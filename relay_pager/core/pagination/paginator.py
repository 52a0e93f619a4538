"""Relay-style cursor paginator.

Typical setup, once per collection:

    paginator = create_paginator("createdAt", field_type="date")

and per request:

    page = await paginator.paginate(MemoryQueryable(docs), first=25, after=cursor)
    page.data, page.end_cursor, page.has_next_page

A call issues up to three independent queries: the page itself (limit is the
page size plus one sentinel row) and, when ``with_meta`` is on, a one-row
probe past each user-supplied cursor. They run concurrently and the call
fails as a whole if any of them fails.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Sequence
from typing import Any

from relay_pager.core.exceptions import PaginationConfigError
from relay_pager.core.pagination.afterware import to_afterware
from relay_pager.core.pagination.cursor import CursorCodec
from relay_pager.core.pagination.ordering import resolve_order
from relay_pager.core.pagination.predicates import RangePredicate, merge_bounds, to_paginator
from relay_pager.core.pagination.query import PageQuery, Queryable
from relay_pager.core.pagination.schemas import PageResult, PaginationRequest
from relay_pager.core.settings import PaginationSettings, PaginatorConfig, SortFieldType, get_pagination_settings
from relay_pager.infra.logging import get_lazy_logger

logger = get_lazy_logger(__name__)


class Paginator:
    """Cursor paginator bound to one collection's configuration.

    Attributes:
        config: Pagination field, tiebreaker, default page size and value type
    """

    def __init__(self, config: PaginatorConfig) -> None:
        self.config = config

    @property
    def field(self) -> str:
        return self.config.pagination_field

    def cursor_of(self, record: Any) -> str:
        """Derive the cursor of a record from its current field values."""
        return CursorCodec.create_cursor(record, self.field, id_field=self.config.id_field)

    def build_query(self, scope: Queryable, request: PaginationRequest) -> PageQuery:
        """Describe the page fetch for ``request`` over ``scope``.

        Raises:
            InvalidCursorError: If ``after`` or ``before`` is malformed
        """
        sort = request.sort or self.field
        backward = request.last is not None

        bound = to_paginator(
            self.field,
            sort=sort,
            last=backward,
            inclusive=request.inclusive,
            id_field=self.config.id_field,
            field_type=self.config.field_type,
        )
        merged = merge_bounds(
            bound("after", request.after),
            bound("before", request.before),
            field=self.field,
        )

        if request.last is not None:
            size = request.last
        elif request.first is not None:
            size = request.first
        else:
            size = self.config.default_limit

        return PageQuery(
            scope=scope,
            range=RangePredicate.from_filter(merged),
            order=resolve_order(sort, self.config.id_field, last=backward),
            limit=size + 1,
        )

    async def paginate(
        self,
        scope: Queryable,
        request: PaginationRequest | None = None,
        /,
        **options: Any,
    ) -> PageResult:
        """Fetch one page of ``scope``.

        Args:
            scope: Collection or pre-filtered query to paginate
            request: Pagination options; keyword ``options`` override its fields
            **options: PaginationRequest fields (after, before, first, last, ...)

        Returns:
            PageResult with data, boundary cursors and page flags

        Raises:
            InvalidCursorError: If a cursor is malformed
            InvalidPaginationRequestError: If first and last are both given
        """
        if request is None:
            request = PaginationRequest(**options)
        elif options:
            request = PaginationRequest(**{**request.model_dump(exclude_unset=True), **options})

        query = self.build_query(scope, request)
        logger.debug(lambda: f"paginate {self.field}: {query.describe()}")

        pending: dict[str, Coroutine[Any, Any, Any]] = {"page": self._fetch(query)}
        if request.with_meta:
            pending.update(self._probes(query, request))

        try:
            results = dict(zip(pending, await asyncio.gather(*pending.values()), strict=True))
        except Exception as e:
            logger.warning(
                "Pagination query failed",
                extra={"field": self.field, "queries": len(pending), "error": type(e).__name__},
            )
            raise

        afterware = to_afterware(request.last, query.limit, self.cursor_of)
        page = afterware(results["page"], results.get("prev"), results.get("next"))
        logger.debug(
            lambda: (
                f"paginate {self.field}: {len(page.data)} rows, "
                f"has_previous={page.has_previous_page}, has_next={page.has_next_page}"
            )
        )
        return page

    async def _fetch(self, query: PageQuery) -> Sequence[Any]:
        return await query.build().execute()

    def _probes(
        self,
        query: PageQuery,
        request: PaginationRequest,
    ) -> dict[str, Coroutine[Any, Any, PageResult]]:
        # A side is probed only when the caller bounded it; otherwise the
        # over-fetch sentinel already answers it.
        base = query.without_range().scope
        common = {
            "sort": request.sort or self.field,
            "with_meta": False,
            "inclusive": True,
        }
        probes: dict[str, Coroutine[Any, Any, PageResult]] = {}
        if request.after:
            probes["prev"] = self.paginate(
                base, PaginationRequest(before=request.after, last=1, **common)
            )
        if request.before:
            probes["next"] = self.paginate(
                base, PaginationRequest(after=request.before, first=1, **common)
            )
        return probes


def create_paginator(
    pagination_field: str | None,
    *,
    default_limit: int | None = None,
    id_field: str | None = None,
    field_type: SortFieldType = "string",
    settings: PaginationSettings | None = None,
) -> Paginator:
    """Build a paginator for one collection.

    Unset options fall back to ``PaginationSettings``.

    Args:
        pagination_field: Sort field carried in cursors (required)
        default_limit: Page size when a request gives neither first nor last
        id_field: Unique tiebreaker field
        field_type: Comparison type of the pagination field
        settings: Settings to take defaults from (cached settings if omitted)

    Returns:
        Configured Paginator

    Raises:
        PaginationConfigError: If ``pagination_field`` is missing or invalid
    """
    if not pagination_field:
        raise PaginationConfigError('"pagination_field" is required')

    settings = settings or get_pagination_settings()
    try:
        config = PaginatorConfig(
            pagination_field=pagination_field,
            default_limit=default_limit if default_limit is not None else settings.default_limit,
            id_field=id_field if id_field is not None else settings.id_field,
            field_type=field_type,
        )
    except ValueError as e:
        raise PaginationConfigError(
            "Invalid paginator configuration",
            extra={"pagination_field": pagination_field, "error": str(e)},
        ) from e

    logger.debug(lambda: f"paginator configured: {config.model_dump()}")
    return Paginator(config)


__all__ = ["Paginator", "create_paginator"]
