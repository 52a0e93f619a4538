"""Cursor-based (Relay-style) pagination.

This package implements keyset pagination over any ``Queryable``:
- Stable: Results don't shift when records are inserted or deleted between pages
- Bidirectional: ``first``/``after`` pages forward, ``last``/``before`` backward
- Windowed: ``after`` and ``before`` together select the records between two cursors

Usage:
    from relay_pager.core.pagination import PaginationRequest, create_paginator
    from relay_pager.infra.query.memory import MemoryQueryable

    paginator = create_paginator("createdAt", field_type="date")
    page = await paginator.paginate(MemoryQueryable(docs), PaginationRequest(first=10))

    # Next page
    page = await paginator.paginate(
        MemoryQueryable(docs), PaginationRequest(first=10, after=page.end_cursor)
    )

Serving pages from FastAPI:
    from relay_pager.app.exception_handlers import configure_exception_handlers
    from relay_pager.app.lifespan import lifespan  # runs setup_logging()

    app = FastAPI(lifespan=lifespan)
    configure_exception_handlers(app)

The cursor encodes the record id and its pagination field value.
Cursors are opaque base64 strings that clients pass back unchanged.
"""

from relay_pager.core.pagination.afterware import to_afterware
from relay_pager.core.pagination.cursor import CursorCodec, DecodedCursor
from relay_pager.core.pagination.ordering import invert_order, parse_order, resolve_order
from relay_pager.core.pagination.paginator import Paginator, create_paginator
from relay_pager.core.pagination.predicates import RangePredicate, merge_bounds, to_paginator
from relay_pager.core.pagination.query import PageQuery, Queryable
from relay_pager.core.pagination.schemas import (
    Connection,
    CursorPage,
    Edge,
    PageInfo,
    PageResult,
    PaginationRequest,
)

__all__ = [
    # Relay / REST response schemas
    "Connection",
    # Cursor utilities
    "CursorCodec",
    "CursorPage",
    "DecodedCursor",
    "Edge",
    "PageInfo",
    # Query description
    "PageQuery",
    "PageResult",
    "PaginationRequest",
    # Entry points
    "Paginator",
    "Queryable",
    "RangePredicate",
    "create_paginator",
    "invert_order",
    "merge_bounds",
    "parse_order",
    "resolve_order",
    "to_afterware",
    "to_paginator",
]
