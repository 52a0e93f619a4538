"""Request and response schemas for cursor pagination.

``PaginationRequest`` is what a caller asks for; ``PageResult`` is what the
paginator returns. A result renders either as a Relay ``Connection``
(edges carrying per-record cursors) or as a flat ``CursorPage`` for REST
endpoints.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

from relay_pager.core.exceptions import InvalidPaginationRequestError

T = TypeVar("T")


class PaginationRequest(BaseModel):
    """Caller-facing pagination options.

    Attributes:
        after: Return records strictly after this cursor
        before: Return records strictly before this cursor
        first: Page size counted from the start of the window
        last: Page size counted from the end of the window
        sort: Sort expression; defaults to the pagination field
        with_meta: Run probe queries for has_previous_page / has_next_page
        inclusive: Admit the cursor's own position (used by probe queries)
    """

    after: str | None = None
    before: str | None = None
    first: int | None = Field(default=None, ge=0)
    last: int | None = Field(default=None, ge=0)
    sort: str | None = None
    with_meta: bool = True
    inclusive: bool = False

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _check_page_size(self) -> PaginationRequest:
        if self.first is not None and self.last is not None:
            raise InvalidPaginationRequestError(
                "first and last are mutually exclusive",
                extra={"first": self.first, "last": self.last},
            )
        return self


class PageInfo(BaseModel):
    """Navigation flags and boundary cursors of one page.

    ``has_previous_page`` / ``has_next_page`` come from the over-fetch
    sentinel on the side the page grows toward and from a probe query on a
    side bounded by a user cursor. A side that is neither sentinel-checked
    nor probed reports False.
    """

    has_previous_page: bool = Field(description="Records exist before start_cursor")
    has_next_page: bool = Field(description="Records exist after end_cursor")
    start_cursor: str | None = Field(default=None, description="Cursor of the first record on the page")
    end_cursor: str | None = Field(default=None, description="Cursor of the last record on the page")


class Edge(BaseModel, Generic[T]):
    """A record paired with the cursor derived from it."""

    node: T
    cursor: str = Field(description="Opaque position of node; pass as after/before")


class Connection(BaseModel, Generic[T]):
    """Relay connection: edges plus page info.

    Navigating with a connection:
        first=10                 -> first page
        first=10&after=<end>     -> following page
        last=10&before=<start>   -> preceding page
    """

    edges: list[Edge[T]] = Field(default_factory=list)
    page_info: PageInfo

    @property
    def nodes(self) -> list[T]:
        """Records in presentation order, without cursors."""
        return [edge.node for edge in self.edges]


class CursorPage(BaseModel, Generic[T]):
    """Flat response for REST endpoints.

    ``next_cursor`` / ``prev_cursor`` are only set when a page exists on
    that side, so clients can stop when they come back None.
    """

    items: list[T] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, description="Value for the next request's after")
    prev_cursor: str | None = Field(default=None, description="Value for the next request's before")
    has_more: bool = Field(default=False, description="Same as page_info.has_next_page")


class PageResult(BaseModel, Generic[T]):
    """One page of records plus navigation metadata.

    ``start_cursor`` / ``end_cursor`` are the cursors of the first and last
    element of ``data`` in presentation order, or None when ``data`` is empty.
    """

    data: list[T] = Field(default_factory=list)
    start_cursor: str | None = None
    end_cursor: str | None = None
    has_previous_page: bool = False
    has_next_page: bool = False

    model_config = {"arbitrary_types_allowed": True}

    @property
    def page_info(self) -> PageInfo:
        return PageInfo(
            has_previous_page=self.has_previous_page,
            has_next_page=self.has_next_page,
            start_cursor=self.start_cursor,
            end_cursor=self.end_cursor,
        )

    def to_connection(self, cursor_of: Callable[[Any], str]) -> Connection[T]:
        """Wrap every record in an Edge carrying its derived cursor.

        Args:
            cursor_of: Cursor derivation, usually ``Paginator.cursor_of``
        """
        return Connection[Any](
            edges=[Edge[Any](node=record, cursor=cursor_of(record)) for record in self.data],
            page_info=self.page_info,
        )

    def to_cursor_page(self) -> CursorPage[T]:
        """Convert to simple REST-style pagination."""
        return CursorPage[Any](
            items=self.data,
            next_cursor=self.end_cursor if self.has_next_page else None,
            prev_cursor=self.start_cursor if self.has_previous_page else None,
            has_more=self.has_next_page,
        )


__all__ = [
    "Connection",
    "CursorPage",
    "Edge",
    "PageInfo",
    "PageResult",
    "PaginationRequest",
]
