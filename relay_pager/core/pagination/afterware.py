"""Result shaping for a fetched page.

The page query over-fetches by one row. The afterware trims that sentinel,
restores presentation order for ``last`` pages (fetched tail first), and
folds the sentinel and the probe results into the page flags.

| requested | sentinel present | prev probe rows | next probe rows | has_previous_page | has_next_page |
|-----------|------------------|-----------------|-----------------|-------------------|---------------|
| first     | yes              | -               | -               | prev probe        | True          |
| last      | yes              | -               | -               | True              | next probe    |
| any       | no               | n > 0           | m > 0           | n > 0             | m > 0         |
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from relay_pager.core.pagination.schemas import PageResult


def to_afterware(
    last: int | None,
    limit: int | None,
    cursor_of: Callable[[Any], str],
) -> Callable[[Sequence[Any], PageResult | None, PageResult | None], PageResult]:
    """Return the function that turns raw query output into a PageResult.

    Args:
        last: The ``last`` page size, or None for forward pages
        limit: The limit sent to the executor (page size + 1); None disables trimming
        cursor_of: Derives a record's cursor

    Returns:
        Callable taking ``(rows, prev_probe, next_probe)``
    """
    backward = last is not None

    def afterware(
        rows: Sequence[Any],
        prev: PageResult | None = None,
        next_: PageResult | None = None,
    ) -> PageResult:
        overfetched = limit is not None and len(rows) == limit
        data = list(rows[:-1] if overfetched else rows)
        if backward:
            data.reverse()

        return PageResult(
            data=data,
            start_cursor=cursor_of(data[0]) if data else None,
            end_cursor=cursor_of(data[-1]) if data else None,
            has_previous_page=bool(prev is not None and prev.data) or (backward and overfetched),
            has_next_page=bool(next_ is not None and next_.data) or (not backward and overfetched),
        )

    return afterware


__all__ = ["to_afterware"]
