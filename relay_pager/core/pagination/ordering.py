"""Sort order resolution for cursor pagination.

Orders are space separated field names, each optionally prefixed with
``-`` for descending, e.g. ``"-createdAt -_id"``. The unique id field is
always appended as a tiebreaker so the order is total.
"""

from __future__ import annotations

from typing import Literal

SortDirection = Literal["asc", "desc"]


def invert_order(order: str = "") -> str:
    """Flip the direction of every term in an order string.

    ``invert_order(invert_order(order)) == order`` for any order string.

    Example:
        invert_order("createdAt _id")  # "-createdAt -_id"
    """
    return " ".join(
        term[1:] if term.startswith("-") else f"-{term}" for term in order.split()
    )


def resolve_order(sort: str, id_field: str = "_id", *, last: bool = False) -> str:
    """Build the two-key order used for a page query.

    The id tiebreaker follows the sign of the sort field. When paginating
    from the tail (``last``) the whole order is inverted so the over-fetch
    returns the rows nearest the ``before`` bound first; the assembler
    reverses them back.

    Args:
        sort: Sort expression, e.g. ``"createdAt"`` or ``"-createdAt"``
        id_field: Unique tiebreaker field
        last: Whether the page is requested with ``last``

    Returns:
        Order string for ``Queryable.sort``
    """
    order = f"{sort} {'-' if sort.startswith('-') else ''}{id_field}"
    return invert_order(order) if last else order


def parse_order(order: str) -> list[tuple[str, SortDirection]]:
    """Split an order string into ``(field, direction)`` pairs.

    Example:
        parse_order("-createdAt _id")  # [("createdAt", "desc"), ("_id", "asc")]
    """
    terms: list[tuple[str, SortDirection]] = []
    for term in order.split():
        if term.startswith("-"):
            terms.append((term[1:], "desc"))
        else:
            terms.append((term.lstrip("+"), "asc"))
    return terms


__all__ = ["SortDirection", "invert_order", "parse_order", "resolve_order"]
