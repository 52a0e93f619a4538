"""Range predicates that seek past a cursor.

Instead of OFFSET, a page is selected with a WHERE-style condition that
starts strictly beyond the cursor position. With a sort field ``f``, an id
tiebreaker ``_id`` and a cursor at ``(v, id)`` the condition for ``after``
on an ascending sort is::

    {"$or": [{f: {"$gt": v}}, {f: {"$eq": v}, "_id": {"$gt": id}}]}

The second clause keeps the order total when many records share ``v``.
Predicates are plain dicts in the Mongo query dialect so any ``Queryable``
executor can interpret them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from relay_pager.core.pagination.cursor import CursorCodec
from relay_pager.core.settings.pagination import SortFieldType

Direction = Literal["after", "before"]


@dataclass(frozen=True, slots=True)
class RangePredicate:
    """A cursor range condition, kept apart from the caller's base filter.

    ``PageQuery`` carries it in its own slot, so the meta probes can drop
    exactly this condition and keep everything else.

    Attributes:
        clauses: Members of the ``$or`` list
    """

    clauses: tuple[dict[str, Any], ...]

    def to_filter(self) -> dict[str, Any]:
        """Render the predicate as a filter document."""
        return {"$or": [dict(clause) for clause in self.clauses]}

    @classmethod
    def from_filter(cls, criteria: dict[str, Any]) -> RangePredicate | None:
        """Wrap a ``{"$or": [...]}`` document, or return None for ``{}``."""
        if not criteria:
            return None
        return cls(clauses=tuple(criteria["$or"]))


def to_paginator(
    field: str,
    *,
    sort: str | None = None,
    last: bool = False,
    inclusive: bool = False,
    id_field: str = "_id",
    field_type: SortFieldType = "string",
) -> Callable[[Direction, str | None], dict[str, Any]]:
    """Return a builder mapping ``(direction, cursor)`` to a range filter.

    Operator choice: ``after`` seeks with ``$gt`` and ``before`` with
    ``$lt``, except that a descending sort requested without ``last`` swaps
    them (``after`` in descending order means numerically smaller). With
    ``inclusive`` the comparison also admits equality; only the meta probes
    use that.

    Args:
        field: Pagination field name
        sort: Sort expression; a leading ``-`` means descending
        last: Whether the page is requested with ``last``
        inclusive: Widen the comparison to ``$gte`` / ``$lte``
        id_field: Unique tiebreaker field
        field_type: Cast applied to the decoded cursor value

    Returns:
        Callable returning ``{}`` for an empty cursor, else an ``$or`` filter

    Raises:
        InvalidCursorError: From the returned callable, on a malformed cursor
    """
    descending = (sort or field).startswith("-")

    def build(direction: Direction, cursor: str | None) -> dict[str, Any]:
        if not cursor:
            return {}

        is_after = direction == "after"
        primary = "$lt" if is_after else "$gt"
        secondary = "$gt" if is_after else "$lt"
        op = primary if descending and not last else secondary
        if inclusive:
            op += "e"

        decoded = CursorCodec.decode(cursor, field, field_type=field_type)
        return {
            "$or": [
                {field: {op: decoded.value}},
                {field: {"$eq": decoded.value}, id_field: {op: decoded.id}},
            ]
        }

    return build


def _deep_merge(*docs: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for doc in docs:
        for key, value in doc.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
    return merged


def _is_inverted(after_range: dict[str, Any], before_range: dict[str, Any], field: str) -> bool:
    """Whether the after position sorts beyond the before position."""
    ((after_op, after_value),) = after_range[field].items()
    (before_value,) = before_range[field].values()
    if after_op.startswith("$gt"):
        return after_value > before_value
    return after_value < before_value


def merge_bounds(
    after_bound: dict[str, Any],
    before_bound: dict[str, Any],
    *,
    field: str,
) -> dict[str, Any]:
    """Intersect an ``after`` range with a ``before`` range.

    A single bound is returned unchanged. With both bounds the result is an
    ``$or`` of three terms: the two strict sort-field comparisons merged into
    one window, the after-side tie clause, and the before-side tie clause.
    While the after cursor sorts ahead of the before cursor, the tie clauses
    only hold on the bound values, which lie outside the open window, so the
    three terms describe exactly the records strictly between the cursors.

    When both cursors carry the same sort value the window is empty and the
    two tie clauses overlap, so their union would include records beyond
    either cursor. That case collapses to one clause with both id bounds.

    An after cursor that sorts beyond the before cursor (in the direction
    its operator seeks) selects nothing; the result is an ``$in: []`` match
    on the id field.

    Args:
        after_bound: Output of the builder for ``after`` (may be ``{}``)
        before_bound: Output of the builder for ``before`` (may be ``{}``)
        field: Pagination field name

    Returns:
        Merged filter document, ``{}`` when neither bound is present
    """
    if not after_bound or not before_bound:
        return after_bound or before_bound

    after_range, after_tie = after_bound["$or"]
    before_range, before_tie = before_bound["$or"]

    if after_tie[field]["$eq"] == before_tie[field]["$eq"]:
        return {"$or": [_deep_merge(after_tie, before_tie)]}

    if _is_inverted(after_range, before_range, field):
        id_field = next(key for key in after_tie if key != field)
        return {"$or": [{id_field: {"$in": []}}]}

    return {
        "$or": [
            _deep_merge(after_range, before_range),
            after_tie,
            before_tie,
        ]
    }


__all__ = [
    "Direction",
    "RangePredicate",
    "merge_bounds",
    "to_paginator",
]
