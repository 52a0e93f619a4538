"""Query-execution interface consumed by the paginator.

The paginator never talks to storage directly. It describes each query as
filter / sort / limit calls on a ``Queryable`` handle and awaits
``execute()``. A whole collection and a pre-filtered scope are both
``Queryable`` values; the caller decides which one to paginate.

Handles are immutable: ``filter``, ``sort`` and ``limit`` return new
handles, so one scope can seed the page query and both probes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Protocol, runtime_checkable

from relay_pager.core.pagination.predicates import RangePredicate


@runtime_checkable
class Queryable(Protocol):
    """Minimal chainable query capability.

    Implementations:
        - ``relay_pager.infra.query.memory.MemoryQueryable``
        - ``relay_pager.infra.query.sql.SQLAlchemyQueryable``
    """

    @property
    def criteria(self) -> dict[str, Any]:
        """Conjunction of every filter applied so far (``{}`` when none)."""
        ...

    def filter(self, criteria: Mapping[str, Any]) -> Queryable:
        """Return a handle further restricted by ``criteria``."""
        ...

    def sort(self, order: str) -> Queryable:
        """Return a handle ordered by a space separated order string."""
        ...

    def limit(self, n: int) -> Queryable:
        """Return a handle that yields at most ``n`` records."""
        ...

    async def execute(self) -> Sequence[Any]:
        """Run the query and return the matching records."""
        ...


def conjoin(existing: Mapping[str, Any], criteria: Mapping[str, Any]) -> dict[str, Any]:
    """AND two filter documents together, flattening nested ``$and`` lists.

    Example:
        conjoin({"status": "open"}, {"$or": [...]})
        # {"$and": [{"status": "open"}, {"$or": [...]}]}
    """
    if not existing:
        return dict(criteria)
    if not criteria:
        return dict(existing)

    terms: list[dict[str, Any]] = []
    for doc in (existing, criteria):
        if set(doc) == {"$and"}:
            terms.extend(doc["$and"])
        else:
            terms.append(dict(doc))
    return {"$and": terms}


@dataclass(frozen=True, slots=True)
class PageQuery:
    """Declarative description of one page fetch.

    The range predicate is held next to the scope rather than folded into
    it, so ``without_range()`` yields the caller's scope untouched.

    Attributes:
        scope: Caller-supplied queryable (base filter already applied)
        range: Cursor range predicate added by the paginator, if any
        order: Order string passed to ``sort``
        limit: Row limit, including the over-fetch sentinel
    """

    scope: Queryable
    range: RangePredicate | None
    order: str
    limit: int

    def build(self) -> Queryable:
        """Apply range, order and limit to the scope."""
        handle = self.scope
        if self.range is not None:
            handle = handle.filter(self.range.to_filter())
        return handle.sort(self.order).limit(self.limit)

    def without_range(self) -> PageQuery:
        """Return a copy with the paginator's range predicate removed."""
        return replace(self, range=None)

    def describe(self) -> dict[str, Any]:
        """Summarize the query for debug logging."""
        return {
            "criteria": conjoin(
                self.scope.criteria,
                self.range.to_filter() if self.range else {},
            ),
            "order": self.order,
            "limit": self.limit,
        }


__all__ = ["PageQuery", "Queryable", "conjoin"]
