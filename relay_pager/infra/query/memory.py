"""In-memory ``Queryable`` over plain Python records.

Records may be mappings or objects with attributes. Filters use the same
Mongo-style documents the paginator emits:

    {"$and": [...]}, {"$or": [...]}, {"$nor": [...]}
    {"field": value}                         # equality
    {"field": {"$gt": 1, "$lte": 5}}         # $eq $ne $gt $gte $lt $lte $in $nin

Operands are coerced to the record value's type before comparing, so a
cursor's epoch-millisecond value compares correctly against a ``datetime``
field and a numeric string against an ``int`` id.

Example:
    docs = [{"_id": "a", "createdAt": ts1}, {"_id": "b", "createdAt": ts2}]
    rows = await MemoryQueryable(docs).filter({"createdAt": {"$gt": 0}}).sort("-createdAt").execute()
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from typing import Any

from relay_pager.core.exceptions import QueryCompileError
from relay_pager.core.pagination.cursor import read_field, to_epoch_millis
from relay_pager.core.pagination.ordering import parse_order
from relay_pager.core.pagination.query import conjoin
from relay_pager.infra.logging import get_lazy_logger

logger = get_lazy_logger(__name__)

_ORDERED_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def _comparable(actual: Any, operand: Any) -> tuple[Any, Any]:
    """Bring a record value and a filter operand to a common type."""
    if isinstance(actual, (date, datetime)):
        if isinstance(operand, (date, datetime)):
            return to_epoch_millis(actual), to_epoch_millis(operand)
        if isinstance(operand, str):
            try:
                operand = int(operand)
            except ValueError:
                return actual.isoformat(), operand
        return to_epoch_millis(actual), operand
    if isinstance(actual, (int, float)) and not isinstance(actual, bool) and isinstance(operand, str):
        try:
            return actual, int(operand)
        except ValueError:
            pass
        try:
            return actual, float(operand)
        except ValueError:
            return str(actual), operand
    if isinstance(operand, str) and not isinstance(actual, str):
        return str(actual), operand
    if isinstance(actual, str) and not isinstance(operand, str):
        return actual, str(operand)
    return actual, operand


def _equals(actual: Any, operand: Any) -> bool:
    if actual is None or operand is None:
        return actual is operand
    left, right = _comparable(actual, operand)
    return left == right


def _match_operators(actual: Any, operators: Mapping[str, Any]) -> bool:
    for op, operand in operators.items():
        if op == "$eq":
            ok = _equals(actual, operand)
        elif op == "$ne":
            ok = not _equals(actual, operand)
        elif op == "$in":
            ok = any(_equals(actual, item) for item in operand)
        elif op == "$nin":
            ok = not any(_equals(actual, item) for item in operand)
        elif op in _ORDERED_OPS:
            if actual is None or operand is None:
                ok = False
            else:
                left, right = _comparable(actual, operand)
                try:
                    ok = _ORDERED_OPS[op](left, right)
                except TypeError:
                    ok = False
        else:
            raise QueryCompileError(f"Unsupported operator {op!r}", operator=op)
        if not ok:
            return False
    return True


def matches(record: Any, criteria: Mapping[str, Any]) -> bool:
    """Return True when ``record`` satisfies every term of ``criteria``.

    Raises:
        QueryCompileError: On an unknown ``$`` operator
    """
    for key, condition in criteria.items():
        if key == "$and":
            ok = all(matches(record, term) for term in condition)
        elif key == "$or":
            ok = any(matches(record, term) for term in condition)
        elif key == "$nor":
            ok = not any(matches(record, term) for term in condition)
        elif key.startswith("$"):
            raise QueryCompileError(f"Unsupported operator {key!r}", operator=key)
        else:
            actual = read_field(record, key)
            if isinstance(condition, Mapping) and condition and all(
                k.startswith("$") for k in condition
            ):
                ok = _match_operators(actual, condition)
            else:
                ok = _equals(actual, condition)
        if not ok:
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # None sorts first, like a missing field in an ascending index
    if value is None:
        return (0, 0)
    if isinstance(value, (date, datetime)):
        return (1, to_epoch_millis(value))
    return (1, value)


class MemoryQueryable:
    """Immutable query handle over an in-memory sequence of records.

    Attributes:
        records: The full collection (unfiltered)
    """

    def __init__(
        self,
        records: Iterable[Any],
        criteria: Mapping[str, Any] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> None:
        self.records = tuple(records)
        self._criteria = dict(criteria or {})
        self._order = order
        self._limit = limit

    @property
    def criteria(self) -> dict[str, Any]:
        return dict(self._criteria)

    def _copy(self, **changes: Any) -> MemoryQueryable:
        params = {"criteria": self._criteria, "order": self._order, "limit": self._limit}
        params.update(changes)
        return MemoryQueryable(self.records, params.pop("criteria"), **params)

    def filter(self, criteria: Mapping[str, Any]) -> MemoryQueryable:
        return self._copy(criteria=conjoin(self._criteria, criteria))

    def sort(self, order: str) -> MemoryQueryable:
        return self._copy(order=order)

    def limit(self, n: int) -> MemoryQueryable:
        return self._copy(limit=n)

    async def execute(self) -> list[Any]:
        rows = [record for record in self.records if matches(record, self._criteria)]

        if self._order:
            # Stable sort from the least significant key up
            for field, direction in reversed(parse_order(self._order)):
                rows.sort(
                    key=lambda record, f=field: _sort_key(read_field(record, f)),
                    reverse=direction == "desc",
                )

        if self._limit is not None:
            rows = rows[: self._limit]

        logger.debug(lambda: f"memory query matched {len(rows)} of {len(self.records)} records")
        return rows


__all__ = ["MemoryQueryable", "matches"]
