"""SQLAlchemy ``Queryable`` backed by an async session factory.

Compiles the paginator's Mongo-style filter documents into SQLAlchemy
expressions against a mapped model. For a cursor at ``(t1, id1)`` on
``created_at`` the range predicate becomes::

    WHERE (created_at > t1) OR (created_at = t1 AND id > id1)

Cursor operands arrive as strings or epoch milliseconds; they are converted
to the column's Python type (``DateTime``, ``Integer``, ``Uuid``) before
binding. An operand that cannot be converted raises ``InvalidCursorError``.
Epoch-millisecond operands on ``DateTime`` columns compare against the whole
millisecond ``[t, t + 1ms)``, so ``created_at > t1`` renders as
``created_at >= t1 + 1ms``.

Each ``execute`` opens its own session: an ``AsyncSession`` cannot run the
page query and the probes concurrently.

Example:
    scope = SQLAlchemyQueryable(session_factory, Post).filter({"published": True})
    page = await paginator.paginate(scope, first=20, after=cursor)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import DateTime, Integer, Uuid, and_, not_, or_, select, true

from relay_pager.core.exceptions import InvalidCursorError, QueryCompileError
from relay_pager.core.pagination.ordering import parse_order
from relay_pager.core.pagination.query import conjoin
from relay_pager.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlalchemy.orm import InstrumentedAttribute

logger = get_lazy_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
OPERATORS = frozenset({"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"})


def convert_operand(column: InstrumentedAttribute[Any], value: Any) -> Any:
    """Convert a filter operand to the Python type of ``column``.

    Handles epoch-millisecond timestamps and the string ids carried in
    cursors.
    """
    if value is None:
        return None

    column_type = getattr(column.type, "impl", column.type)

    if isinstance(column_type, DateTime):
        if isinstance(value, str):
            try:
                value = int(value)
            except ValueError:
                return datetime.fromisoformat(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = EPOCH + timedelta(milliseconds=value)
        if isinstance(value, datetime) and not column_type.timezone and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    if isinstance(column_type, Uuid) and isinstance(value, str):
        return UUID(value)

    if isinstance(column_type, Integer) and isinstance(value, str):
        return int(value)

    return value


class FilterCompiler:
    """Translate filter documents into SQLAlchemy boolean expressions.

    Attributes:
        model: Mapped model class the field names resolve against
        field_map: Optional aliases from filter field names to attribute names
    """

    def __init__(self, model: type[Any], field_map: Mapping[str, str] | None = None) -> None:
        self.model = model
        self.field_map = dict(field_map or {})

    def column(self, name: str) -> InstrumentedAttribute[Any]:
        attr = getattr(self.model, self.field_map.get(name, name), None)
        if attr is None:
            raise QueryCompileError(
                f"{self.model.__name__} has no field {name!r}", operator=name
            )
        return attr

    def compile(self, criteria: Mapping[str, Any]) -> ColumnElement[bool]:
        """Compile a filter document; ``{}`` compiles to TRUE.

        Raises:
            QueryCompileError: On unknown fields or operators
        """
        clauses: list[ColumnElement[bool]] = []
        for key, condition in criteria.items():
            if key == "$and":
                clauses.append(and_(*(self.compile(term) for term in condition)))
            elif key == "$or":
                clauses.append(or_(*(self.compile(term) for term in condition)))
            elif key == "$nor":
                clauses.append(not_(or_(*(self.compile(term) for term in condition))))
            elif key.startswith("$"):
                raise QueryCompileError(f"Unsupported operator {key!r}", operator=key)
            else:
                clauses.append(self._field(self.column(key), condition))

        if not clauses:
            return true()
        return clauses[0] if len(clauses) == 1 else and_(*clauses)

    def _field(self, column: InstrumentedAttribute[Any], condition: Any) -> ColumnElement[bool]:
        if not (isinstance(condition, Mapping) and condition and all(k.startswith("$") for k in condition)):
            return self._compare(column, "$eq", condition)

        parts: list[ColumnElement[bool]] = []
        for op, operand in condition.items():
            if op not in OPERATORS:
                raise QueryCompileError(f"Unsupported operator {op!r}", operator=op)
            if op in ("$in", "$nin"):
                values = [self._convert(column, item) for item in operand]
                parts.append(column.in_(values) if op == "$in" else column.not_in(values))
            else:
                parts.append(self._compare(column, op, operand))
        return parts[0] if len(parts) == 1 else and_(*parts)

    def _compare(self, column: InstrumentedAttribute[Any], op: str, operand: Any) -> ColumnElement[bool]:
        bucket = self._millisecond_bucket(column, operand)
        if bucket is not None:
            start, end = bucket
            if op == "$eq":
                return and_(column >= start, column < end)
            if op == "$ne":
                return or_(column < start, column >= end)
            if op == "$gt":
                return column >= end
            if op == "$gte":
                return column >= start
            if op == "$lt":
                return column < start
            return column < end

        value = self._convert(column, operand)
        if op == "$eq":
            return column.is_(None) if value is None else column == value
        if op == "$ne":
            return column.is_not(None) if value is None else column != value
        if op == "$gt":
            return column > value
        if op == "$gte":
            return column >= value
        if op == "$lt":
            return column < value
        return column <= value

    def _millisecond_bucket(
        self, column: InstrumentedAttribute[Any], operand: Any
    ) -> tuple[datetime, datetime] | None:
        """Return ``[start, end)`` for an epoch-millisecond operand on a DateTime column.

        Stored timestamps may carry microseconds while cursors hold whole
        milliseconds, so every row inside that millisecond compares equal to
        the operand.
        """
        if not isinstance(getattr(column.type, "impl", column.type), DateTime):
            return None
        if isinstance(operand, str):
            try:
                operand = int(operand)
            except ValueError:
                return None
        if not isinstance(operand, int) or isinstance(operand, bool):
            return None
        return self._convert(column, operand), self._convert(column, operand + 1)

    def _convert(self, column: InstrumentedAttribute[Any], value: Any) -> Any:
        try:
            return convert_operand(column, value)
        except (ValueError, TypeError, OverflowError) as exc:
            raise InvalidCursorError(
                str(value), reason=f"{value!r} is not a valid {column.key} value"
            ) from exc


class SQLAlchemyQueryable:
    """Immutable query handle over a mapped model.

    Example:
        scope = SQLAlchemyQueryable(session_factory, Post, field_map={"_id": "id"})
        rows = await scope.filter({"author_id": 7}).sort("-created_at").limit(10).execute()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[Any],
        criteria: Mapping[str, Any] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
        field_map: Mapping[str, str] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.model = model
        self.field_map = dict(field_map or {})
        self._criteria = dict(criteria or {})
        self._order = order
        self._limit = limit

    @property
    def criteria(self) -> dict[str, Any]:
        return dict(self._criteria)

    def _copy(self, **changes: Any) -> SQLAlchemyQueryable:
        params: dict[str, Any] = {
            "criteria": self._criteria,
            "order": self._order,
            "limit": self._limit,
            "field_map": self.field_map,
        }
        params.update(changes)
        return SQLAlchemyQueryable(self.session_factory, self.model, params.pop("criteria"), **params)

    def filter(self, criteria: Mapping[str, Any]) -> SQLAlchemyQueryable:
        return self._copy(criteria=conjoin(self._criteria, criteria))

    def sort(self, order: str) -> SQLAlchemyQueryable:
        return self._copy(order=order)

    def limit(self, n: int) -> SQLAlchemyQueryable:
        return self._copy(limit=n)

    def statement(self) -> Any:
        """Build the ``Select`` this handle would execute."""
        compiler = FilterCompiler(self.model, self.field_map)
        stmt = select(self.model).where(compiler.compile(self._criteria))

        for field, direction in parse_order(self._order or ""):
            column = compiler.column(field)
            stmt = stmt.order_by(column.desc() if direction == "desc" else column.asc())

        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    async def execute(self) -> list[Any]:
        stmt = self.statement()
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = list(result.scalars().all())
        logger.debug(lambda: f"db.paginate: {self.model.__name__}(limit={self._limit}) -> {len(rows)} rows")
        return rows


__all__ = ["FilterCompiler", "SQLAlchemyQueryable", "convert_operand"]
