"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: cache isolation between tests
    - Query Fixtures: a recording fake Queryable and in-memory documents
    - Database Fixtures: SQLAlchemy engine, session factory and seeded posts
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from relay_pager.core.pagination import create_paginator
from relay_pager.core.pagination.query import conjoin
from relay_pager.core.settings import PaginationSettings, clear_all_caches

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from relay_pager.core.pagination import Paginator


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Drop cached settings and PAGINATION_/LOG_ env overrides around each test."""
    for name in ("PAGINATION_DEFAULT_LIMIT", "PAGINATION_MAX_LIMIT", "PAGINATION_ID_FIELD", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def restore_package_logger():
    """Undo configure_logging's changes to the ``relay_pager`` logger."""
    pkg_logger = logging.getLogger("relay_pager")
    saved = (pkg_logger.level, list(pkg_logger.handlers), pkg_logger.propagate)
    yield pkg_logger
    for handler in pkg_logger.handlers:
        if handler not in saved[1]:
            handler.close()
    pkg_logger.setLevel(saved[0])
    pkg_logger.handlers[:] = saved[1]
    pkg_logger.propagate = saved[2]


# ============================================================================
# Query Fixtures
# ============================================================================


@dataclass
class QueryLog:
    """Shared call log for every handle derived from one RecordingQueryable."""

    filters: list[dict[str, Any]] = field(default_factory=list)
    sorts: list[str] = field(default_factory=list)
    limits: list[int] = field(default_factory=list)
    executed: list[dict[str, Any]] = field(default_factory=list)

    @property
    def executions(self) -> int:
        return len(self.executed)


class RecordingQueryable:
    """Queryable fake that records calls and returns canned rows.

    Mirrors the spies used to assert on the exact filter, sort and limit the
    paginator produces without a real backend.
    """

    def __init__(
        self,
        rows: list[Any] | None = None,
        criteria: Mapping[str, Any] | None = None,
        log: QueryLog | None = None,
        error: Exception | None = None,
    ) -> None:
        self.rows = rows or []
        self._criteria = dict(criteria or {})
        self.log = log or QueryLog()
        self.error = error

    @property
    def criteria(self) -> dict[str, Any]:
        return dict(self._criteria)

    def filter(self, criteria: Mapping[str, Any]) -> RecordingQueryable:
        self.log.filters.append(dict(criteria))
        return RecordingQueryable(self.rows, conjoin(self._criteria, criteria), self.log, self.error)

    def sort(self, order: str) -> RecordingQueryable:
        self.log.sorts.append(order)
        return self

    def limit(self, n: int) -> RecordingQueryable:
        self.log.limits.append(n)
        return self

    async def execute(self) -> list[Any]:
        self.log.executed.append(self.criteria)
        if self.error is not None:
            raise self.error
        return list(self.rows)


@pytest.fixture
def recording() -> RecordingQueryable:
    """Provide an empty recording queryable."""
    return RecordingQueryable()


@pytest.fixture
def make_recording() -> type[RecordingQueryable]:
    """Provide the RecordingQueryable class for tests that need canned rows."""
    return RecordingQueryable


@pytest.fixture
def paginator() -> Paginator:
    """Paginator over a date-typed ``createdAt`` field with ``_id`` tiebreaker."""
    return create_paginator(
        "createdAt",
        field_type="date",
        settings=PaginationSettings(default_limit=50, id_field="_id"),
    )


BASE_TIME = datetime(2020, 8, 4, 12, 0, tzinfo=UTC)


@pytest.fixture
def docs() -> list[dict[str, Any]]:
    """Twelve documents; ids d00..d11, with d04..d07 sharing one timestamp.

    Ascending (createdAt, _id) order is d00, d01, ..., d11.
    """
    rows = []
    for i in range(12):
        minutes = 4 if 4 <= i <= 7 else i
        rows.append(
            {
                "_id": f"d{i:02d}",
                "createdAt": BASE_TIME + timedelta(minutes=minutes),
                "status": "archived" if i % 3 == 0 else "active",
            }
        )
    return rows


# ============================================================================
# Database Fixtures
# ============================================================================


class Base(DeclarativeBase):
    pass


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


@pytest.fixture
def post_model() -> type[Post]:
    """Provide the mapped Post model."""
    return Post


@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine on a file-backed SQLite database.

    A file (not ``:memory:``) so that concurrent sessions opened by the page
    query and its probes all see the same tables.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory seeded with ten posts; posts 4..6 share a timestamp."""
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        for i in range(1, 11):
            minutes = 4 if 4 <= i <= 6 else i
            session.add(
                Post(id=i, title=f"post {i}", created_at=BASE_TIME + timedelta(minutes=minutes))
            )
        await session.commit()
    return factory
