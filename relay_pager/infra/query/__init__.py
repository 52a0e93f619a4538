"""Reference ``Queryable`` executors.

- ``memory.MemoryQueryable``: plain Python records, evaluated in process
- ``sql.SQLAlchemyQueryable``: mapped models through an async session factory
"""

from relay_pager.infra.query.memory import MemoryQueryable
from relay_pager.infra.query.sql import SQLAlchemyQueryable

__all__ = ["MemoryQueryable", "SQLAlchemyQueryable"]
