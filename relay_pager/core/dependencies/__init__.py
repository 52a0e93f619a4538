"""FastAPI dependencies."""

from relay_pager.core.dependencies.pagination import CursorPagination, get_cursor_pagination

__all__ = ["CursorPagination", "get_cursor_pagination"]
