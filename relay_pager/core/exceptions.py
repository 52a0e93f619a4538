"""Exceptions raised by the paginator, its executors and its HTTP surface."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class PaginationException(Exception):
    """Root of every pagination error.

    Each error carries an RFC 7807 problem description so the FastAPI
    handler can render it without knowing the concrete subclass.

    Attributes:
        status_code: HTTP status the problem maps to
        detail: Message for the client
        type: Problem type slug, e.g. ``invalid-cursor``
        title: Problem type summary; defaults to the HTTP reason phrase
        extra: Problem members added next to the standard ones

    Example:
        raise PaginationException(400, "Cursor could not be decoded", type="invalid-cursor")
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._reason(status_code)
        self.extra = extra or {}

    @staticmethod
    def _reason(status_code: int) -> str:
        try:
            return HTTPStatus(status_code).phrase
        except ValueError:
            return "Error"

    def __str__(self) -> str:
        if not self.extra:
            return self.detail
        context = ", ".join(f"{key}={value!r}" for key, value in self.extra.items())
        return f"{self.detail} ({context})"


class PaginationConfigError(PaginationException):
    """Raised at setup time when a paginator is misconfigured.

    This is fatal: it is raised before any query runs and is never
    recoverable by retrying the call.

    Example:
        raise PaginationConfigError('"pagination_field" is required')
    """

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type="pagination-config-error",
            title="Pagination Misconfigured",
            extra=extra,
        )


class InvalidCursorError(PaginationException):
    """Raised when a cursor cannot be decoded into an id and a value.

    Attributes:
        cursor: The cursor string as received from the client.
        reason: Why decoding failed.

    Example:
        raise InvalidCursorError("bm9wZQ==", reason="missing separator")
    """

    def __init__(self, cursor: str, reason: str) -> None:
        self.cursor = cursor
        self.reason = reason
        super().__init__(
            status_code=400,
            detail=f"Invalid cursor: {reason}",
            type="invalid-cursor",
            title="Invalid Cursor",
            extra={"cursor": cursor},
        )


class InvalidPaginationRequestError(PaginationException):
    """Raised for contradictory pagination arguments such as first + last."""

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type="invalid-pagination-request",
            title="Invalid Pagination Request",
            extra=extra,
        )


class QueryCompileError(PaginationException):
    """Raised by an executor that cannot translate a declarative filter.

    Attributes:
        operator: The operator or field name that could not be compiled.
    """

    def __init__(self, detail: str, operator: str | None = None) -> None:
        self.operator = operator
        super().__init__(
            status_code=500,
            detail=detail,
            type="query-compile-error",
            title="Query Compile Error",
            extra={"operator": operator} if operator else None,
        )


__all__ = [
    "InvalidCursorError",
    "InvalidPaginationRequestError",
    "PaginationConfigError",
    "PaginationException",
    "QueryCompileError",
]
