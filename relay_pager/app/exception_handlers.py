"""Exception handlers mapping pagination errors to HTTP responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from relay_pager.core.exceptions import PaginationException

logger = logging.getLogger(__name__)


def _create_problem_detail(exc: PaginationException, instance: str) -> dict[str, Any]:
    """Create an RFC 7807 Problem Details body for ``exc``."""
    problem: dict[str, Any] = {
        "type": exc.type,
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": instance,
    }
    if exc.extra:
        problem.update(exc.extra)
    return problem


async def pagination_exception_handler(request: Request, exc: PaginationException) -> JSONResponse:
    """Render a pagination error as RFC 7807 Problem Details.

    Args:
        request: The FastAPI request object.
        exc: The pagination exception that was raised.

    Returns:
        JSONResponse with ``application/problem+json`` content.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Pagination exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_create_problem_detail(exc, str(request.url)),
        media_type="application/problem+json",
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the pagination exception handler on ``app``.

    Example:
        app = FastAPI()
        configure_exception_handlers(app)
    """
    app.add_exception_handler(PaginationException, pagination_exception_handler)
    logger.info("Pagination exception handlers configured")
