"""Application lifespan for services that paginate with relay_pager.

Startup configures the ``relay_pager`` logger from ``LOG_*`` settings;
problem handlers are registered separately with ``configure_exception_handlers``.

Usage:
    from fastapi import FastAPI

    from relay_pager.app.exception_handlers import configure_exception_handlers
    from relay_pager.app.lifespan import lifespan

    app = FastAPI(lifespan=lifespan)
    configure_exception_handlers(app)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from relay_pager.core.settings import get_logging_settings, get_pagination_settings
from relay_pager.infra.logging.config import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure package logging for the lifetime of the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    _ = app

    log = get_logging_settings()
    setup_logging(log_settings=log, force=True)

    pagination = get_pagination_settings()
    logger.info(
        "Pagination configured",
        extra={
            "service": log.service_name,
            "default_limit": pagination.default_limit,
            "max_limit": pagination.max_limit,
        },
    )

    yield

    logger.info("Pagination service stopped", extra={"service": log.service_name})


__all__ = ["lifespan"]
