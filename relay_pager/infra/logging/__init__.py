"""Logging infrastructure.

Basic usage:
    import logging

    logger = logging.getLogger(__name__)
    logger.info("Paginator configured")

    # Lazy evaluation for expensive operations
    from relay_pager.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"criteria={query.describe()}")  # Only runs if DEBUG enabled

Setup:
    Handlers live on the ``relay_pager`` logger and are installed once per
    process from ``LOG_*`` settings (``LoggingSettings``):

    from relay_pager.infra.logging import setup_logging

    setup_logging()  # console, JSONL via JSONFormatter when LOG_JSON_LOGS=true

    FastAPI services get the same call from ``relay_pager.app.lifespan.lifespan``.
"""

from relay_pager.infra.logging.config import configure_logging, setup_logging
from relay_pager.infra.logging.formatters import JSONFormatter
from relay_pager.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger, lazy

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "configure_logging",
    "get_lazy_logger",
    "lazy",
    "setup_logging",
]
