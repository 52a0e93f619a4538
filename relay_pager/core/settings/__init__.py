"""Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from relay_pager.core.settings import get_pagination_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file (development only)
"""

from __future__ import annotations

from .loader import clear_all_caches, get_logging_settings, get_pagination_settings
from .logs import LoggingSettings
from .pagination import PaginationSettings, PaginatorConfig, SortFieldType

__all__ = [
    "LoggingSettings",
    "PaginationSettings",
    "PaginatorConfig",
    "SortFieldType",
    "clear_all_caches",
    "get_logging_settings",
    "get_pagination_settings",
]
