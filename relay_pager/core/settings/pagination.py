"""Pagination settings and per-collection paginator configuration.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_DEFAULT_LIMIT=50, PAGINATION_MAX_LIMIT=1000

``PaginationSettings`` holds process-wide defaults. ``PaginatorConfig`` is
the explicit, per-collection configuration owned by a ``Paginator``; it is
built once at setup time and never mutated afterwards.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SortFieldType = Literal["string", "number", "date"]


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        default_limit: Page size used when neither first nor last is given.
        max_limit: Largest page size accepted from HTTP clients.
        id_field: Name of the unique tiebreaker field.

    Example:
        settings = PaginationSettings()
        limit = min(requested_limit, settings.max_limit)
    """

    default_limit: int = Field(
        default=50,
        ge=1,
        le=10000,
        description="Default page size when first/last is not specified",
    )
    max_limit: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Maximum page size accepted from API clients",
    )
    id_field: str = Field(
        default="_id",
        min_length=1,
        description="Unique field used to break ties on the sort field",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


class PaginatorConfig(BaseModel):
    """Setup-time configuration for one paginated collection.

    Attributes:
        pagination_field: Primary sort field; the cursor carries its value.
        default_limit: Page size when the request gives neither first nor last.
        id_field: Unique tiebreaker field paired with the sort field.
        field_type: How decoded cursor values are cast before comparison.
    """

    pagination_field: str = Field(min_length=1)
    default_limit: int = Field(default=50, ge=1)
    id_field: str = Field(default="_id", min_length=1)
    field_type: SortFieldType = "string"

    model_config = {"frozen": True}

    @field_validator("pagination_field")
    @classmethod
    def _strip_sign(cls, v: str) -> str:
        # The field name itself is unsigned; direction lives in the sort option.
        if v.startswith("-"):
            raise ValueError("pagination_field must not carry a sort sign")
        return v
