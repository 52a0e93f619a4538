"""Cursor encoding and decoding for pagination.

A cursor is an opaque string that pins a record's position in a sorted
sequence. It carries two values: the record's unique id and the value of
the pagination (sort) field, joined by ``_`` and base64 encoded.

The cursor format is:
1. ``"<id>_<value>"`` where datetimes are rendered as epoch milliseconds
2. Standard base64 encoded

Example:
    "5f29772ee3cfd20407c0d6de_1596553006941"

Encoded: NWYyOTc3MmVlM2NmZDIwNDA3YzBkNmRlXzE1OTY1NTMwMDY5NDE=

Cursors are always derived from a record's current field values and never
stored, so they stay consistent with the data they point at.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from relay_pager.core.exceptions import InvalidCursorError
from relay_pager.core.settings.pagination import SortFieldType
from relay_pager.infra.logging import get_lazy_logger

logger = get_lazy_logger(__name__)

SEPARATOR = "_"
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class DecodedCursor(BaseModel):
    """Internal representation of a decoded cursor.

    Attributes:
        id: Unique identifier of the record, in string form
        field: Name of the pagination field the value belongs to
        value: Pagination field value, cast per the field type
    """

    id: str = Field(description="Unique record identifier")
    field: str = Field(description="Pagination field name")
    value: str | int | float = Field(description="Pagination field value")

    model_config = {"frozen": True}

    def as_dict(self, id_field: str = "_id") -> dict[str, Any]:
        """Return the cursor as ``{id_field: id, field: value}``."""
        return {id_field: self.id, self.field: self.value}


def read_field(record: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an object attribute."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def to_epoch_millis(value: date | datetime) -> int:
    """Convert a date or datetime to integer epoch milliseconds.

    Naive datetimes are taken as UTC; dates map to midnight UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - EPOCH) // timedelta(milliseconds=1)


def _render(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return str(to_epoch_millis(value))
    return str(value)


def cast_value(raw: str, field_type: SortFieldType) -> str | int | float:
    """Cast the textual cursor value to the comparison type of its field.

    Raises:
        ValueError: If the text does not parse as the requested type
    """
    if field_type == "string":
        return raw
    if field_type == "date":
        return int(raw)
    try:
        return int(raw)
    except ValueError:
        return float(raw)


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        # Encoding
        cursor = CursorCodec.encode("5f29772ee3cfd20407c0d6de", 1596553006941)

        # Decoding
        data = CursorCodec.decode(cursor, "createdAt", field_type="date")
        print(data.id, data.value)  # 5f29772ee3cfd20407c0d6de 1596553006941
    """

    @staticmethod
    def encode(id: Any, value: Any) -> str:
        """Encode an id / sort value pair to an opaque string.

        Args:
            id: Record identifier (rendered with ``str``)
            value: Pagination field value; dates become epoch milliseconds

        Returns:
            Base64 encoded cursor string
        """
        raw = f"{id}{SEPARATOR}{_render(value)}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    @staticmethod
    def decode(
        cursor: str,
        field: str,
        *,
        field_type: SortFieldType = "string",
    ) -> DecodedCursor:
        """Decode a cursor string.

        The payload is split on the first separator; ids never contain it,
        while values (free-form strings) may.

        Args:
            cursor: Base64 encoded cursor string
            field: Pagination field the value belongs to
            field_type: Comparison type of the pagination field

        Returns:
            DecodedCursor with id and cast value

        Raises:
            InvalidCursorError: If the cursor is not a well-formed cursor
        """
        # Clients commonly strip the trailing padding
        padded = cursor + "=" * (-len(cursor) % 4)
        try:
            payload = base64.b64decode(padded.encode("ascii"), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeError) as e:
            logger.warning("Rejected undecodable cursor %r: %s", cursor, e)
            raise InvalidCursorError(cursor, reason="not valid base64") from e

        id_, sep, raw_value = payload.partition(SEPARATOR)
        if not sep:
            logger.warning("Rejected cursor %r without separator", cursor)
            raise InvalidCursorError(cursor, reason="missing separator")
        if not id_ or not raw_value:
            logger.warning("Rejected cursor %r with empty part", cursor)
            raise InvalidCursorError(cursor, reason="empty id or value")

        try:
            value = cast_value(raw_value, field_type)
        except ValueError as e:
            logger.warning("Rejected cursor %r: %r is not a %s", cursor, raw_value, field_type)
            raise InvalidCursorError(cursor, reason=f"value is not a {field_type}") from e

        return DecodedCursor(id=id_, field=field, value=value)

    @staticmethod
    def create_cursor(record: Any, field: str, *, id_field: str = "_id") -> str:
        """Create the cursor of a record.

        Args:
            record: Mapping or object exposing ``id_field`` and ``field``
            field: Pagination field name
            id_field: Unique identifier field name

        Returns:
            Encoded cursor string

        Example:
            cursor = CursorCodec.create_cursor(doc, "createdAt")
        """
        return CursorCodec.encode(read_field(record, id_field), read_field(record, field))


__all__ = [
    "CursorCodec",
    "DecodedCursor",
    "cast_value",
    "read_field",
    "to_epoch_millis",
]
