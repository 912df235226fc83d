"""System column type handlers.

These columns are read-only and managed by the system. They read the
row's metadata (created_at, updated_at, created_by, last_edited_by)
rather than a stored cell, see Row.value_for.
"""

from datetime import datetime
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class CreatedTimeFieldHandler(BaseFieldTypeHandler):
    """Handler for createdTime columns, backed by Row.created_at."""

    column_type = ColumnType.CREATED_TIME

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """System-managed, always valid."""
        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        if isinstance(value, datetime):
            return value.strftime("%b %d, %Y %H:%M")
        return "" if value is None else str(value)

    @classmethod
    def is_read_only(cls) -> bool:
        return True


class LastEditedTimeFieldHandler(CreatedTimeFieldHandler):
    """Handler for lastEditedTime columns, backed by Row.updated_at."""

    column_type = ColumnType.LAST_EDITED_TIME


class CreatedByFieldHandler(BaseFieldTypeHandler):
    """Handler for createdBy columns, backed by Row.created_by."""

    column_type = ColumnType.CREATED_BY

    @classmethod
    def serialize(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """System-managed, always valid."""
        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def is_read_only(cls) -> bool:
        return True


class LastEditedByFieldHandler(CreatedByFieldHandler):
    """Handler for lastEditedBy columns, backed by Row.last_edited_by."""

    column_type = ColumnType.LAST_EDITED_BY
