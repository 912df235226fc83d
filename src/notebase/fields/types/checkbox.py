"""Checkbox column type handler."""

from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class CheckboxFieldHandler(BaseFieldTypeHandler):
    """Handler for checkbox columns."""

    column_type = ColumnType.CHECKBOX

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return False
        return bool(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return False
        return bool(value)

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None:
            return True

        if not isinstance(value, bool):
            raise ValueError(f"Checkbox column requires boolean value, got {type(value).__name__}")

        return True

    @classmethod
    def default(cls) -> Any:
        return False

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        return "Yes" if value else "No"
