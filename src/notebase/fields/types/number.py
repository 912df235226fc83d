"""Number column type handler."""

from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.fields.coercion import to_number
from notebase.schemas.column import ColumnType


class NumberFieldHandler(BaseFieldTypeHandler):
    """Handler for number columns."""

    column_type = ColumnType.NUMBER

    @classmethod
    def serialize(cls, value: Any) -> Any:
        """Store numbers as int/float; numeric strings are converted."""
        if value is None or value == "":
            return None
        number = to_number(value)
        if number is None or isinstance(value, (list, tuple)):
            raise ValueError(f"Cannot convert {value} to number")
        return number

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return to_number(value)

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate number value.

        Args:
            value: Value to validate
            options: Optional dict with 'min_value', 'max_value' keys

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """
        if value is None:
            return True

        if isinstance(value, bool):
            raise ValueError("Number column requires numeric value, got bool")

        num = to_number(value)
        if num is None:
            raise ValueError(f"Number column requires numeric value, got {value}")

        if isinstance(options, dict):
            min_value = options.get("min_value")
            if min_value is not None and num < min_value:
                raise ValueError(f"Number value must be >= {min_value}")

            max_value = options.get("max_value")
            if max_value is not None and num > max_value:
                raise ValueError(f"Number value must be <= {max_value}")

        return True

    @classmethod
    def default(cls) -> Any:
        return None
