"""Date column type handler."""

from datetime import date, datetime
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class DateFieldHandler(BaseFieldTypeHandler):
    """Handler for date columns. Cells store ISO date strings."""

    column_type = ColumnType.DATE

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None or value == "":
            return None

        if isinstance(value, datetime):
            return value.date().isoformat()

        if isinstance(value, date):
            return value.isoformat()

        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
            except ValueError:
                raise ValueError(f"Invalid date format: {value}")

        raise ValueError(
            f"Cannot convert {type(value).__name__} to date, expected date or ISO string"
        )

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return None

        if isinstance(value, datetime):
            return value.date()

        if isinstance(value, date):
            return value

        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
            except ValueError:
                raise ValueError(f"Invalid date format: {value}")

        raise ValueError(f"Cannot deserialize {type(value).__name__} to date")

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate date value.

        Args:
            value: Value to validate
            options: Optional dict with 'min_date', 'max_date' keys

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """
        if value is None:
            return True

        date_value = cls.deserialize(value)

        if isinstance(options, dict):
            min_date_str = options.get("min_date")
            if min_date_str and date_value < date.fromisoformat(min_date_str):
                raise ValueError(f"Date must be on or after {min_date_str}")

            max_date_str = options.get("max_date")
            if max_date_str and date_value > date.fromisoformat(max_date_str):
                raise ValueError(f"Date must be on or before {max_date_str}")

        return True

    @classmethod
    def default(cls) -> Any:
        return None
