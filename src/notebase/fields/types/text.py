"""Text column type handler."""

from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class TextFieldHandler(BaseFieldTypeHandler):
    """
    Handler for text columns.

    Validation Options:
        - min_length: Minimum text length (default: 0)
        - max_length: Maximum text length (default: 2000)
        - regex: Regular expression pattern to match against

    Example Usage:
        TextFieldHandler.validate("ABC-123", {"regex": "^[A-Z]{3}-[0-9]{3}$"})
    """

    column_type = ColumnType.TEXT

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate text value.

        Args:
            value: Value to validate
            options: Optional dict with max_length, min_length and regex

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """
        if value is None:
            return True

        options = options if isinstance(options, dict) else {}
        max_length = options.get("max_length", 2000)
        min_length = options.get("min_length", 0)

        if not isinstance(value, str):
            raise ValueError(f"Text column requires string value, got {type(value).__name__}")

        if len(value) > max_length:
            raise ValueError(f"Text value exceeds max length of {max_length}")

        if len(value) < min_length:
            raise ValueError(f"Text value is below min length of {min_length}")

        cls._validate_regex(value, options)
        return True

    @classmethod
    def default(cls) -> Any:
        return ""
