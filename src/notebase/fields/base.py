"""Base class for column type handlers."""

import re
from abc import ABC, abstractmethod
from typing import Any

from notebase.fields.coercion import to_display_string
from notebase.schemas.column import ColumnType


class BaseFieldTypeHandler(ABC):
    """
    Base class for column type handlers.

    Each column type (text, number, relation, etc.) implements this class
    to describe the legal raw values of its cells: how they are stored,
    read back, validated and displayed.

    Validation Options:
        Handlers receive the column's ``options`` in ``validate()``. For select,
        relation, formula and rollup columns this is the parsed options model;
        for other types it is a plain dict. Common dict options include:

        - regex: Regex pattern string for pattern matching

        Use the helper method _validate_regex() to implement it in concrete
        handlers.

    Example:
        class MyFieldHandler(BaseFieldTypeHandler):
            column_type = ColumnType.TEXT

            @classmethod
            def validate(cls, value: Any, options: Any = None) -> bool:
                if value is None:
                    return True
                cls._validate_regex(value, options)
                return True
    """

    column_type: ColumnType

    @classmethod
    @abstractmethod
    def serialize(cls, value: Any) -> Any:
        """
        Convert Python value to the stored cell format.

        Args:
            value: Python value to serialize

        Returns:
            Storable value (JSON-serializable)
        """
        pass

    @classmethod
    @abstractmethod
    def deserialize(cls, value: Any) -> Any:
        """
        Convert a stored cell value to Python format.

        Args:
            value: Stored value to deserialize

        Returns:
            Python value
        """
        pass

    @classmethod
    @abstractmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate value against column type requirements.

        Args:
            value: Value to validate
            options: Column type-specific options

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """
        pass

    @classmethod
    @abstractmethod
    def default(cls) -> Any:
        """
        Get the value a new row's cell starts with.

        Returns:
            Default value (JSON-serializable)
        """
        pass

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        """Format a cell value for display."""
        return to_display_string(value)

    @classmethod
    def is_computed(cls) -> bool:
        """Whether the column's value is derived rather than entered."""
        return False

    @classmethod
    def is_read_only(cls) -> bool:
        """Whether users can edit the column's cells directly."""
        return False

    @classmethod
    def _validate_regex(cls, value: Any, options: Any = None) -> bool:
        """
        Helper method to validate value against regex pattern from options.

        Args:
            value: Value to validate
            options: Optional dict with 'regex' key containing regex pattern string

        Returns:
            True if valid or no regex specified

        Raises:
            ValueError: If value doesn't match regex pattern or regex is invalid
        """
        if not isinstance(options, dict) or not options.get("regex"):
            return True

        if value is None or value == "":
            return True

        regex_pattern = options["regex"]
        try:
            pattern = re.compile(regex_pattern)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {regex_pattern} - {str(e)}")

        value_str = str(value)
        if not pattern.match(value_str):
            raise ValueError(f"Value '{value_str}' does not match required pattern: {regex_pattern}")

        return True
