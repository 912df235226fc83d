"""Column type handlers for NoteBase.

This module provides a handler for every column type a table supports.
Each handler implements serialization, deserialization, validation and
display formatting of the type's cell values.
"""

from typing import Any

from notebase.core.exceptions import InvalidCellValueError, InvalidColumnTypeError
from notebase.fields.base import BaseFieldTypeHandler

# Basic types
from notebase.fields.types.checkbox import CheckboxFieldHandler
from notebase.fields.types.date import DateFieldHandler
from notebase.fields.types.number import NumberFieldHandler
from notebase.fields.types.text import TextFieldHandler

# Contact types
from notebase.fields.types.email import EmailFieldHandler
from notebase.fields.types.phone import PhoneFieldHandler
from notebase.fields.types.url import URLFieldHandler

# User / media and selection types
from notebase.fields.types.person import FilesFieldHandler, PersonFieldHandler
from notebase.fields.types.select import MultiSelectFieldHandler, SelectFieldHandler

# System types
from notebase.fields.types.system_fields import (
    CreatedByFieldHandler,
    CreatedTimeFieldHandler,
    LastEditedByFieldHandler,
    LastEditedTimeFieldHandler,
)

# Reference and computed types
from notebase.fields.types.formula import FormulaFieldHandler
from notebase.fields.types.relation import RelationFieldHandler
from notebase.fields.types.rollup import RollupFieldHandler
from notebase.schemas.column import Column, ColumnType

# Registry of column type handlers
FIELD_HANDLERS: dict[str, type[BaseFieldTypeHandler]] = {
    handler.column_type: handler
    for handler in (
        TextFieldHandler,
        NumberFieldHandler,
        DateFieldHandler,
        CheckboxFieldHandler,
        URLFieldHandler,
        EmailFieldHandler,
        PhoneFieldHandler,
        PersonFieldHandler,
        FilesFieldHandler,
        SelectFieldHandler,
        MultiSelectFieldHandler,
        RelationFieldHandler,
        RollupFieldHandler,
        FormulaFieldHandler,
        CreatedTimeFieldHandler,
        CreatedByFieldHandler,
        LastEditedTimeFieldHandler,
        LastEditedByFieldHandler,
    )
}


def get_field_handler(column_type: ColumnType | str) -> type[BaseFieldTypeHandler] | None:
    """
    Get handler for given column type.

    Args:
        column_type: ColumnType or its string value, e.g. "multiSelect"

    Returns:
        Handler class or None if not found
    """
    return FIELD_HANDLERS.get(column_type)


def require_field_handler(column_type: ColumnType | str) -> type[BaseFieldTypeHandler]:
    """
    Get handler for given column type.

    Raises:
        InvalidColumnTypeError: If no handler is registered for the type
    """
    handler = get_field_handler(column_type)
    if handler is None:
        raise InvalidColumnTypeError(str(getattr(column_type, "value", column_type)))
    return handler


def register_field_handler(handler: type[BaseFieldTypeHandler]) -> None:
    """Register (or replace) the handler for ``handler.column_type``."""
    FIELD_HANDLERS[handler.column_type] = handler


def list_field_types() -> list[str]:
    """List all registered column type identifiers."""
    return [str(getattr(t, "value", t)) for t in FIELD_HANDLERS]


def validate_cell(column: Column, value: Any) -> bool:
    """
    Check a value before it is written to a cell of ``column``.

    Raises:
        InvalidColumnTypeError: If the column type has no handler
        InvalidCellValueError: If the handler rejects the value
    """
    handler = require_field_handler(column.type)
    try:
        return handler.validate(value, column.options)
    except ValueError as e:
        raise InvalidCellValueError(column.name, f"{column.type.value} ({e})", value) from e


__all__ = [
    "BaseFieldTypeHandler",
    "FIELD_HANDLERS",
    "get_field_handler",
    "require_field_handler",
    "register_field_handler",
    "list_field_types",
    "validate_cell",
    # Handlers
    "TextFieldHandler",
    "NumberFieldHandler",
    "DateFieldHandler",
    "CheckboxFieldHandler",
    "URLFieldHandler",
    "EmailFieldHandler",
    "PhoneFieldHandler",
    "PersonFieldHandler",
    "FilesFieldHandler",
    "SelectFieldHandler",
    "MultiSelectFieldHandler",
    "RelationFieldHandler",
    "RollupFieldHandler",
    "FormulaFieldHandler",
    "CreatedTimeFieldHandler",
    "CreatedByFieldHandler",
    "LastEditedTimeFieldHandler",
    "LastEditedByFieldHandler",
]
