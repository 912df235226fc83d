"""Person and files column type handlers.

Both store either a single string or a list of strings (user ids for
person columns, file names or URLs for files columns).
"""

from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class PersonFieldHandler(BaseFieldTypeHandler):
    """Handler for person columns."""

    column_type = ColumnType.PERSON

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value if v is not None]
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return True
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return True
        raise ValueError(
            f"{cls.column_type.value} column requires a string or list of strings, "
            f"got {type(value).__name__}"
        )

    @classmethod
    def default(cls) -> Any:
        return None


class FilesFieldHandler(PersonFieldHandler):
    """Handler for files columns."""

    column_type = ColumnType.FILES

    @classmethod
    def default(cls) -> Any:
        return []
