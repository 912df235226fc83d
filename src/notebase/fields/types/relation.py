"""Relation column type handler.

Relation cells store the ids of rows in another table, in link order.
"""

from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType, RelationOptions


class RelationFieldHandler(BaseFieldTypeHandler):
    """
    Handler for relation columns.

    Options:
        related_table_id: id of the table the row ids point into
        related_table_name: cached display name of that table

    Storage format:
        List of related row ids: ["row-1", "row-2", ...]
    """

    column_type = ColumnType.RELATION

    @classmethod
    def serialize(cls, value: Any) -> list[str] | None:
        """
        Convert linked rows to stored format.

        Args:
            value: Row id, list of row ids, or list of {"id": ...} dicts

        Returns:
            List of row id strings or None
        """
        if value is None:
            return None

        if not isinstance(value, (list, tuple)):
            value = [value]

        result = []
        for item in value:
            if item is None or item == "":
                continue
            if isinstance(item, dict) and "id" in item:
                result.append(str(item["id"]))
            else:
                result.append(str(item))

        return result if result else None

    @classmethod
    def deserialize(cls, value: Any) -> list[str]:
        return cls.related_row_ids(value)

    @classmethod
    def related_row_ids(cls, value: Any) -> list[str]:
        """Read a relation cell as a list of row ids; null is an empty list."""
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value if v is not None and v != ""]
        return []

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate relation value.

        Args:
            value: List of related row ids
            options: RelationOptions

        Returns:
            True if valid

        Raises:
            ValueError: If the value is not a list of ids or no related table is set
        """
        if value is None:
            return True

        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ValueError("Relation column requires a list of row ids")

        if value and not (isinstance(options, RelationOptions) and options.related_table_id):
            raise ValueError("Relation column has no related table")

        if len(value) != len(set(value)):
            raise ValueError("Relation row ids must be unique")

        return True

    @classmethod
    def default(cls) -> Any:
        return []
