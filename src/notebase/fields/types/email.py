"""Email column type handler."""

import re
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType


class EmailFieldHandler(BaseFieldTypeHandler):
    """Handler for email columns."""

    column_type = ColumnType.EMAIL

    # RFC 5322 simplified email regex
    EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value).strip().lower()

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None or value == "":
            return True

        email = str(value).strip()
        if not cls.EMAIL_PATTERN.match(email):
            raise ValueError(f"Invalid email format: {email}")

        return True

    @classmethod
    def default(cls) -> Any:
        return None
