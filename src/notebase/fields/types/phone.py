"""Phone column type handler."""

import re
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType

# Separators people type between digit groups; a leading + is kept
_SEPARATORS = re.compile(r"[\s\-\(\)\.]")
_NON_DIGITS = re.compile(r"\D")


class PhoneFieldHandler(BaseFieldTypeHandler):
    """
    Handler for phone columns.

    Cells store the number without separators ("+15551234567"). Display
    groups North American numbers and leaves everything else as stored.
    """

    column_type = ColumnType.PHONE

    PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)\.]{7,20}$")
    MIN_DIGITS = 7
    MAX_DIGITS = 15

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return _SEPARATORS.sub("", str(value))

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None or value == "":
            return True

        phone = str(value).strip()
        if not cls.PHONE_PATTERN.match(phone):
            raise ValueError(f"Invalid phone number format: {phone}")

        digits = _NON_DIGITS.sub("", phone)
        if not cls.MIN_DIGITS <= len(digits) <= cls.MAX_DIGITS:
            raise ValueError(
                f"Phone number must have {cls.MIN_DIGITS} to {cls.MAX_DIGITS} digits, "
                f"got {len(digits)}"
            )

        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        if not value:
            return ""

        digits = _NON_DIGITS.sub("", str(value))
        if len(digits) == 11 and digits.startswith("1"):
            return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
        if len(digits) == 10:
            return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
        return str(value)
