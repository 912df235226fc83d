"""URL column type handler."""

import re
from typing import Any
from urllib.parse import urlparse

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


class URLFieldHandler(BaseFieldTypeHandler):
    """
    Handler for URL columns.

    Options:
        - allowed_protocols: list of allowed protocols (default: ["http", "https"])
    """

    column_type = ColumnType.URL

    @classmethod
    def serialize(cls, value: Any) -> Any:
        """Store the URL, adding https:// when no scheme is given."""
        if value is None:
            return None
        url = str(value).strip()
        if url and not _SCHEME_PATTERN.match(url):
            url = "https://" + url
        return url

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None or value == "":
            return True

        url = cls.serialize(value)
        options = options if isinstance(options, dict) else {}
        allowed_protocols = options.get("allowed_protocols", ["http", "https"])

        parsed = urlparse(url)
        if parsed.scheme not in allowed_protocols:
            raise ValueError(
                f"URL protocol '{parsed.scheme}' not allowed. "
                f"Allowed: {', '.join(allowed_protocols)}"
            )
        if not parsed.netloc:
            raise ValueError(f"Invalid URL: {value}")

        return True

    @classmethod
    def default(cls) -> Any:
        return None
