"""Canonical value coercions shared by the formula evaluator, the rollup
aggregator and the field handlers.

Every truthiness, emptiness and number check on a cell value goes through
this module so the three consumers agree on edge cases.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from notebase.schemas.column import Column, ColumnType, FormulaOptions, RollupOptions

# Same shape as the formula grammar's NUMBER terminal, with an optional sign
_NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

# Larger floats are not exact integers; keep them as floats
_MAX_EXACT_INT = 2**53


def normalize_number(value: int | float) -> int | float:
    """Return whole floats as ints (30.0 -> 30); leave everything else alone."""
    if isinstance(value, float) and abs(value) <= _MAX_EXACT_INT and value.is_integer():
        return int(value)
    return value


def parse_number(text: str) -> int | float | None:
    """Parse a string that is entirely a decimal number, else None."""
    candidate = text.strip()
    if not _NUMBER_PATTERN.fullmatch(candidate):
        return None
    if not any(ch in candidate for ch in ".eE"):
        # Integer text stays exact beyond float precision
        try:
            return int(candidate)
        except ValueError:
            # Longer than int() accepts
            return None
    value = float(candidate)
    if not math.isfinite(value):
        return None
    return normalize_number(value)


def to_number(value: Any) -> int | float | None:
    """
    Coerce a cell value to a number.

    Args:
        value: Raw cell or formula value

    Returns:
        int/float for numbers, booleans (1/0) and fully numeric strings;
        None for null, non-numeric text, lists and dates
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return normalize_number(value) if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return to_number(float(value))
    if isinstance(value, str):
        return parse_number(value)
    return None


def to_display_string(value: Any) -> str:
    """
    Render a value the way a table cell shows it.

    Numbers use the shortest round-tripping form so that
    ``to_number(to_display_string(n)) == n``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        value = normalize_number(value)
        return str(value) if isinstance(value, int) else repr(value)
    if isinstance(value, Decimal):
        return to_display_string(float(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(to_display_string(v) for v in value if not is_empty(v))
    return str(value)


def is_empty(value: Any) -> bool:
    """Null, the empty string and empty collections are empty; 0 and False are not."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def to_bool(value: Any) -> bool:
    """Truthiness used by if() conditions."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return not is_empty(value)


def has_valid_config(target: Column | FormulaOptions | RollupOptions | str | None) -> bool:
    """
    Return whether a formula or rollup is configured enough to evaluate.

    Accepts a column, its options model, or a bare formula source. Columns
    that are not computed are always configured.
    """
    if target is None:
        return False
    if isinstance(target, str):
        return bool(target.strip())
    if isinstance(target, (FormulaOptions, RollupOptions)):
        return target.has_valid_config
    if isinstance(target, Column):
        if target.type not in (ColumnType.FORMULA, ColumnType.ROLLUP):
            return True
        options = target.options
        if isinstance(options, (FormulaOptions, RollupOptions)):
            return options.has_valid_config
        return False
    return False
