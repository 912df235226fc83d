"""Formula functions for NoteBase.

Implements the built-in function library. The set is closed: formulas can
only call what is registered here (plus ``if``, which the parser turns into
a ConditionalNode so its branches stay lazy).

Arguments arrive already evaluated. ``None`` is a blank value, i.e. a
property whose cell is empty.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable

from notebase.core.exceptions import FormulaTypeError
from notebase.fields.coercion import is_empty, normalize_number, to_display_string, to_number

# Type alias for formula functions
FormulaFunction = Callable[..., Any]


@dataclass(frozen=True)
class FormulaContext:
    """Evaluation-wide inputs that some functions need (only now(), today)."""

    clock: Callable[[], datetime] = datetime.now
    date_format: str = "%m/%d/%Y"


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    func: FormulaFunction
    min_args: int = 0
    max_args: int | None = None
    pass_context: bool = False
    description: str = field(default="", compare=False)

    def check_arity(self, count: int) -> None:
        """Raise FormulaTypeError when called with the wrong number of arguments."""
        if count < self.min_args or (self.max_args is not None and count > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            plural = "" if expected == "1" else "s"
            raise FormulaTypeError(
                f"{self.name.lower()}() takes {expected} argument{plural}, got {count}"
            )


# Registry of formula functions, keyed by upper-case name
FORMULA_FUNCTIONS: dict[str, FunctionSpec] = {}


def register_function(
    name: str,
    min_args: int = 0,
    max_args: int | None = None,
    pass_context: bool = False,
) -> Callable[[FormulaFunction], FormulaFunction]:
    """Decorator to register a formula function."""

    def decorator(func: FormulaFunction) -> FormulaFunction:
        FORMULA_FUNCTIONS[name.upper()] = FunctionSpec(
            name=name.upper(),
            func=func,
            min_args=min_args,
            max_args=max_args,
            pass_context=pass_context,
            description=(func.__doc__ or "").strip(),
        )
        return func

    return decorator


def require_number(value: Any, where: str) -> int | float:
    """
    Coerce an operand to a number for arithmetic.

    Blank is 0 and booleans are 1/0; text must be entirely numeric.

    Raises:
        FormulaTypeError: If the value cannot take part in arithmetic
    """
    if value is None:
        return 0
    number = to_number(value)
    if number is None:
        if isinstance(value, float):
            raise FormulaTypeError("Number out of range")
        raise FormulaTypeError(f"{where} expects a number, got {_describe(value)}")
    return number


def _describe(value: Any) -> str:
    if isinstance(value, str):
        return f'text "{value}"'
    return type(value).__name__


def as_text(value: Any) -> str:
    """Blank is the empty string; everything else uses the display form."""
    if value is None:
        return ""
    return to_display_string(value)


# =============================================================================
# Text Functions
# =============================================================================


@register_function("CONCAT")
def func_concat(*args: Any) -> str:
    """Concatenate values into a string."""
    return "".join(as_text(a) for a in args)


@register_function("LENGTH", min_args=1, max_args=1)
def func_length(text: Any) -> int:
    """Return length of text, 0 for blank."""
    if is_empty(text):
        return 0
    return len(as_text(text))


# =============================================================================
# Numeric Functions
# =============================================================================


@register_function("SUM")
def func_sum(*args: Any) -> float | int:
    """Sum of numeric values."""
    total = math.fsum(require_number(a, "sum()") for a in args)
    return normalize_number(total)


@register_function("MIN", min_args=1)
def func_min(*args: Any) -> float | int:
    """Minimum value."""
    return min(require_number(a, "min()") for a in args)


@register_function("MAX", min_args=1)
def func_max(*args: Any) -> float | int:
    """Maximum value."""
    return max(require_number(a, "max()") for a in args)


@register_function("ABS", min_args=1, max_args=1)
def func_abs(value: Any) -> float | int:
    """Absolute value."""
    return abs(require_number(value, "abs()"))


@register_function("ROUND", min_args=1, max_args=2)
def func_round(value: Any, precision: Any = 0) -> float | int:
    """Round half away from zero to the given number of decimals."""
    number = require_number(value, "round()")
    places = int(require_number(precision, "round()"))
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(str(number)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits requested than the value has significant digits
        return number
    return normalize_number(float(rounded))


# =============================================================================
# Logical Functions
# =============================================================================


@register_function("EMPTY", min_args=1, max_args=1)
def func_empty(value: Any) -> bool:
    """True for blank, empty text, empty lists and 0."""
    if is_empty(value):
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


# =============================================================================
# Date Functions
# =============================================================================


@register_function("NOW", min_args=0, max_args=0, pass_context=True)
def func_now(context: FormulaContext) -> str:
    """Current date as display text."""
    return context.clock().strftime(context.date_format)
