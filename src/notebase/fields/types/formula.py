"""Formula column type handler.

Formula columns compute their value from an expression over the other
columns of the same row. The stored cell is only a fallback copy of the
last computed value.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.fields.coercion import to_display_string
from notebase.schemas.column import ColumnType, FormulaOptions

# Late imports to avoid circular dependencies
_parser = None


def _get_parser():
    """Lazy load parser to avoid import issues."""
    global _parser
    if _parser is None:
        from notebase.formula.parser import get_parser

        _parser = get_parser()
    return _parser


class FormulaFieldHandler(BaseFieldTypeHandler):
    """
    Handler for formula columns.

    Options:
        formula_source: The formula expression, e.g. ``prop("Price") * 2``
        references: Property name -> column id captured when saved

    Storage format:
        Computed. A stored value, when present, is the last result
        (str, number or bool) and is read only when live evaluation
        is not possible.
    """

    column_type = ColumnType.FORMULA

    @classmethod
    def serialize(cls, value: Any) -> Any:
        """Store a computed result; FormulaResult objects store their value."""
        from notebase.formula.results import ComputedStatus, FormulaResult

        if isinstance(value, FormulaResult):
            return value.value if value.status == ComputedStatus.COMPUTED else None
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        return to_display_string(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate a formula column.

        Args:
            value: Must be None; formula cells cannot be edited
            options: FormulaOptions; a non-empty source must parse

        Returns:
            True if valid

        Raises:
            ValueError: If a value is given or the formula does not parse
        """
        if value is not None:
            raise ValueError("Formula cells are computed and cannot be edited")

        if options is None:
            return True
        if isinstance(options, dict):
            options = FormulaOptions.model_validate(options)
        if not isinstance(options, FormulaOptions):
            raise ValueError("Formula column requires formula options")

        if options.has_valid_config:
            valid, error = cls.validate_formula_syntax(options.formula_source)
            if not valid:
                raise ValueError(f"Invalid formula syntax: {error}")

        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def compute(
        cls,
        column: Any,
        row: Any,
        columns: Any,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Compute the formula cell of ``row``.

        Returns:
            FormulaResult
        """
        from notebase.formula.evaluator import evaluate_column

        return evaluate_column(column, row, columns, clock=clock)

    @classmethod
    def get_referenced_properties(cls, formula: str) -> list[str]:
        """Property names used in ``formula``; empty if it does not parse."""
        from notebase.core.exceptions import FormulaSyntaxError

        try:
            return _get_parser().get_property_references(formula)
        except FormulaSyntaxError:
            return []

    @classmethod
    def validate_formula_syntax(cls, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax.

        Returns:
            Tuple of (is_valid, error_message)
        """
        return _get_parser().validate(formula)

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        """Format a FormulaResult (or a stored fallback value) for display."""
        from notebase.formula.results import FormulaResult

        if isinstance(value, FormulaResult):
            return value.display
        return to_display_string(value)

    @classmethod
    def is_computed(cls) -> bool:
        return True

    @classmethod
    def is_read_only(cls) -> bool:
        return True
