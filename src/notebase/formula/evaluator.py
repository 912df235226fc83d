"""Formula evaluator for NoteBase.

Evaluates parsed formula ASTs against one row of a table. Failures inside
the tree walk raise ``FormulaError``; the module-level ``evaluate`` turns
them into an error ``FormulaResult`` so nothing escapes to the table view.
"""

import math
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from notebase.core.config import settings
from notebase.core.exceptions import (
    CircularReferenceError,
    FormulaDivisionByZeroError,
    FormulaError,
    FormulaTypeError,
    UnknownFunctionError,
)
from notebase.core.logging import error_context, get_logger
from notebase.fields.coercion import (
    has_valid_config,
    normalize_number,
    parse_number,
    to_bool,
    to_display_string,
    to_number,
)
from notebase.formula.functions import (
    FORMULA_FUNCTIONS,
    FormulaContext,
    _describe,
    as_text,
    require_number,
)
from notebase.formula.parser import (
    BinaryOpNode,
    BooleanNode,
    ConditionalNode,
    FunctionCallNode,
    NumberNode,
    PropertyRefNode,
    StringNode,
    UnaryOpNode,
    parse_formula,
)
from notebase.formula.references import resolve_property
from notebase.formula.results import FormulaResult
from notebase.schemas.column import Column, ColumnRef, ColumnType, FormulaOptions
from notebase.schemas.table import Row, as_columns, as_row

logger = get_logger(__name__)


def cell_to_formula_value(value: Any) -> Any:
    """
    Convert a stored cell value into a formula value.

    Returns None for a blank cell. Numeric text becomes a number and dates
    become their display text.

    Raises:
        FormulaTypeError: For list values (multiSelect, relation, person, files)
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        number = to_number(value)
        if number is None:
            raise FormulaTypeError("Number out of range")
        return number
    if isinstance(value, str):
        number = parse_number(value)
        return value if number is None else number
    if isinstance(value, (datetime, date)):
        return to_display_string(value)
    if isinstance(value, (list, tuple)):
        raise FormulaTypeError("List values cannot be used in formulas")
    raise FormulaTypeError(f"Unsupported cell value: {type(value).__name__}")


def _finish(value: int | float) -> int | float:
    if isinstance(value, float) and not math.isfinite(value):
        raise FormulaTypeError("Number out of range")
    return normalize_number(value)


class FormulaEvaluator:
    """
    Evaluates formula ASTs against one row.

    Property references resolve through the captured ``references`` map
    first, then by column name. A referenced formula column is evaluated
    live on the same row; ``stack`` holds the ids of the formula columns
    currently being evaluated and detects cycles.
    """

    def __init__(
        self,
        row: Row | Mapping[str, Any],
        columns: Sequence[ColumnRef] | Any,
        references: Mapping[str, str] | None = None,
        context: FormulaContext | None = None,
        max_depth: int | None = None,
        stack: Sequence[str] = (),
    ):
        """
        Initialize evaluator for a row.

        Args:
            row: Row (or plain column id -> value mapping) to read cells from
            columns: Columns of the row's table
            references: Captured name -> column id map of the formula
            context: Clock and date format for now()
            max_depth: Maximum nesting of formula columns
            stack: Ids of formula columns already being evaluated
        """
        self._row = as_row(row)
        self._columns = as_columns(columns)
        self._references = dict(references or {})
        self._context = context or FormulaContext(date_format=settings.now_date_format)
        self._max_depth = max_depth or settings.formula_max_depth
        self._stack = tuple(stack)

    def evaluate(self, ast: Any) -> Any:
        """
        Evaluate an AST node.

        Returns:
            str, int, float, bool, or None for a blank value

        Raises:
            FormulaError: If evaluation fails
        """
        return self._eval(ast)

    def _eval(self, node: Any) -> Any:
        """Recursively evaluate an AST node."""
        if isinstance(node, (NumberNode, StringNode, BooleanNode)):
            return node.value

        if isinstance(node, PropertyRefNode):
            return self._eval_property(node)

        if isinstance(node, ConditionalNode):
            if to_bool(self._eval(node.condition)):
                return self._eval(node.then)
            return self._eval(node.otherwise) if node.otherwise is not None else None

        if isinstance(node, FunctionCallNode):
            return self._eval_function(node)

        if isinstance(node, BinaryOpNode):
            return self._eval_binary(node)

        if isinstance(node, UnaryOpNode):
            return self._eval_unary(node)

        raise FormulaError(f"Unsupported expression: {type(node).__name__}")

    # ==========================================================================
    # References
    # ==========================================================================

    def _eval_property(self, node: PropertyRefNode) -> Any:
        column = resolve_property(node.property_name, self._columns, self._references)
        if column.type == ColumnType.FORMULA and isinstance(column, Column):
            return self._eval_formula_column(column)
        # Rollups and everything else read the stored cell
        return cell_to_formula_value(self._row.value_for(column))

    def _eval_formula_column(self, column: Column) -> Any:
        if column.id in self._stack:
            raise CircularReferenceError([*self._stack, column.id])
        if len(self._stack) >= self._max_depth:
            raise FormulaError("Formulas nested too deeply", code="FORMULA_TOO_DEEP")

        options = column.options
        if not isinstance(options, FormulaOptions) or not options.has_valid_config:
            return None

        nested = FormulaEvaluator(
            self._row,
            self._columns,
            references=options.references,
            context=self._context,
            max_depth=self._max_depth,
            stack=(*self._stack, column.id),
        )
        return nested.evaluate(parse_formula(options.formula_source))

    # ==========================================================================
    # Functions
    # ==========================================================================

    def _eval_function(self, node: FunctionCallNode) -> Any:
        """Evaluate a function call."""
        spec = FORMULA_FUNCTIONS.get(node.name)
        if spec is None:
            if node.name == "IF":
                # The parser only builds a ConditionalNode for 2 or 3 arguments
                raise FormulaTypeError(
                    f"if() takes 2 to 3 arguments, got {len(node.arguments)}"
                )
            raise UnknownFunctionError(node.name.lower())

        spec.check_arity(len(node.arguments))
        args = [self._eval(arg) for arg in node.arguments]
        if spec.pass_context:
            result = spec.func(self._context, *args)
        else:
            result = spec.func(*args)
        if isinstance(result, float):
            return _finish(result)
        return result

    # ==========================================================================
    # Operators
    # ==========================================================================

    def _eval_binary(self, node: BinaryOpNode) -> Any:
        """Evaluate a binary operation."""
        left = self._eval(node.left)
        right = self._eval(node.right)
        op = node.operator

        operator = self._BINARY.get(op)
        if operator is None:
            raise FormulaError(f"Unknown operator: {op}")
        return operator(self, left, right)

    def _eval_unary(self, node: UnaryOpNode) -> Any:
        """Evaluate a unary operation."""
        operand = self._eval(node.operand)
        if node.operator == "-":
            return _finish(-require_number(operand, "-"))
        raise FormulaError(f"Unknown unary operator: {node.operator}")

    def _add(self, left: Any, right: Any) -> Any:
        """Addition, or concatenation when either side is text."""
        if isinstance(left, str) or isinstance(right, str):
            if left is None or right is None or (isinstance(left, str) and isinstance(right, str)):
                return as_text(left) + as_text(right)
            raise FormulaTypeError(
                f"Cannot add {_describe(left)} and {_describe(right)}; use concat()"
            )
        return _finish(require_number(left, "+") + require_number(right, "+"))

    def _subtract(self, left: Any, right: Any) -> Any:
        return _finish(require_number(left, "-") - require_number(right, "-"))

    def _multiply(self, left: Any, right: Any) -> Any:
        return _finish(require_number(left, "*") * require_number(right, "*"))

    def _divide(self, left: Any, right: Any) -> Any:
        divisor = require_number(right, "/")
        if divisor == 0:
            raise FormulaDivisionByZeroError()
        return _finish(require_number(left, "/") / divisor)

    @staticmethod
    def _comparable(value: Any) -> Any:
        # Blank compares as 0
        return 0 if value is None else value

    def _equal(self, left: Any, right: Any) -> bool:
        """Numbers compare numerically, everything else by value."""
        return self._comparable(left) == self._comparable(right)

    def _not_equal(self, left: Any, right: Any) -> bool:
        return not self._equal(left, right)

    def _ordered(self, left: Any, right: Any, op: str) -> tuple[Any, Any]:
        left = self._comparable(left)
        right = self._comparable(right)
        if isinstance(left, str) and isinstance(right, str):
            return left, right
        if not isinstance(left, str) and not isinstance(right, str):
            return require_number(left, op), require_number(right, op)
        raise FormulaTypeError(f"Cannot compare {_describe(left)} and {_describe(right)}")

    def _less_than(self, left: Any, right: Any) -> bool:
        left, right = self._ordered(left, right, "<")
        return left < right

    def _greater_than(self, left: Any, right: Any) -> bool:
        left, right = self._ordered(left, right, ">")
        return left > right

    def _less_than_or_equal(self, left: Any, right: Any) -> bool:
        left, right = self._ordered(left, right, "<=")
        return left <= right

    def _greater_than_or_equal(self, left: Any, right: Any) -> bool:
        left, right = self._ordered(left, right, ">=")
        return left >= right

    _BINARY: dict[str, Callable[["FormulaEvaluator", Any, Any], Any]] = {
        "+": _add,
        "-": _subtract,
        "*": _multiply,
        "/": _divide,
        "==": _equal,
        "!=": _not_equal,
        "<": _less_than,
        ">": _greater_than,
        "<=": _less_than_or_equal,
        ">=": _greater_than_or_equal,
    }


def evaluate(
    formula_source: str | None,
    row: Row | Mapping[str, Any],
    columns: Sequence[ColumnRef] | Any,
    *,
    references: Mapping[str, str] | None = None,
    clock: Callable[[], datetime] | None = None,
    column_id: str | None = None,
) -> FormulaResult:
    """
    Evaluate a formula source against a row.

    Args:
        formula_source: Formula text, e.g. ``prop("Price") * prop("Qty")``
        row: Row, or a plain column id -> value mapping
        columns: Columns of the row's table (models, dicts or a TableSchema)
        references: Captured name -> column id map (see bind_references)
        clock: Replaces ``datetime.now`` for now()
        column_id: Id of the formula column being computed, for cycle checks

    Returns:
        FormulaResult; empty for a blank source, error on any failure
    """
    if not has_valid_config(formula_source):
        return FormulaResult.empty()

    context = FormulaContext(
        clock=clock or datetime.now,
        date_format=settings.now_date_format,
    )
    try:
        evaluator = FormulaEvaluator(
            row,
            columns,
            references=references,
            context=context,
            stack=(column_id,) if column_id else (),
        )
        value = evaluator.evaluate(parse_formula(formula_source))
    except FormulaError as e:
        logger.warning(
            f"Formula evaluation failed: {e.error}",
            extra=error_context(e, column_id=column_id, formula=formula_source),
        )
        return FormulaResult.failed(e.error, e.code)
    except Exception as e:
        logger.exception(
            "Unexpected error evaluating formula",
            extra={"column_id": column_id, "formula": formula_source},
        )
        return FormulaResult.failed(str(e) or type(e).__name__, "INTERNAL_ERROR")

    # A bare blank shows as 0
    return FormulaResult.computed(0 if value is None else value)


def evaluate_column(
    column: Column,
    row: Row | Mapping[str, Any],
    columns: Sequence[ColumnRef] | Any,
    *,
    clock: Callable[[], datetime] | None = None,
) -> FormulaResult:
    """Evaluate a formula column's own options against a row."""
    options = column.options if isinstance(column.options, FormulaOptions) else FormulaOptions()
    return evaluate(
        options.formula_source,
        row,
        columns,
        references=options.references,
        clock=clock,
        column_id=column.id,
    )
