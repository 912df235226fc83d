"""
Custom exceptions for NoteBase.

Provides a hierarchy of exceptions with structured error information.
Formula and rollup exceptions are raised inside the engine and caught at
the evaluation boundary, where they become sentinel results; they never
reach a table renderer.
"""

from typing import Any


class NoteBaseException(Exception):
    """
    Base exception for all NoteBase errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logs and API payloads."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Column / Cell Errors
# =============================================================================


class InvalidColumnTypeError(NoteBaseException):
    """Unknown column type specified."""

    def __init__(self, column_type: str) -> None:
        super().__init__(
            message=f"Invalid column type: {column_type}",
            code="INVALID_COLUMN_TYPE",
            details={"column_type": column_type},
        )


class InvalidCellValueError(NoteBaseException):
    """Value does not fit the column's type."""

    def __init__(self, column_name: str, expected_type: str, received_value: Any) -> None:
        super().__init__(
            message=f"Invalid value for column '{column_name}'. Expected {expected_type}.",
            code="INVALID_CELL_VALUE",
            details={
                "column_name": column_name,
                "expected_type": expected_type,
                "received_value": str(received_value)[:100],
            },
        )


# =============================================================================
# Formula Errors
# =============================================================================


class FormulaError(NoteBaseException):
    """Formula parsing or execution error."""

    def __init__(
        self,
        error: str,
        code: str = "FORMULA_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Formula error: {error}",
            code=code,
            details={"error": error, **(details or {})},
        )
        self.error = error


class FormulaSyntaxError(FormulaError):
    """Formula source does not match the grammar."""

    def __init__(self, error: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(
            error,
            code="FORMULA_SYNTAX_ERROR",
            details={"line": line, "column": column},
        )
        self.line = line
        self.column = column


class UnknownFunctionError(FormulaError):
    """Formula calls a function outside the built-in library."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Unknown function: {name}",
            code="UNKNOWN_FUNCTION",
            details={"function": name},
        )


class FormulaReferenceError(FormulaError):
    """prop() names a column that does not exist in the table."""

    def __init__(self, property_name: str) -> None:
        super().__init__(
            f'Unknown property "{property_name}"',
            code="UNKNOWN_PROPERTY",
            details={"property": property_name},
        )
        self.property_name = property_name


class FormulaTypeError(FormulaError):
    """Operand or argument has a type the operation does not accept."""

    def __init__(self, error: str) -> None:
        super().__init__(error, code="FORMULA_TYPE_ERROR")


class FormulaDivisionByZeroError(FormulaError):
    """Division by zero."""

    def __init__(self) -> None:
        super().__init__("Division by zero", code="DIVISION_BY_ZERO")


class CircularReferenceError(FormulaError):
    """Formula columns reference each other in a loop."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__(
            "Circular reference",
            code="CIRCULAR_REFERENCE",
            details={"chain": chain},
        )
        self.chain = chain


# =============================================================================
# Rollup Errors
# =============================================================================


class RollupError(NoteBaseException):
    """Rollup cannot be computed."""


class RollupConfigurationError(RollupError):
    """Rollup options are incomplete or point at the wrong kind of column."""

    def __init__(self, reason: str, column_id: str | None = None) -> None:
        super().__init__(
            message=f"Rollup not configured: {reason}",
            code="ROLLUP_NOT_CONFIGURED",
            details={"reason": reason, "column_id": column_id},
        )
        self.reason = reason


class RelatedTableNotFoundError(RollupError):
    """The relation's target table could not be fetched."""

    def __init__(self, table_id: str | None = None) -> None:
        message = "Related table not found"
        if table_id:
            message = f"Related table with ID '{table_id}' not found"
        super().__init__(
            message=message,
            code="RELATED_TABLE_NOT_FOUND",
            details={"table_id": table_id},
        )
