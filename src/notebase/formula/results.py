"""Result types returned by the formula evaluator and the rollup aggregator.

Both are tagged values: callers branch on ``status`` and render ``display``.
Neither ever carries an exception out of the engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from notebase.core.config import settings
from notebase.fields.coercion import to_display_string


class ComputedStatus(str, Enum):
    """Outcome of computing a derived cell."""

    COMPUTED = "computed"
    EMPTY = "empty"
    ERROR = "error"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True)
class FormulaResult:
    """
    Value of one formula cell.

    Attributes:
        status: computed, empty (no formula source) or error
        value: str, int, float or bool when computed, else None
        error: Cause of the failure when status is error
        code: Machine-readable error code when status is error
    """

    status: ComputedStatus
    value: Any = None
    error: str | None = None
    code: str | None = None

    @classmethod
    def computed(cls, value: Any) -> "FormulaResult":
        return cls(ComputedStatus.COMPUTED, value)

    @classmethod
    def empty(cls) -> "FormulaResult":
        return cls(ComputedStatus.EMPTY)

    @classmethod
    def failed(cls, error: str, code: str | None = None) -> "FormulaResult":
        return cls(ComputedStatus.ERROR, error=error, code=code)

    @property
    def is_error(self) -> bool:
        return self.status == ComputedStatus.ERROR

    @property
    def display(self) -> str:
        """Text shown in the table cell."""
        if self.status == ComputedStatus.ERROR:
            return settings.formula_error_display
        if self.status == ComputedStatus.EMPTY:
            return settings.formula_unconfigured_display
        return to_display_string(self.value)


@dataclass(frozen=True)
class RollupResult:
    """
    Value of one rollup cell.

    ``empty`` means the aggregation had nothing to work on (e.g. the average
    of no numbers) and displays as blank; ``unconfigured`` means the rollup
    could not be computed at all.
    """

    status: ComputedStatus
    value: Any = None
    reason: str | None = None

    @classmethod
    def computed(cls, value: Any) -> "RollupResult":
        return cls(ComputedStatus.COMPUTED, value)

    @classmethod
    def empty(cls) -> "RollupResult":
        return cls(ComputedStatus.EMPTY)

    @classmethod
    def unconfigured(cls, reason: str) -> "RollupResult":
        return cls(ComputedStatus.UNCONFIGURED, reason=reason)

    @property
    def is_configured(self) -> bool:
        return self.status != ComputedStatus.UNCONFIGURED

    @property
    def display(self) -> str:
        if self.status == ComputedStatus.UNCONFIGURED:
            return settings.rollup_unconfigured_display
        if self.status == ComputedStatus.EMPTY:
            return ""
        return to_display_string(self.value)
