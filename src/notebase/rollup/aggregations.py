"""Rollup aggregation functions.

Each aggregation takes the target values of the related rows, in relation
order with nulls kept, and returns a RollupResult. Aggregations never raise.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any

from notebase.core.config import settings
from notebase.fields.coercion import is_empty, normalize_number, to_display_string, to_number
from notebase.formula.results import RollupResult
from notebase.schemas.column import RollupAggregation

Aggregation = Callable[[Sequence[Any]], RollupResult]


def numeric_values(values: Sequence[Any]) -> list[int | float]:
    """Values that coerce to a number; null and non-numeric text are dropped."""
    numbers = []
    for value in values:
        number = to_number(value)
        if number is not None:
            numbers.append(number)
    return numbers


def _decimal_total(numbers: list[int | float]) -> Decimal:
    # Decimal keeps 0.1 + 0.2 at 0.3
    total = Decimal(0)
    for number in numbers:
        total += Decimal(str(number))
    return total


def _from_decimal(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return normalize_number(float(value))


def _hashable(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((k, _hashable(v)) for k, v in value.items()))
    return value


def _percent(part: int, whole: int) -> int | float:
    if whole == 0:
        return 0
    return normalize_number(round(part * 100 / whole, 2))


# =============================================================================
# Counting
# =============================================================================


def count_all(values: Sequence[Any]) -> RollupResult:
    """Number of related rows."""
    return RollupResult.computed(len(values))


def count_values(values: Sequence[Any]) -> RollupResult:
    return RollupResult.computed(sum(1 for v in values if not is_empty(v)))


def count_unique(values: Sequence[Any]) -> RollupResult:
    """Distinct non-empty values; empty values are not counted as a value."""
    distinct = {_hashable(v) for v in values if not is_empty(v)}
    return RollupResult.computed(len(distinct))


def count_empty(values: Sequence[Any]) -> RollupResult:
    return RollupResult.computed(sum(1 for v in values if is_empty(v)))


def percent_empty(values: Sequence[Any]) -> RollupResult:
    empty = sum(1 for v in values if is_empty(v))
    return RollupResult.computed(_percent(empty, len(values)))


def percent_not_empty(values: Sequence[Any]) -> RollupResult:
    filled = sum(1 for v in values if not is_empty(v))
    return RollupResult.computed(_percent(filled, len(values)))


# =============================================================================
# Numeric
# =============================================================================


def sum_values(values: Sequence[Any]) -> RollupResult:
    """Sum of the numeric values, 0 when there are none."""
    return RollupResult.computed(_from_decimal(_decimal_total(numeric_values(values))))


def average(values: Sequence[Any]) -> RollupResult:
    numbers = numeric_values(values)
    if not numbers:
        return RollupResult.empty()
    return RollupResult.computed(_from_decimal(_decimal_total(numbers) / len(numbers)))


def minimum(values: Sequence[Any]) -> RollupResult:
    numbers = numeric_values(values)
    if not numbers:
        return RollupResult.empty()
    return RollupResult.computed(min(numbers))


def maximum(values: Sequence[Any]) -> RollupResult:
    numbers = numeric_values(values)
    if not numbers:
        return RollupResult.empty()
    return RollupResult.computed(max(numbers))


def value_range(values: Sequence[Any]) -> RollupResult:
    """Difference between the largest and smallest numeric value."""
    numbers = numeric_values(values)
    if not numbers:
        return RollupResult.empty()
    spread = Decimal(str(max(numbers))) - Decimal(str(min(numbers)))
    return RollupResult.computed(_from_decimal(spread))


# =============================================================================
# Display
# =============================================================================


def show_original(values: Sequence[Any]) -> RollupResult:
    """Display strings of the non-empty values, joined."""
    shown = [to_display_string(v) for v in values if not is_empty(v)]
    return RollupResult.computed(settings.rollup_join_separator.join(s for s in shown if s))


AGGREGATIONS: dict[RollupAggregation, Aggregation] = {
    RollupAggregation.COUNT: count_all,
    RollupAggregation.COUNT_VALUES: count_values,
    RollupAggregation.COUNT_UNIQUE: count_unique,
    RollupAggregation.COUNT_EMPTY: count_empty,
    RollupAggregation.PERCENT_EMPTY: percent_empty,
    RollupAggregation.PERCENT_NOT_EMPTY: percent_not_empty,
    RollupAggregation.SUM: sum_values,
    RollupAggregation.AVERAGE: average,
    RollupAggregation.MIN: minimum,
    RollupAggregation.MAX: maximum,
    RollupAggregation.RANGE: value_range,
    RollupAggregation.SHOW_ORIGINAL: show_original,
}


def aggregate(values: Sequence[Any], aggregation: RollupAggregation | str) -> RollupResult:
    """
    Apply an aggregation to the related rows' target values.

    Args:
        values: One value per related row id, nulls included
        aggregation: Aggregation to apply

    Returns:
        RollupResult; unconfigured for an unknown aggregation
    """
    try:
        key = RollupAggregation(aggregation)
    except ValueError:
        return RollupResult.unconfigured(f"Unknown aggregation: {aggregation}")
    return AGGREGATIONS[key](values)
