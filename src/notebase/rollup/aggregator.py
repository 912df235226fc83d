"""Rollup aggregator for NoteBase.

A rollup column follows one of its table's relation columns to the rows of
another table, reads one property of each related row and aggregates the
values. The related table comes from a caller-supplied fetcher, sync or
async; nothing is cached between calls.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from notebase.core.exceptions import (
    RelatedTableNotFoundError,
    RollupConfigurationError,
    RollupError,
)
from notebase.core.logging import error_context, get_logger
from notebase.fields.types.relation import RelationFieldHandler
from notebase.formula.evaluator import evaluate_column
from notebase.formula.results import ComputedStatus, RollupResult
from notebase.rollup.aggregations import aggregate
from notebase.schemas.column import (
    Column,
    ColumnRef,
    ColumnType,
    RelationOptions,
    RollupAggregation,
    RollupOptions,
)
from notebase.schemas.table import Row, TableData, as_columns, as_row

logger = get_logger(__name__)

FetchedTable = Union[TableData, Mapping[str, Any], None]
RelatedTableFetcher = Callable[[str], FetchedTable]
AsyncRelatedTableFetcher = Callable[[str], Awaitable[FetchedTable]]


@dataclass(frozen=True)
class RollupPlan:
    """What a configured rollup needs from the related table."""

    options: RollupOptions
    related_table_id: str
    related_row_ids: list[str]
    column_id: str | None = None


def _rollup_options(
    config: RollupOptions | Column | Mapping[str, Any],
) -> tuple[RollupOptions, str | None]:
    if isinstance(config, RollupOptions):
        return config, None
    if isinstance(config, Column):
        if config.type != ColumnType.ROLLUP or not isinstance(config.options, RollupOptions):
            raise RollupConfigurationError("column is not a rollup", config.id)
        return config.options, config.id
    try:
        return RollupOptions.model_validate(config), None
    except ValidationError as e:
        raise RollupConfigurationError(f"invalid options: {e.error_count()} errors") from e


def plan_rollup(
    config: RollupOptions | Column | Mapping[str, Any],
    row: Row | Mapping[str, Any],
    table: Any,
) -> RollupPlan:
    """
    Resolve the relation side of a rollup against its own table.

    Args:
        config: RollupOptions, the rollup column, or a raw options dict
        row: The row the rollup cell belongs to
        table: The row's TableSchema (or its column list)

    Returns:
        RollupPlan naming the related table and row ids to read

    Raises:
        RollupConfigurationError: If the rollup cannot be computed
    """
    options, column_id = _rollup_options(config)
    if not options.has_valid_config:
        raise RollupConfigurationError("options incomplete", column_id)

    try:
        columns = as_columns(table)
        source_row = as_row(row)
    except ValidationError as e:
        raise RollupConfigurationError("invalid row data", column_id) from e

    relation: ColumnRef | None = None
    for column in columns:
        if column.id == options.relation_column_id:
            relation = column
            break
    if relation is None or relation.type != ColumnType.RELATION:
        raise RollupConfigurationError("relation column not found", column_id)

    relation_options = getattr(relation, "options", None)
    if not isinstance(relation_options, RelationOptions) or not relation_options.related_table_id:
        raise RollupConfigurationError("relation has no related table", column_id)

    related_ids = RelationFieldHandler.related_row_ids(source_row.get(relation.id))
    if not related_ids:
        raise RollupConfigurationError("no related rows", column_id)

    return RollupPlan(
        options=options,
        related_table_id=relation_options.related_table_id,
        related_row_ids=related_ids,
        column_id=column_id,
    )


def _as_table(related: FetchedTable, table_id: str) -> TableData:
    if related is None:
        raise RelatedTableNotFoundError(table_id)
    if isinstance(related, TableData):
        return related
    try:
        return TableData.model_validate(related)
    except ValidationError as e:
        raise RelatedTableNotFoundError(table_id) from e


def _target_column(options: RollupOptions, related: TableData) -> Column:
    column = related.column_by_id(options.target_property_id)
    if column is None:
        column = related.column_by_name(options.target_property_name)
    if column is None:
        raise RollupConfigurationError("target property not found")
    return column


def _target_value(column: Column, row: Row | None, related: TableData) -> Any:
    if row is None:
        return None
    if column.type == ColumnType.FORMULA:
        result = evaluate_column(column, row, related.columns)
        return result.value if result.status == ComputedStatus.COMPUTED else None
    return row.value_for(column)


def aggregate_related(plan: RollupPlan, related: FetchedTable) -> RollupResult:
    """
    Read the target property of each related row and aggregate.

    Row ids with no matching row contribute a null value. A count only
    needs the ids, so it does not resolve the target property.

    Raises:
        RollupError: If the related table or target property is missing
    """
    table = _as_table(related, plan.related_table_id)
    if plan.options.aggregation == RollupAggregation.COUNT:
        return aggregate(plan.related_row_ids, RollupAggregation.COUNT)
    target = _target_column(plan.options, table)
    rows = table.rows_by_id()
    values = [_target_value(target, rows.get(row_id), table) for row_id in plan.related_row_ids]
    return aggregate(values, plan.options.aggregation)


def _unconfigured(error: RollupError, column_id: str | None) -> RollupResult:
    logger.info(
        f"Rollup not computed: {error.message}",
        extra=error_context(error, column_id=column_id),
    )
    return RollupResult.unconfigured(error.message)


def _fetch_failed(error: Exception, plan: RollupPlan) -> RollupResult:
    logger.warning(
        f"Failed to fetch related table {plan.related_table_id}: {error}",
        extra={"column_id": plan.column_id, "table_id": plan.related_table_id},
    )
    return RollupResult.unconfigured("Related table could not be fetched")


def compute_rollup(
    config: RollupOptions | Column | Mapping[str, Any],
    row: Row | Mapping[str, Any],
    table: Any,
    related_table_fetcher: RelatedTableFetcher,
) -> RollupResult:
    """
    Compute a rollup cell.

    Args:
        config: RollupOptions, the rollup column, or a raw options dict
        row: The row the rollup cell belongs to
        table: The row's TableSchema (or its column list)
        related_table_fetcher: Returns the related TableData for a table id

    Returns:
        RollupResult; unconfigured when any step cannot be completed
    """
    try:
        plan = plan_rollup(config, row, table)
    except RollupError as e:
        return _unconfigured(e, getattr(config, "id", None))

    try:
        related = related_table_fetcher(plan.related_table_id)
    except Exception as e:
        return _fetch_failed(e, plan)

    try:
        return aggregate_related(plan, related)
    except RollupError as e:
        return _unconfigured(e, plan.column_id)


async def acompute_rollup(
    config: RollupOptions | Column | Mapping[str, Any],
    row: Row | Mapping[str, Any],
    table: Any,
    related_table_fetcher: AsyncRelatedTableFetcher,
) -> RollupResult:
    """Same as compute_rollup, awaiting an async fetcher."""
    try:
        plan = plan_rollup(config, row, table)
    except RollupError as e:
        return _unconfigured(e, getattr(config, "id", None))

    try:
        related = await related_table_fetcher(plan.related_table_id)
    except Exception as e:
        return _fetch_failed(e, plan)

    try:
        return aggregate_related(plan, related)
    except RollupError as e:
        return _unconfigured(e, plan.column_id)
