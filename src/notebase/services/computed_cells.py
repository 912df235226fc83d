"""Computed cell service.

Computes every formula and rollup cell of a row or table for the table
view, in dependency order, and answers the configuration questions the
column editors ask (does this formula parse, would it close a loop, which
computed columns break if a column is deleted).
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Union

from notebase.core.exceptions import FormulaError
from notebase.core.logging import LoggerMixin
from notebase.fields import get_field_handler
from notebase.fields.types.rollup import RollupFieldHandler
from notebase.formula.dependencies import (
    FormulaDependencyGraph,
    build_dependency_graph,
    column_dependencies,
)
from notebase.formula.evaluator import evaluate_column
from notebase.formula.parser import get_parser
from notebase.formula.references import bind_references, unresolved_references
from notebase.formula.results import ComputedStatus, FormulaResult, RollupResult
from notebase.rollup.aggregator import (
    AsyncRelatedTableFetcher,
    RelatedTableFetcher,
    acompute_rollup,
    compute_rollup,
)
from notebase.schemas.column import Column, ColumnType, FormulaOptions, RollupOptions
from notebase.schemas.table import Row, TableData, TableSchema

ComputedResult = Union[FormulaResult, RollupResult]


class ComputedCellService(LoggerMixin):
    """
    Service for computing derived cells.

    Rollups are computed before the formulas that may read them; a formula
    reading a rollup sees the freshly computed rollup value.
    """

    def __init__(
        self,
        related_table_fetcher: RelatedTableFetcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            related_table_fetcher: Returns the TableData of a related table by id;
                without one every rollup is unconfigured
            clock: Replaces ``datetime.now`` for now()
        """
        self.related_table_fetcher = related_table_fetcher
        self.clock = clock

    # ==========================================================================
    # Evaluation
    # ==========================================================================

    def evaluation_order(self, table: TableSchema) -> list[Column]:
        """Computed columns of ``table``, each after the columns it reads."""
        computed = [c for c in table.columns if c.is_computed]
        graph = build_dependency_graph(table.columns)
        order = graph.get_evaluation_order(c.id for c in computed)
        by_id = {c.id: c for c in computed}
        return [by_id[column_id] for column_id in order]

    def compute_row(self, table: TableSchema, row: Row) -> dict[str, ComputedResult]:
        """
        Compute every formula and rollup cell of ``row``.

        Returns:
            Results keyed by column id
        """
        working = row.model_copy(update={"cells": dict(row.cells)})
        results: dict[str, ComputedResult] = {}

        for column in self.evaluation_order(table):
            if column.type == ColumnType.ROLLUP:
                if self.related_table_fetcher is None:
                    result = RollupResult.unconfigured("No related table fetcher")
                else:
                    result = compute_rollup(column, working, table, self.related_table_fetcher)
                self._overlay(working, column, result)
            else:
                result = evaluate_column(column, working, table.columns, clock=self.clock)
            results[column.id] = result

        return results

    async def acompute_row(
        self,
        table: TableSchema,
        row: Row,
        related_table_fetcher: AsyncRelatedTableFetcher,
    ) -> dict[str, ComputedResult]:
        """Same as compute_row, fetching related tables with an async fetcher."""
        working = row.model_copy(update={"cells": dict(row.cells)})
        results: dict[str, ComputedResult] = {}

        for column in self.evaluation_order(table):
            if column.type == ColumnType.ROLLUP:
                result = await acompute_rollup(column, working, table, related_table_fetcher)
                self._overlay(working, column, result)
            else:
                result = evaluate_column(column, working, table.columns, clock=self.clock)
            results[column.id] = result

        return results

    @staticmethod
    def _overlay(working: Row, column: Column, result: RollupResult) -> None:
        # Formulas read rollups from the row's cells
        if result.status == ComputedStatus.COMPUTED:
            working.cells[column.id] = result.value
        elif result.status == ComputedStatus.EMPTY:
            working.cells[column.id] = None

    def compute_table(self, table: TableData) -> dict[str, dict[str, ComputedResult]]:
        """Compute every row of ``table``; results keyed by row id, then column id."""
        self.logger.debug(f"Computing {len(table.rows)} rows of table {table.id}")
        return {row.id: self.compute_row(table, row) for row in table.rows}

    def display_row(self, table: TableSchema, row: Row) -> dict[str, str]:
        """Display text of every cell of ``row``, keyed by column id."""
        computed = self.compute_row(table, row)
        display: dict[str, str] = {}
        for column in table.columns:
            handler = get_field_handler(column.type)
            value: Any = computed.get(column.id, row.value_for(column))
            display[column.id] = handler.format_display(value, column.options)
        return display

    # ==========================================================================
    # Configuration checks
    # ==========================================================================

    def check_formula(
        self,
        table: TableSchema,
        column_id: str,
        formula_source: str,
    ) -> tuple[bool, str | None]:
        """
        Check a formula before saving it to column ``column_id``.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not formula_source or not formula_source.strip():
            return True, None

        valid, error = get_parser().validate(formula_source)
        if not valid:
            return False, error

        options = FormulaOptions(
            formula_source=formula_source,
            references=bind_references(formula_source, table.columns),
        )
        missing = unresolved_references(options, table.columns)
        if missing:
            return False, f'Unknown property "{missing[0]}"'

        existing = table.column_by_id(column_id)
        candidate = Column(
            id=column_id,
            name=existing.name if existing else "",
            type=ColumnType.FORMULA,
            options=options,
        )
        others = [c for c in table.columns if c.id != column_id]
        columns = [*others, candidate]
        graph = FormulaDependencyGraph()
        for column in others:
            if column.is_computed:
                graph.add_formula_column(column.id, column_dependencies(column, columns))
        ok, error = graph.add_formula_column(column_id, column_dependencies(candidate, columns))
        if not ok:
            self.logger.info(f"Rejected formula for column {column_id}: {error}")
        return ok, error

    def dangling_references(self, table: TableSchema) -> dict[str, list[str]]:
        """
        Computed columns whose references no longer resolve.

        Returns:
            Column id -> unresolved property names (formulas) or the missing
            relation column id (rollups)
        """
        dangling: dict[str, list[str]] = {}
        for column in table.columns:
            options = column.options
            if isinstance(options, FormulaOptions):
                try:
                    missing = unresolved_references(options, table.columns)
                except FormulaError:
                    continue
            elif isinstance(options, RollupOptions) and options.relation_column_id:
                try:
                    RollupFieldHandler.validate_relation(options, table.columns)
                    missing = []
                except ValueError:
                    missing = [options.relation_column_id]
            else:
                continue
            if missing:
                dangling[column.id] = missing
        return dangling

    def dependents_of(self, table: TableSchema, column_id: str) -> list[Column]:
        """Computed columns that read ``column_id``, directly or through other computed columns."""
        graph = build_dependency_graph(table.columns)
        affected = set(graph.get_affected_columns(column_id))
        return [c for c in table.columns if c.id in affected]
