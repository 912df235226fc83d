"""Unit tests for compute_rollup / acompute_rollup."""

import pytest

from notebase.core.exceptions import RollupConfigurationError
from notebase.formula.results import ComputedStatus
from notebase.rollup.aggregator import acompute_rollup, compute_rollup, plan_rollup
from notebase.schemas import ColumnType, RollupOptions, Row
from tests.factories import make_column


def options(**overrides) -> RollupOptions:
    values = {
        "relation_column_id": "c-tasks",
        "target_property_name": "Hours",
        "aggregation": "sum",
    }
    values.update(overrides)
    return RollupOptions(**values)


class TestComputeRollup:
    """Tests for the happy path."""

    def test_sum_over_mixed_values(self, projects_schema, project_row, fetcher):
        """Test summing a target with mixed values."""
        # Hours are 5, null and "7"
        result = compute_rollup(options(), project_row, projects_schema, fetcher)
        assert result.status == ComputedStatus.COMPUTED
        assert result.value == 12
        assert fetcher.calls == ["tbl-tasks"]

    def test_count_ignores_target(self, projects_schema, project_row, fetcher):
        """Test that count does not read the target."""
        config = options(aggregation="count", target_property_name="Whatever")
        assert compute_rollup(config, project_row, projects_schema, fetcher).value == 3

    def test_count_regardless_of_target_values(self, projects_schema, project_row, fetcher):
        """Test that count covers every linked row."""
        config = options(aggregation="count", target_property_name="Hours")
        assert compute_rollup(config, project_row, projects_schema, fetcher).value == 3

    def test_rollup_column_as_config(self, projects_schema, project_row, fetcher):
        """Test passing the rollup column as config."""
        column = projects_schema.column_by_id("c-hours")
        assert compute_rollup(column, project_row, projects_schema, fetcher).value == 12

    def test_dict_config_with_camel_case(self, projects_schema, project_row, fetcher):
        """Test config given as a camelCase dict."""
        config = {
            "relationColumnId": "c-tasks",
            "rollupProperty": "Title",
            "calculation": "showOriginal",
        }
        result = compute_rollup(config, project_row, projects_schema, fetcher)
        assert result.value == "Design, Build, Ship"

    def test_target_id_preferred_over_name(self, projects_schema, project_row, fetcher):
        """Test that the target id wins over its name."""
        config = options(target_property_id="t-title", target_property_name="Hours", aggregation="showOriginal")
        assert compute_rollup(config, project_row, projects_schema, fetcher).value == (
            "Design, Build, Ship"
        )

    def test_formula_target_is_evaluated(self, projects_schema, project_row, fetcher):
        """Test rolling up a formula column."""
        config = options(target_property_name="Double")
        # 10 + 0 + 14
        assert compute_rollup(config, project_row, projects_schema, fetcher).value == 24

    def test_missing_related_rows_are_null(self, projects_schema, fetcher):
        """Test linked rows missing from the related table."""
        row = Row(id="r2", cells={"c-tasks": ["t1", "ghost"]})
        config = options(aggregation="countEmpty")
        assert compute_rollup(config, row, projects_schema, fetcher).value == 1

    def test_select_values_count_unique(self, projects_schema, project_row, fetcher):
        """Test unique counts of select values."""
        config = options(target_property_name="Status", aggregation="countUnique")
        assert compute_rollup(config, project_row, projects_schema, fetcher).value == 2

    def test_average_of_nothing_is_empty(self, projects_schema, fetcher):
        """Test average with no numbers."""
        row = Row(id="r3", cells={"c-tasks": ["t2"]})
        result = compute_rollup(options(aggregation="average"), row, projects_schema, fetcher)
        assert result.status == ComputedStatus.EMPTY
        assert result.display == ""

    def test_idempotent(self, projects_schema, project_row, fetcher):
        """Test that computing twice gives the same result."""
        first = compute_rollup(options(aggregation="average"), project_row, projects_schema, fetcher)
        second = compute_rollup(options(aggregation="average"), project_row, projects_schema, fetcher)
        assert first == second
        assert first.value == 6

    def test_accepts_fetched_dict(self, projects_schema, project_row, tasks_table):
        """Test a fetcher that returns a plain dict."""
        payload = tasks_table.model_dump()
        result = compute_rollup(options(), project_row, projects_schema, lambda _id: payload)
        assert result.value == 12


class TestUnconfigured:
    """Tests for every path that yields the unconfigured sentinel."""

    def assert_unconfigured(self, result):
        assert result.status == ComputedStatus.UNCONFIGURED
        assert result.display == "Configure rollup"

    def test_missing_related_table_id(self, project_row, fetcher):
        """Test a relation without a related table."""
        columns = [
            make_column("c-tasks", "Tasks", ColumnType.RELATION),
        ]
        self.assert_unconfigured(compute_rollup(options(), project_row, columns, fetcher))
        assert fetcher.calls == []

    def test_incomplete_options(self, projects_schema, project_row, fetcher):
        """Test incomplete rollup options."""
        self.assert_unconfigured(
            compute_rollup(options(aggregation=None), project_row, projects_schema, fetcher)
        )
        self.assert_unconfigured(
            compute_rollup(RollupOptions(), project_row, projects_schema, fetcher)
        )

    def test_relation_column_missing(self, projects_schema, project_row, fetcher):
        """Test a relation column that does not exist."""
        config = options(relation_column_id="c-deleted")
        self.assert_unconfigured(compute_rollup(config, project_row, projects_schema, fetcher))

    def test_relation_column_wrong_type(self, projects_schema, project_row, fetcher):
        """Test a relation column of the wrong type."""
        config = options(relation_column_id="c-name")
        self.assert_unconfigured(compute_rollup(config, project_row, projects_schema, fetcher))

    @pytest.mark.parametrize("cell", [None, []])
    def test_no_linked_rows(self, projects_schema, fetcher, cell):
        """Test a row with no linked rows."""
        row = Row(id="r4", cells={"c-tasks": cell})
        self.assert_unconfigured(compute_rollup(options(), row, projects_schema, fetcher))

    def test_related_table_not_found(self, projects_schema, project_row):
        """Test a related table the fetcher cannot find."""
        self.assert_unconfigured(
            compute_rollup(options(), project_row, projects_schema, lambda _id: None)
        )

    def test_fetch_failure_is_logged(self, projects_schema, project_row, caplog):
        """Test that fetch failures are logged."""
        def broken(_id):
            raise ConnectionError("database unavailable")

        result = compute_rollup(options(), project_row, projects_schema, broken)
        self.assert_unconfigured(result)
        assert "database unavailable" in caplog.text

    def test_target_not_found(self, projects_schema, project_row, fetcher):
        """Test a target property that does not exist."""
        config = options(target_property_name="Nope")
        self.assert_unconfigured(compute_rollup(config, project_row, projects_schema, fetcher))

    @pytest.mark.parametrize(
        "cells",
        [
            {"c-tasks": [1, 2]},
            {"c-tasks": ["t1"], "c-name": {"first": "Ada"}},
        ],
    )
    def test_row_with_unsupported_cell_values(self, projects_schema, fetcher, cells):
        """Test that a row whose cells fail validation is unconfigured, not raised."""
        self.assert_unconfigured(compute_rollup(options(), cells, projects_schema, fetcher))
        assert fetcher.calls == []


class TestPlanRollup:
    """Tests for plan_rollup."""

    def test_plan(self, projects_schema, project_row):
        """Test planning a rollup."""
        plan = plan_rollup(options(), project_row, projects_schema)
        assert plan.related_table_id == "tbl-tasks"
        assert plan.related_row_ids == ["t1", "t2", "t3"]

    def test_plan_raises_for_non_rollup_column(self, projects_schema, project_row):
        """Test planning with a column that is not a rollup."""
        with pytest.raises(RollupConfigurationError):
            plan_rollup(projects_schema.column_by_id("c-total"), project_row, projects_schema)


class TestAsyncRollup:
    """Tests for acompute_rollup."""

    @pytest.mark.asyncio
    async def test_async_fetcher(self, projects_schema, project_row, tasks_table):
        """Test computing a rollup with an async fetcher."""
        async def fetch(table_id):
            return tasks_table if table_id == "tbl-tasks" else None

        result = await acompute_rollup(options(), project_row, projects_schema, fetch)
        assert result.value == 12

    @pytest.mark.asyncio
    async def test_async_fetch_failure(self, projects_schema, project_row):
        """Test an async fetch failure."""
        async def fetch(table_id):
            raise TimeoutError("slow")

        result = await acompute_rollup(options(), project_row, projects_schema, fetch)
        assert result.status == ComputedStatus.UNCONFIGURED
