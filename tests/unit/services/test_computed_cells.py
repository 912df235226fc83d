"""Unit tests for ComputedCellService."""

import pytest

from notebase.formula.results import ComputedStatus, FormulaResult
from notebase.schemas import ColumnType, Row, TableData, TableSchema
from notebase.services import ComputedCellService
from tests.factories import make_column


@pytest.fixture
def service(fetcher, fixed_clock):
    return ComputedCellService(related_table_fetcher=fetcher, clock=fixed_clock)


def with_columns(table: TableSchema, *columns) -> TableSchema:
    return TableSchema(id=table.id, name=table.name, columns=[*table.columns, *columns])


class TestComputeRow:
    """Tests for computing a single row."""

    def test_formulas_and_rollups(self, service, projects_schema, project_row):
        """Test that formulas and rollups are computed together."""
        results = service.compute_row(projects_schema, project_row)
        assert results["c-hours"].value == 12
        assert results["c-total"].value == 30
        assert results["c-label"].value == "Ada: 30"
        assert set(results) == {"c-hours", "c-total", "c-label"}

    def test_evaluation_order(self, service, projects_schema):
        """Test that rollups come before the formulas reading them."""
        order = [c.id for c in service.evaluation_order(projects_schema)]
        assert order == ["c-hours", "c-total", "c-label"]

    def test_formula_reads_computed_rollup(self, service, projects_schema, project_row):
        """Test a formula reading a rollup computed in the same pass."""
        table = with_columns(
            projects_schema,
            make_column("c-more", "More", ColumnType.FORMULA, formula_source='prop("Total Hours") + 1'),
        )
        assert service.compute_row(table, project_row)["c-more"].value == 13

    def test_row_is_not_modified(self, service, projects_schema, project_row):
        """Test that computing leaves the stored row unchanged."""
        service.compute_row(projects_schema, project_row)
        assert "c-hours" not in project_row.cells

    def test_without_fetcher_rollups_are_unconfigured(self, projects_schema, project_row):
        """Test rollups without a related table fetcher."""
        results = ComputedCellService().compute_row(projects_schema, project_row)
        assert results["c-hours"].status == ComputedStatus.UNCONFIGURED
        assert results["c-hours"].display == "Configure rollup"
        assert results["c-total"].value == 30

    def test_cycle_is_reported_per_column(self, service, project_row):
        """Test that each column in a cycle reports the error."""
        table = TableSchema(
            columns=[
                make_column("f-a", "A", ColumnType.FORMULA, formula_source='prop("B") + 1'),
                make_column("f-b", "B", ColumnType.FORMULA, formula_source='prop("A") + 1'),
            ]
        )
        results = service.compute_row(table, project_row)
        assert results["f-a"].status == ComputedStatus.ERROR
        assert results["f-b"].code == "CIRCULAR_REFERENCE"

    def test_now_uses_clock(self, service, projects_schema, project_row):
        """Test that now() reads the service clock."""
        table = with_columns(
            projects_schema, make_column("c-now", "Today", ColumnType.FORMULA, formula_source="now()")
        )
        assert service.compute_row(table, project_row)["c-now"].value == "03/05/2024"

    def test_long_formula_keeps_other_columns(self, service, projects_schema, project_row):
        """Test that a formula with thousands of terms leaves the rest of the row intact."""
        source = " + ".join(['prop("Price")'] * 3000)
        table = with_columns(
            projects_schema, make_column("c-long", "Long", ColumnType.FORMULA, formula_source=source)
        )
        results = service.compute_row(table, project_row)
        assert results["c-total"].value == 30
        assert results["c-hours"].value == 12
        assert isinstance(results["c-long"], FormulaResult)
        assert [c.id for c in service.dependents_of(table, "c-price")][-1] == "c-long"


class TestComputeTable:
    """Tests for compute_table and display_row."""

    def test_compute_table(self, service, projects_schema, project_row):
        """Test computing every row of a table."""
        table = TableData(
            id=projects_schema.id,
            columns=projects_schema.columns,
            rows=[project_row, Row(id="r2", cells={"c-name": "Bob", "c-price": "2.5", "c-qty": 4})],
        )
        results = service.compute_table(table)
        assert results["r1"]["c-total"].value == 30
        assert results["r2"]["c-total"].value == 10
        assert results["r2"]["c-label"].value == "Bob: 10"
        assert results["r2"]["c-hours"].status == ComputedStatus.UNCONFIGURED

    def test_display_row(self, service, projects_schema, project_row):
        """Test display strings for stored and computed cells."""
        display = service.display_row(projects_schema, project_row)
        assert display["c-name"] == "Ada"
        assert display["c-done"] == "Yes"
        assert display["c-due"] == ""
        assert display["c-hours"] == "12"
        assert display["c-label"] == "Ada: 30"

    def test_display_row_sentinels(self, projects_schema, project_row):
        """Test the placeholder text for unconfigured and failed cells."""
        table = with_columns(
            projects_schema,
            make_column("c-bad", "Bad", ColumnType.FORMULA, formula_source='prop("Name") / 0'),
            make_column("c-blank", "Blank", ColumnType.FORMULA),
        )
        display = ComputedCellService().display_row(table, project_row)
        assert display["c-hours"] == "Configure rollup"
        assert display["c-bad"] == "Error"
        assert display["c-blank"] == "Click to configure"


class TestAsyncComputeRow:
    """Tests for acompute_row."""

    @pytest.mark.asyncio
    async def test_async_fetcher(self, projects_schema, project_row, tasks_table):
        """Test computing a row with an async fetcher."""
        async def fetch(table_id):
            return tasks_table

        results = await ComputedCellService().acompute_row(projects_schema, project_row, fetch)
        assert results["c-hours"].value == 12
        assert results["c-label"].value == "Ada: 30"


class TestCheckFormula:
    """Tests for check_formula."""

    def test_valid(self, service, projects_schema):
        """Test a formula that parses and resolves."""
        assert service.check_formula(projects_schema, "c-total", 'prop("Price") + 1') == (True, None)

    def test_blank_is_allowed(self, service, projects_schema):
        """Test that a blank source is accepted."""
        assert service.check_formula(projects_schema, "c-total", "  ") == (True, None)

    def test_syntax_error(self, service, projects_schema):
        """Test a source that does not parse."""
        ok, error = service.check_formula(projects_schema, "c-total", 'prop("Price" +')
        assert ok is False
        assert error

    def test_unknown_property(self, service, projects_schema):
        """Test a reference to a column that does not exist."""
        assert service.check_formula(projects_schema, "c-total", 'prop("Nope")') == (
            False,
            'Unknown property "Nope"',
        )

    def test_self_reference(self, service, projects_schema):
        """Test a formula reading its own column."""
        assert service.check_formula(projects_schema, "c-total", 'prop("Total") * 2') == (
            False,
            "Circular reference",
        )

    def test_indirect_cycle(self, service, projects_schema):
        """Test a cycle through another formula column."""
        # Label already reads Total
        assert service.check_formula(projects_schema, "c-total", 'length(prop("Label"))') == (
            False,
            "Circular reference",
        )

    def test_new_column(self, service, projects_schema):
        """Test checking a formula for a column not yet saved."""
        assert service.check_formula(projects_schema, "c-new", 'prop("Label")') == (True, None)


class TestColumnDeletion:
    """Tests for dangling_references and dependents_of."""

    def test_dependents_of(self, service, projects_schema):
        """Test the computed columns reading a column."""
        assert [c.id for c in service.dependents_of(projects_schema, "c-price")] == [
            "c-total",
            "c-label",
        ]
        assert [c.id for c in service.dependents_of(projects_schema, "c-tasks")] == ["c-hours"]
        assert service.dependents_of(projects_schema, "c-score") == []

    def test_dangling_references(self, service, projects_schema):
        """Test references left behind by deleted columns."""
        table = TableSchema(
            columns=[c for c in projects_schema.columns if c.id not in {"c-total", "c-tasks"}]
        )
        assert service.dangling_references(table) == {
            "c-hours": ["c-tasks"],
            "c-label": ["Total"],
        }

    def test_no_dangling_references(self, service, projects_schema):
        """Test a table whose references all resolve."""
        assert service.dangling_references(projects_schema) == {}
