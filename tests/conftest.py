"""
Pytest configuration and fixtures for NoteBase tests.
"""

import pytest

from notebase.schemas import ColumnType, Row, TableData, TableSchema
from tests.factories import FIXED_NOW, make_column


@pytest.fixture
def fixed_clock():
    """Clock for now() that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def tasks_table() -> TableData:
    """Related table reached through the projects table's Tasks relation."""
    return TableData(
        id="tbl-tasks",
        name="Tasks",
        columns=[
            make_column("t-title", "Title", ColumnType.TEXT),
            make_column("t-hours", "Hours", ColumnType.NUMBER),
            make_column(
                "t-status",
                "Status",
                ColumnType.SELECT,
                options=[{"id": "s-open", "label": "Open"}, {"id": "s-done", "label": "Done"}],
            ),
            make_column("t-double", "Double", ColumnType.FORMULA, formula_source='prop("Hours") * 2'),
        ],
        rows=[
            Row(id="t1", cells={"t-title": "Design", "t-hours": 5, "t-status": "s-done"}),
            Row(id="t2", cells={"t-title": "Build", "t-hours": None, "t-status": "s-open"}),
            Row(id="t3", cells={"t-title": "Ship", "t-hours": "7", "t-status": "s-open"}),
        ],
    )


@pytest.fixture
def fetcher(tasks_table):
    """Synchronous related table fetcher that records the ids it was asked for."""
    calls: list[str] = []

    def fetch(table_id: str):
        calls.append(table_id)
        return tasks_table if table_id == tasks_table.id else None

    fetch.calls = calls
    return fetch


@pytest.fixture
def projects_schema() -> TableSchema:
    """A table with plain, relation, rollup and formula columns."""
    return TableSchema(
        id="tbl-projects",
        name="Projects",
        columns=[
            make_column("c-name", "Name", ColumnType.TEXT),
            make_column("c-price", "Price", ColumnType.NUMBER),
            make_column("c-qty", "Qty", ColumnType.NUMBER),
            make_column("c-score", "Score", ColumnType.NUMBER),
            make_column("c-done", "Done", ColumnType.CHECKBOX),
            make_column("c-due", "Due", ColumnType.DATE),
            make_column("c-tags", "Tags", ColumnType.MULTI_SELECT),
            make_column("c-tasks", "Tasks", ColumnType.RELATION, related_table_id="tbl-tasks"),
            make_column(
                "c-hours",
                "Total Hours",
                ColumnType.ROLLUP,
                relation_column_id="c-tasks",
                target_property_name="Hours",
                aggregation="sum",
            ),
            make_column(
                "c-total",
                "Total",
                ColumnType.FORMULA,
                formula_source='prop("Price") * prop("Qty")',
            ),
            make_column(
                "c-label",
                "Label",
                ColumnType.FORMULA,
                formula_source='concat(prop("Name"), ": ", prop("Total"))',
            ),
        ],
    )


@pytest.fixture
def project_row() -> Row:
    return Row(
        id="r1",
        cells={
            "c-name": "Ada",
            "c-price": 10,
            "c-qty": 3,
            "c-score": 42,
            "c-done": True,
            "c-tags": ["a", "b"],
            "c-tasks": ["t1", "t2", "t3"],
        },
    )
