"""Pydantic schemas for columns, rows and tables."""

from notebase.schemas.column import (
    Column,
    ColumnOptions,
    ColumnRef,
    ColumnType,
    FormulaOptions,
    RelationOptions,
    RollupAggregation,
    RollupOptions,
    SelectOption,
    SelectOptions,
)
from notebase.schemas.table import (
    Cell,
    CellValue,
    Row,
    TableData,
    TableSchema,
    as_columns,
    as_row,
)

__all__ = [
    "Cell",
    "CellValue",
    "Column",
    "ColumnOptions",
    "ColumnRef",
    "ColumnType",
    "FormulaOptions",
    "RelationOptions",
    "RollupAggregation",
    "RollupOptions",
    "Row",
    "SelectOption",
    "SelectOptions",
    "TableData",
    "TableSchema",
    "as_columns",
    "as_row",
]
