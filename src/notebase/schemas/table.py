"""Row, cell and table schemas."""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from notebase.schemas.column import Column, ColumnRef, ColumnType

# Raw stored value of a cell
CellValue = Union[None, bool, int, float, str, list[str], datetime, date]


class Cell(BaseModel):
    """The stored value of one column for one row."""

    model_config = ConfigDict(populate_by_name=True)

    row_id: Optional[str] = Field(None, validation_alias=AliasChoices("row_id", "rowId"))
    column_id: str = Field(..., validation_alias=AliasChoices("column_id", "columnId"))
    value: CellValue = None


class Row(BaseModel):
    """
    A table row with its cell values keyed by column id.

    Cells may be missing for columns added after the row was created;
    reading one returns None.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    cells: dict[str, CellValue] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )
    created_by: Optional[str] = Field(
        None, validation_alias=AliasChoices("created_by", "createdBy")
    )
    last_edited_by: Optional[str] = Field(
        None, validation_alias=AliasChoices("last_edited_by", "lastEditedBy")
    )

    @model_validator(mode="before")
    @classmethod
    def collect_cells(cls, data: Any) -> Any:
        """Accept cells as a list of {columnId, value} records."""
        if isinstance(data, dict) and isinstance(data.get("cells"), list):
            cells = {}
            for item in data["cells"]:
                cell = item if isinstance(item, Cell) else Cell.model_validate(item)
                cells[cell.column_id] = cell.value
            return {**data, "cells": cells}
        return data

    def get(self, column_id: str) -> CellValue:
        """Return the stored value for ``column_id``, None when absent."""
        return self.cells.get(column_id)

    def value_for(self, column: ColumnRef) -> CellValue:
        """Return the value a column shows for this row, reading row metadata for system columns."""
        if column.type == ColumnType.CREATED_TIME:
            return self.created_at
        if column.type == ColumnType.LAST_EDITED_TIME:
            return self.updated_at
        if column.type == ColumnType.CREATED_BY:
            return self.created_by
        if column.type == ColumnType.LAST_EDITED_BY:
            return self.last_edited_by
        return self.get(column.id)

    def to_cells(self) -> list[Cell]:
        return [Cell(row_id=self.id, column_id=k, value=v) for k, v in self.cells.items()]


class TableSchema(BaseModel):
    """An ordered list of columns belonging to one table."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    columns: list[Column] = Field(default_factory=list)

    def column_by_id(self, column_id: str | None) -> Column | None:
        if not column_id:
            return None
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def column_by_name(self, name: str | None) -> Column | None:
        """Exact, case-sensitive lookup; the first column wins on duplicate names."""
        if name is None:
            return None
        for column in self.columns:
            if column.name == name:
                return column
        return None


class TableData(TableSchema):
    """A table schema together with a snapshot of its rows."""

    rows: list[Row] = Field(default_factory=list)

    def row_by_id(self, row_id: str) -> Row | None:
        for row in self.rows:
            if row.id == row_id:
                return row
        return None

    def rows_by_id(self) -> dict[str, Row]:
        return {row.id: row for row in self.rows}


def as_row(row: Row | Mapping[str, Any]) -> Row:
    """Wrap a plain ``{column_id: value}`` mapping as a Row."""
    if isinstance(row, Row):
        return row
    return Row(cells=dict(row))


def as_columns(columns: Any) -> list[ColumnRef]:
    """Normalise a column list, accepting dicts as well as models."""
    if isinstance(columns, TableSchema):
        return list(columns.columns)
    result: list[ColumnRef] = []
    for column in columns:
        if isinstance(column, ColumnRef):
            result.append(column)
        else:
            result.append(Column.model_validate(column))
    return result
