"""Column schemas: column types and their type-specific options."""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class ColumnType(str, Enum):
    """Available column types."""

    # Basic Types
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"

    # Contact Types
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"

    # User / Media Types
    PERSON = "person"
    FILES = "files"

    # Selection Types
    SELECT = "select"
    MULTI_SELECT = "multiSelect"

    # Reference Types
    RELATION = "relation"
    ROLLUP = "rollup"

    # Computed Types
    FORMULA = "formula"

    # System Types
    CREATED_TIME = "createdTime"
    CREATED_BY = "createdBy"
    LAST_EDITED_TIME = "lastEditedTime"
    LAST_EDITED_BY = "lastEditedBy"


class RollupAggregation(str, Enum):
    """Aggregations a rollup column can apply to related values."""

    COUNT = "count"
    COUNT_VALUES = "countValues"
    COUNT_UNIQUE = "countUnique"
    COUNT_EMPTY = "countEmpty"
    PERCENT_EMPTY = "percentEmpty"
    PERCENT_NOT_EMPTY = "percentNotEmpty"
    SUM = "sum"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    RANGE = "range"
    SHOW_ORIGINAL = "showOriginal"


class _OptionsModel(BaseModel):
    """Options payloads accept both snake_case and the web layer's camelCase."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SelectOption(_OptionsModel):
    """One choice of a select / multiSelect column."""

    id: str
    label: str = Field(..., validation_alias=AliasChoices("label", "name"))
    color: str = "gray"


class SelectOptions(_OptionsModel):
    """Options for select and multiSelect columns."""

    options: list[SelectOption] = Field(default_factory=list)

    def label_for(self, option_id: str) -> str | None:
        """Return the label of the option with ``option_id``."""
        for option in self.options:
            if option.id == option_id:
                return option.label
        return None


class RelationOptions(_OptionsModel):
    """Options for relation columns."""

    related_table_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("related_table_id", "relatedTableId", "relatedDatabaseId"),
    )
    related_table_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "related_table_name", "relatedTableName", "relatedDatabaseName"
        ),
    )


class FormulaOptions(_OptionsModel):
    """
    Options for formula columns.

    ``references`` maps each property name used in ``formula_source`` to the
    id of the column it named when the formula was saved, so a later rename
    of that column does not break the formula.
    """

    formula_source: str = Field(
        "", validation_alias=AliasChoices("formula_source", "formulaSource", "formula")
    )
    references: dict[str, str] = Field(default_factory=dict)

    @property
    def has_valid_config(self) -> bool:
        return bool(self.formula_source and self.formula_source.strip())


class RollupOptions(_OptionsModel):
    """Options for rollup columns."""

    relation_column_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("relation_column_id", "relationColumnId")
    )
    target_property_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "target_property_name", "targetPropertyName", "rollupProperty"
        ),
    )
    target_property_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("target_property_id", "targetPropertyId")
    )
    aggregation: Optional[RollupAggregation] = Field(
        None, validation_alias=AliasChoices("aggregation", "calculation")
    )

    @property
    def has_valid_config(self) -> bool:
        return bool(
            self.relation_column_id
            and (self.target_property_name or self.target_property_id)
            and self.aggregation
        )


ColumnOptions = SelectOptions | RelationOptions | FormulaOptions | RollupOptions

OPTION_MODELS: dict[ColumnType, type[_OptionsModel]] = {
    ColumnType.SELECT: SelectOptions,
    ColumnType.MULTI_SELECT: SelectOptions,
    ColumnType.RELATION: RelationOptions,
    ColumnType.FORMULA: FormulaOptions,
    ColumnType.ROLLUP: RollupOptions,
}


class ColumnRef(BaseModel):
    """Minimal column identity used to resolve formula references."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    type: ColumnType


class Column(ColumnRef):
    """
    A typed column definition within a table.

    ``options`` is parsed into the model matching ``type``; other types keep
    a plain dict (e.g. number bounds, text length limits).
    """

    options: ColumnOptions | dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def coerce_options(cls, data: Any) -> Any:
        """Parse a raw options dict into the model for this column type."""
        if not isinstance(data, dict):
            return data
        raw = data.get("options")
        try:
            column_type = ColumnType(data.get("type"))
        except ValueError:
            return data
        model = OPTION_MODELS.get(column_type)
        if model is None:
            return data
        if raw is None:
            return {**data, "options": model()}
        if isinstance(raw, dict):
            return {**data, "options": model.model_validate(raw)}
        return data

    @property
    def is_computed(self) -> bool:
        return self.type in (ColumnType.FORMULA, ColumnType.ROLLUP)
