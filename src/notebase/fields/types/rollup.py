"""Rollup column type handler.

Rollup columns aggregate a property of the rows linked through one of the
table's relation columns.
"""

from collections.abc import Sequence
from typing import Any

from notebase.fields.base import BaseFieldTypeHandler
from notebase.fields.coercion import to_display_string
from notebase.schemas.column import ColumnRef, ColumnType, RollupAggregation, RollupOptions


class RollupFieldHandler(BaseFieldTypeHandler):
    """
    Handler for rollup columns.

    Options:
        relation_column_id: Relation column of the same table (required)
        target_property_name: Property of the related table to read (required
            unless target_property_id is set)
        target_property_id: Stable id of that property
        aggregation: One of RollupAggregation (required)

    Supported aggregations:
        - count: Number of related rows
        - countValues / countEmpty: Non-empty / empty target values
        - countUnique: Distinct non-empty values
        - percentEmpty / percentNotEmpty: Share of empty / non-empty values
        - sum, average, min, max, range: Over numeric values
        - showOriginal: Non-empty values joined for display

    Storage format:
        Computed. A stored value is a fallback copy of the last result.
    """

    column_type = ColumnType.ROLLUP

    AGGREGATIONS = {a.value for a in RollupAggregation}

    @classmethod
    def serialize(cls, value: Any) -> Any:
        from notebase.formula.results import ComputedStatus, RollupResult

        if isinstance(value, RollupResult):
            return value.value if value.status == ComputedStatus.COMPUTED else None
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        return to_display_string(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate a rollup column.

        Args:
            value: Must be None; rollup cells cannot be edited
            options: RollupOptions (or a raw dict) with all required keys

        Returns:
            True if valid

        Raises:
            ValueError: If a value is given or the options are incomplete
        """
        if value is not None:
            raise ValueError("Rollup cells are computed and cannot be edited")

        if options is None:
            return True
        if isinstance(options, dict):
            aggregation = options.get("aggregation") or options.get("calculation")
            if aggregation and aggregation not in cls.AGGREGATIONS:
                raise ValueError(
                    f"Invalid aggregation '{aggregation}'. "
                    f"Supported: {', '.join(sorted(cls.AGGREGATIONS))}"
                )
            options = RollupOptions.model_validate(options)
        if not isinstance(options, RollupOptions):
            raise ValueError("Rollup column requires rollup options")

        if not options.relation_column_id:
            raise ValueError("Rollup column must specify relation_column_id in options")
        if not (options.target_property_name or options.target_property_id):
            raise ValueError("Rollup column must specify target_property_name in options")
        if options.aggregation is None:
            raise ValueError("Rollup column must specify aggregation in options")

        return True

    @classmethod
    def validate_relation(cls, options: RollupOptions, columns: Sequence[ColumnRef]) -> bool:
        """
        Check that the rollup's relation column is a relation column of ``columns``.

        Raises:
            ValueError: If it is missing or of another type
        """
        for column in columns:
            if column.id == options.relation_column_id:
                if column.type != ColumnType.RELATION:
                    raise ValueError(f"Column '{column.name}' is not a relation column")
                return True
        raise ValueError(f"Relation column '{options.relation_column_id}' not found")

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def compute(cls, column: Any, row: Any, table: Any, related_table_fetcher: Any):
        """
        Compute the rollup cell of ``row``.

        Returns:
            RollupResult
        """
        from notebase.rollup.aggregator import compute_rollup

        return compute_rollup(column, row, table, related_table_fetcher)

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        from notebase.formula.results import RollupResult

        if isinstance(value, RollupResult):
            return value.display
        return to_display_string(value)

    @classmethod
    def is_computed(cls) -> bool:
        return True

    @classmethod
    def is_read_only(cls) -> bool:
        return True
