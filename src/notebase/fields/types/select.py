"""Select and multi select column type handlers.

Cells store option ids; labels live in the column's SelectOptions.
"""

from typing import Any
from uuid import uuid4

from notebase.fields.base import BaseFieldTypeHandler
from notebase.schemas.column import ColumnType, SelectOption, SelectOptions


def _select_options(options: Any) -> SelectOptions:
    if isinstance(options, SelectOptions):
        return options
    if isinstance(options, dict):
        return SelectOptions.model_validate(options)
    return SelectOptions()


class SelectFieldHandler(BaseFieldTypeHandler):
    """
    Handler for select columns.

    Allows selection of one option from the column's option list.
    """

    column_type = ColumnType.SELECT

    # Colors assigned to new options in order
    DEFAULT_COLORS = [
        "blue",
        "cyan",
        "teal",
        "green",
        "yellow",
        "orange",
        "red",
        "pink",
        "purple",
        "gray",
    ]

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        """
        Validate select value.

        Args:
            value: Option id
            options: SelectOptions (or its dict form)

        Returns:
            True if valid

        Raises:
            ValueError: If the value is not one of the column's option ids
        """
        if value is None:
            return True

        if not isinstance(value, str):
            raise ValueError(f"Select column requires string value, got {type(value).__name__}")

        cls._check_known(value, _select_options(options))
        return True

    @classmethod
    def _check_known(cls, option_id: str, options: SelectOptions) -> None:
        valid_ids = {option.id for option in options.options}
        if option_id not in valid_ids:
            raise ValueError(
                f"Invalid option '{option_id}'. Valid options: {', '.join(sorted(valid_ids))}"
            )

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def format_display(cls, value: Any, options: Any = None) -> str:
        """Show option labels; unknown ids (deleted options) are skipped."""
        if not value:
            return ""
        select_options = _select_options(options)
        ids = value if isinstance(value, list) else [value]
        labels = [select_options.label_for(option_id) for option_id in ids]
        return ", ".join(label for label in labels if label)

    @classmethod
    def add_option(
        cls,
        options: SelectOptions,
        label: str,
        color: str | None = None,
    ) -> SelectOptions:
        """
        Return options with a new choice appended.

        Args:
            options: Current column options
            label: Choice label
            color: Optional color (auto-assigned if not provided)

        Returns:
            Updated options; unchanged if the label already exists
        """
        if any(option.label == label for option in options.options):
            return options

        if color is None:
            used_colors = {option.color for option in options.options}
            for default_color in cls.DEFAULT_COLORS:
                if default_color not in used_colors:
                    color = default_color
                    break
            else:
                color = cls.DEFAULT_COLORS[len(options.options) % len(cls.DEFAULT_COLORS)]

        new_option = SelectOption(id=str(uuid4()), label=label, color=color)
        return options.model_copy(update={"options": [*options.options, new_option]})


class MultiSelectFieldHandler(SelectFieldHandler):
    """Handler for multiSelect columns. Cells store a list of option ids."""

    column_type = ColumnType.MULTI_SELECT

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple, set)):
            return [str(v) for v in value]
        raise ValueError(f"Cannot convert {type(value).__name__} to multi select value")

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    @classmethod
    def validate(cls, value: Any, options: Any = None) -> bool:
        if value is None:
            return True

        if not isinstance(value, (list, tuple)):
            raise ValueError(
                f"Multi select column requires list value, got {type(value).__name__}"
            )

        select_options = _select_options(options)
        for item in value:
            if not isinstance(item, str):
                raise ValueError(
                    f"All multi select values must be strings, got {type(item).__name__}"
                )
            cls._check_known(item, select_options)

        if len(value) != len(set(value)):
            raise ValueError("Multi select values must be unique")

        return True

    @classmethod
    def default(cls) -> Any:
        return []
