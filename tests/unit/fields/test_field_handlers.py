"""Unit tests for the column type handler registry and handlers."""

from datetime import date, datetime

import pytest

from notebase.core.exceptions import InvalidCellValueError, InvalidColumnTypeError
from notebase.fields import (
    FIELD_HANDLERS,
    CheckboxFieldHandler,
    CreatedTimeFieldHandler,
    DateFieldHandler,
    EmailFieldHandler,
    MultiSelectFieldHandler,
    NumberFieldHandler,
    PhoneFieldHandler,
    RelationFieldHandler,
    RollupFieldHandler,
    SelectFieldHandler,
    URLFieldHandler,
    get_field_handler,
    list_field_types,
    register_field_handler,
    require_field_handler,
    validate_cell,
)
from notebase.schemas import (
    ColumnRef,
    ColumnType,
    RelationOptions,
    RollupOptions,
    SelectOption,
    SelectOptions,
)
from tests.factories import make_column

STATUS = SelectOptions(
    options=[
        SelectOption(id="s-open", label="Open", color="blue"),
        SelectOption(id="s-done", label="Done", color="green"),
    ]
)


class TestRegistry:
    """Tests for the handler registry."""

    def test_every_column_type_has_a_handler(self):
        """Test that every column type has a handler."""
        assert set(FIELD_HANDLERS) == set(ColumnType)

    def test_lookup_by_string_value(self):
        """Test looking up a handler by type string."""
        assert get_field_handler("multiSelect") is MultiSelectFieldHandler
        assert get_field_handler(ColumnType.ROLLUP) is RollupFieldHandler

    def test_unknown_type(self):
        """Test looking up an unknown type."""
        assert get_field_handler("barcode") is None
        with pytest.raises(InvalidColumnTypeError) as exc_info:
            require_field_handler("barcode")
        assert exc_info.value.code == "INVALID_COLUMN_TYPE"

    def test_list_field_types(self):
        """Test listing the registered types."""
        types = list_field_types()
        assert "formula" in types
        assert "lastEditedBy" in types
        assert len(types) == len(ColumnType)

    def test_computed_types(self):
        """Test which types are computed."""
        computed = {t for t, handler in FIELD_HANDLERS.items() if handler.is_computed()}
        assert computed == {ColumnType.FORMULA, ColumnType.ROLLUP}

    def test_register_replaces_handler(self, monkeypatch):
        """Test that a registered handler replaces the built-in one for its type."""
        # Restored after the test
        monkeypatch.setitem(FIELD_HANDLERS, ColumnType.PHONE, PhoneFieldHandler)

        class NorthAmericanPhoneHandler(PhoneFieldHandler):
            MIN_DIGITS = 10
            MAX_DIGITS = 11

        register_field_handler(NorthAmericanPhoneHandler)
        assert get_field_handler("phone") is NorthAmericanPhoneHandler

        column = make_column("c-phone", "Phone", ColumnType.PHONE)
        assert validate_cell(column, "(555) 123-4567") is True
        with pytest.raises(InvalidCellValueError):
            validate_cell(column, "555-1234")


class TestValidateCell:
    """Tests for validate_cell()."""

    def test_valid(self):
        """Test a valid cell value."""
        assert validate_cell(make_column("c-n", "Price", ColumnType.NUMBER), "12.5") is True

    def test_invalid_value_is_wrapped(self):
        """Test that handler errors become validation errors."""
        column = make_column("c-n", "Price", ColumnType.NUMBER)
        with pytest.raises(InvalidCellValueError) as exc_info:
            validate_cell(column, "twelve")
        assert exc_info.value.code == "INVALID_CELL_VALUE"
        assert exc_info.value.details["column_name"] == "Price"

    def test_computed_cells_cannot_be_written(self):
        """Test writing to a computed cell."""
        column = make_column("f-x", "X", ColumnType.FORMULA, formula_source="1")
        with pytest.raises(InvalidCellValueError):
            validate_cell(column, 5)


class TestScalarHandlers:
    """Tests for number, checkbox, date and contact handlers."""

    def test_number(self):
        """Test the number handler."""
        assert NumberFieldHandler.serialize("4.0") == 4
        assert NumberFieldHandler.serialize("") is None
        with pytest.raises(ValueError, match="Cannot convert"):
            NumberFieldHandler.serialize("abc")
        with pytest.raises(ValueError, match="got bool"):
            NumberFieldHandler.validate(True)

    def test_number_bounds(self):
        """Test number min and max options."""
        options = {"min_value": 0, "max_value": 10}
        assert NumberFieldHandler.validate(10, options) is True
        with pytest.raises(ValueError, match=">= 0"):
            NumberFieldHandler.validate(-1, options)

    def test_checkbox(self):
        """Test the checkbox handler."""
        assert CheckboxFieldHandler.serialize(None) is False
        assert CheckboxFieldHandler.format_display(True) == "Yes"
        with pytest.raises(ValueError, match="boolean"):
            CheckboxFieldHandler.validate("yes")

    def test_date(self):
        """Test the date handler."""
        assert DateFieldHandler.serialize(datetime(2024, 3, 5, 9, 0)) == "2024-03-05"
        assert DateFieldHandler.deserialize("2024-03-05T10:00:00Z") == date(2024, 3, 5)
        with pytest.raises(ValueError, match="on or after"):
            DateFieldHandler.validate("2023-12-31", {"min_date": "2024-01-01"})

    def test_email(self):
        """Test the email handler."""
        assert EmailFieldHandler.serialize(" Ada@Example.COM ") == "ada@example.com"
        with pytest.raises(ValueError, match="Invalid email"):
            EmailFieldHandler.validate("not-an-email")

    def test_url_adds_scheme(self):
        """Test that URLs without a scheme get one."""
        assert URLFieldHandler.serialize("example.com") == "https://example.com"
        assert URLFieldHandler.validate("example.com/path") is True
        with pytest.raises(ValueError, match="not allowed"):
            URLFieldHandler.validate("ftp://example.com")

    def test_phone(self):
        """Test the phone handler."""
        assert PhoneFieldHandler.serialize("(555) 123-4567") == "5551234567"
        assert PhoneFieldHandler.format_display("5551234567") == "(555) 123-4567"
        with pytest.raises(ValueError):
            PhoneFieldHandler.validate("12")

    def test_created_time_is_read_only(self):
        """Test that created time cells are read-only."""
        assert CreatedTimeFieldHandler.is_read_only() is True
        assert CreatedTimeFieldHandler.format_display(datetime(2024, 3, 5, 14, 30)) == (
            "Mar 05, 2024 14:30"
        )


class TestSelectHandlers:
    """Tests for select and multiSelect columns."""

    def test_known_option(self):
        """Test a value among the options."""
        assert SelectFieldHandler.validate("s-open", STATUS) is True

    def test_unknown_option(self):
        """Test a value not among the options."""
        with pytest.raises(ValueError, match="Invalid option 's-gone'"):
            SelectFieldHandler.validate("s-gone", STATUS)

    def test_dict_options(self):
        """Test options given as a dict."""
        options = {"options": [{"id": "s-1", "name": "One"}]}
        assert SelectFieldHandler.validate("s-1", options) is True

    def test_display_uses_labels(self):
        """Test that display shows option labels."""
        assert SelectFieldHandler.format_display("s-done", STATUS) == "Done"
        assert MultiSelectFieldHandler.format_display(["s-open", "s-deleted", "s-done"], STATUS) == (
            "Open, Done"
        )

    def test_multi_select_rejects_duplicates(self):
        """Test duplicate values in a multi-select."""
        with pytest.raises(ValueError, match="unique"):
            MultiSelectFieldHandler.validate(["s-open", "s-open"], STATUS)

    def test_multi_select_deserialize(self):
        """Test reading a stored multi-select value."""
        assert MultiSelectFieldHandler.deserialize(None) == []
        assert MultiSelectFieldHandler.deserialize("s-open") == ["s-open"]

    def test_add_option_picks_unused_color(self):
        """Test the colour chosen for a new option."""
        updated = SelectFieldHandler.add_option(STATUS, "Blocked")
        assert [o.label for o in updated.options] == ["Open", "Done", "Blocked"]
        assert updated.options[-1].color == "cyan"
        assert SelectFieldHandler.add_option(STATUS, "Open") is STATUS


class TestRelationHandler:
    """Tests for relation columns."""

    def test_serialize_accepts_records(self):
        """Test serializing linked records."""
        assert RelationFieldHandler.serialize([{"id": "t1"}, "t2", None]) == ["t1", "t2"]
        assert RelationFieldHandler.serialize([]) is None

    def test_related_row_ids(self):
        """Test reading linked row ids."""
        assert RelationFieldHandler.related_row_ids(None) == []
        assert RelationFieldHandler.related_row_ids("t1") == ["t1"]
        assert RelationFieldHandler.related_row_ids(["t1", "", None, "t2"]) == ["t1", "t2"]

    def test_validate(self):
        """Test validating a relation cell."""
        options = RelationOptions(related_table_id="tbl-tasks")
        assert RelationFieldHandler.validate(["t1", "t2"], options) is True
        with pytest.raises(ValueError, match="no related table"):
            RelationFieldHandler.validate(["t1"], RelationOptions())
        with pytest.raises(ValueError, match="unique"):
            RelationFieldHandler.validate(["t1", "t1"], options)


class TestRollupHandler:
    """Tests for rollup column configuration."""

    def test_complete_options(self):
        """Test complete rollup options."""
        options = RollupOptions(
            relation_column_id="c-tasks", target_property_name="Hours", aggregation="sum"
        )
        assert RollupFieldHandler.validate(None, options) is True

    def test_invalid_aggregation(self):
        """Test an unknown aggregation."""
        options = {"relation_column_id": "c-tasks", "rollupProperty": "Hours", "calculation": "median"}
        with pytest.raises(ValueError, match="Invalid aggregation 'median'"):
            RollupFieldHandler.validate(None, options)

    @pytest.mark.parametrize(
        "options,message",
        [
            ({"target_property_name": "Hours", "aggregation": "sum"}, "relation_column_id"),
            ({"relation_column_id": "c-tasks", "aggregation": "sum"}, "target_property_name"),
            ({"relation_column_id": "c-tasks", "target_property_name": "Hours"}, "aggregation"),
        ],
    )
    def test_missing_option(self, options, message):
        """Test options with a required field missing."""
        with pytest.raises(ValueError, match=message):
            RollupFieldHandler.validate(None, options)

    def test_rejects_user_value(self):
        """Test that a value cannot be written to a rollup cell."""
        with pytest.raises(ValueError, match="computed"):
            RollupFieldHandler.validate(3, None)

    def test_validate_relation(self):
        """Test validating the relation a rollup uses."""
        options = RollupOptions(relation_column_id="c-tasks")
        columns = [
            ColumnRef(id="c-name", name="Name", type=ColumnType.TEXT),
            ColumnRef(id="c-tasks", name="Tasks", type=ColumnType.RELATION),
        ]
        assert RollupFieldHandler.validate_relation(options, columns) is True

        with pytest.raises(ValueError, match="not a relation column"):
            RollupFieldHandler.validate_relation(RollupOptions(relation_column_id="c-name"), columns)

        with pytest.raises(ValueError, match="not found"):
            RollupFieldHandler.validate_relation(RollupOptions(relation_column_id="c-x"), columns)
