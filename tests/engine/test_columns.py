"""Tests for gridspine.engine.columns -- formatters, coercers, registry and CellEditor."""

from datetime import date

import pytest

from gridspine.core.errors import CoercionError, InvalidTransitionError
from gridspine.core.result import Err, Ok
from gridspine.core.settings import GridSettings
from gridspine.engine.columns import (
    CellEditor,
    ColumnBehavior,
    ColumnRegistry,
    coerce_boolean,
    coerce_date,
    choice_behavior,
    coerce_text,
    fixed_point_behavior,
    format_boolean,
    format_date,
    format_number,
    format_text,
    parse_number,
)
from gridspine.engine.types import CellMode, ColumnDefinition, SemanticType


# =============================================================================
# Formatters
# =============================================================================


class TestFormatNumber:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1234567.5, "1,234,567.5"),
            (1234567, "1,234,567"),
            (30, "30"),
            (0, "0"),
            (-1234.25, "-1,234.25"),
            (2.0, "2"),
            (1.23456, "1.235"),
            (None, ""),
            ("", ""),
            ("1234", "1,234"),
            ("n/a", "n/a"),
        ],
    )
    def test_default_locale(self, value, expected):
        assert format_number(value) == expected

    def test_custom_separators(self):
        """Separators are swapped for European conventions."""
        assert format_number(1234567.5, thousands=".", decimal=",") == "1.234.567,5"


class TestFormatBoolean:
    def test_labels(self):
        assert format_boolean(True) == "✔️"
        assert format_boolean(False) == "❌"

    def test_custom_labels(self):
        assert format_boolean(True, true_label="yes", false_label="no") == "yes"


class TestFormatDate:
    def test_default_pattern(self):
        assert format_date("2024-01-15") == "01/15/2024"
        assert format_date(date(2024, 1, 15)) == "01/15/2024"

    def test_custom_pattern(self):
        assert format_date("2024-01-15", pattern="%d.%m.%Y") == "15.01.2024"

    def test_unparseable_passes_through(self):
        assert format_date("soon") == "soon"

    def test_empty(self):
        assert format_date(None) == ""
        assert format_date("") == ""


class TestFormatText:
    def test_text(self):
        assert format_text("Ann") == "Ann"
        assert format_text(None) == ""
        assert format_text([1, 2]) == "[1, 2]"


# =============================================================================
# Coercers
# =============================================================================


class TestParseNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("31", 31),
            (" 31 ", 31),
            ("1,234", 1234),
            ("-1,234,567.25", -1234567.25),
            ("2.5", 2.5),
            ("-7", -7),
            ("1e3", 1000.0),
            (4, 4),
        ],
    )
    def test_numbers(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", "   ", "nan", "inf", True, None, [1]])
    def test_not_numbers(self, raw):
        assert parse_number(raw) is None

    @pytest.mark.parametrize("raw", ["1,2", ",5", "12,34", "1,,234", "1234,567", "1,234,", "1,2.5"])
    def test_misplaced_thousands_separator(self, raw):
        """Separators only count between three-digit groups."""
        assert parse_number(raw) is None

    def test_decimal_comma(self):
        assert parse_number("1.234,5", thousands=".", decimal=",") == 1234.5


class TestCoercers:
    def test_number_ok(self):
        behavior = ColumnRegistry(GridSettings()).resolve(SemanticType.NUMBER)
        assert behavior.coerce("31", 30) == Ok(31)

    def test_number_err(self):
        behavior = ColumnRegistry(GridSettings()).resolve(SemanticType.NUMBER)
        result = behavior.coerce("abc", 30)
        assert isinstance(result, Err)
        assert isinstance(result.error, CoercionError)
        assert result.error.target_type == "number"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, True), (False, False), ("yes", True), ("OFF", False), (1, True), (0, False)],
    )
    def test_boolean_ok(self, raw, expected):
        assert coerce_boolean(raw, None).unwrap() is expected

    @pytest.mark.parametrize("raw", ["maybe", 2, None])
    def test_boolean_err(self, raw):
        assert coerce_boolean(raw, None).is_err()

    def test_date_normalized(self):
        assert coerce_date("2024-01-15T10:00:00", None).unwrap() == "2024-01-15"
        assert coerce_date(date(2024, 1, 15), None).unwrap() == "2024-01-15"

    def test_date_in_display_pattern(self):
        """Input typed the way dates are displayed is accepted."""
        assert coerce_date("01/20/2024", None, pattern="%m/%d/%Y").unwrap() == "2024-01-20"
        assert coerce_date("01/20/2024", None).is_err()
        assert coerce_date("13/45/2024", None, pattern="%m/%d/%Y").is_err()

    def test_registered_date_uses_settings_pattern(self):
        behavior = ColumnRegistry(GridSettings(date_format="%d.%m.%Y")).resolve(SemanticType.DATE)
        assert behavior.coerce("20.01.2024", None) == Ok("2024-01-20")
        assert behavior.coerce("2024-01-20", None) == Ok("2024-01-20")

    def test_date_err(self):
        result = coerce_date("tomorrow", "2024-01-15")
        assert result.is_err()
        assert result.error.category.value == "COERCION"

    def test_text_passes_raw(self):
        assert coerce_text("  Ann ", "Bob").unwrap() == "  Ann "
        assert coerce_text(None, "Bob").unwrap() == ""
        assert coerce_text(5, "Bob").unwrap() == "5"


# =============================================================================
# Registry
# =============================================================================


class TestColumnRegistry:
    def test_defaults_registered(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.registered() == ["boolean", "currency", "date", "decimal2", "number", "text", "unknown"]

    def test_number_format(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.resolve(SemanticType.NUMBER).format(1234567.5) == "1,234,567.5"

    def test_unknown_type_falls_back_to_text(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.resolve("percent").name == "text"
        assert registry.resolve(SemanticType.UNKNOWN).name == "text"

    def test_boolean_is_toggle_only(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.resolve(SemanticType.BOOLEAN).toggle_only is True
        assert registry.resolve(SemanticType.TEXT).toggle_only is False

    def test_settings_drive_display(self):
        settings = GridSettings(
            thousands_separator=".",
            decimal_separator=",",
            date_format="%Y/%m/%d",
            true_label="on",
            false_label="off",
        )
        registry = ColumnRegistry(settings)
        assert registry.resolve(SemanticType.NUMBER).format(1234.5) == "1.234,5"
        assert registry.resolve(SemanticType.NUMBER).coerce("1.234,5", None).unwrap() == 1234.5
        assert registry.resolve(SemanticType.DATE).format("2024-01-15") == "2024/01/15"
        assert registry.resolve(SemanticType.BOOLEAN).format(False) == "off"

    def test_register_custom_behavior(self):
        registry = ColumnRegistry(GridSettings())
        upper = ColumnBehavior("upper", lambda v: str(v).upper(), coerce_text)
        registry.register("shout", upper)
        assert registry.resolve("shout").format("hi") == "HI"
        assert "shout" in registry.registered()


# =============================================================================
# CellEditor state machine
# =============================================================================


class TestCellEditor:
    """VIEWING -> EDITING on activate, back to VIEWING on commit or cancel."""

    def test_starts_viewing(self):
        editor = CellEditor(30, lambda raw: raw)
        assert editor.mode is CellMode.VIEWING
        assert editor.editing is False

    def test_activate_seeds_draft(self):
        editor = CellEditor(30, lambda raw: raw)
        editor.activate()
        assert editor.mode is CellMode.EDITING
        assert editor.draft == 30

    def test_commit_on_blur(self):
        """commit hands the draft to on_commit and returns to VIEWING."""
        seen = []
        editor = CellEditor(30, lambda raw: seen.append(raw) or "done")
        editor.activate()
        editor.update("3")
        editor.update("31")
        assert seen == []
        assert editor.commit() == "done"
        assert seen == ["31"]
        assert editor.mode is CellMode.VIEWING
        assert editor.value == "31"
        assert editor.last_outcome == "done"

    def test_settle_maps_outcome_to_value(self):
        """With settle, the shown value comes from the outcome."""
        editor = CellEditor(30, lambda raw: {"kept": 30}, settle=lambda outcome: outcome["kept"])
        editor.activate()
        editor.update("99")
        editor.commit()
        assert editor.value == 30

    def test_cancel_discards_draft(self):
        calls = []
        editor = CellEditor("Ann", calls.append)
        editor.activate()
        editor.update("Bob")
        editor.cancel()
        assert editor.value == "Ann"
        assert editor.draft is None
        assert calls == []

    @pytest.mark.parametrize("action", ["update", "commit", "cancel"])
    def test_illegal_while_viewing(self, action):
        editor = CellEditor("Ann", lambda raw: raw)
        args = ("x",) if action == "update" else ()
        with pytest.raises(InvalidTransitionError):
            getattr(editor, action)(*args)

    def test_double_activate(self):
        editor = CellEditor("Ann", lambda raw: raw)
        editor.activate()
        with pytest.raises(InvalidTransitionError):
            editor.activate()

    def test_toggle_commits_immediately(self):
        """Toggle editors commit the negation without an edit mode."""
        seen = []
        editor = CellEditor(True, lambda raw: seen.append(raw), toggle_only=True)
        editor.toggle()
        assert seen == [False]
        assert editor.value is False
        assert editor.mode is CellMode.VIEWING
        editor.toggle()
        assert seen == [False, True]

    def test_toggle_editor_cannot_activate(self):
        editor = CellEditor(True, lambda raw: raw, toggle_only=True)
        with pytest.raises(InvalidTransitionError):
            editor.activate()

    def test_text_editor_cannot_toggle(self):
        editor = CellEditor("Ann", lambda raw: raw)
        with pytest.raises(InvalidTransitionError):
            editor.toggle()

    def test_behavior_edit_builds_editor(self):
        registry = ColumnRegistry(GridSettings())
        editor = registry.resolve(SemanticType.BOOLEAN).edit(False, lambda raw: raw)
        assert editor.toggle_only is True
        assert editor.toggle() is True


# =============================================================================
# Named column styles
# =============================================================================


class TestFixedPointBehavior:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1234.5, "$1234.50"), (0, "$0.00"), (-3, "-$3.00"), (-0.001, "$0.00"), ("12.5", "$12.50"), (None, "")],
    )
    def test_currency_format(self, value, expected):
        assert fixed_point_behavior("currency", 2, prefix="$").format(value) == expected

    def test_unparseable_passes_through(self):
        assert fixed_point_behavior("currency", 2, prefix="$").format("n/a") == "n/a"

    def test_decimal_comma(self):
        behavior = fixed_point_behavior("decimal2", 2, thousands=".", decimal=",")
        assert behavior.format(0.5) == "0,50"
        assert behavior.format(12.5) == "12,50"
        assert behavior.coerce("1.234,567", None) == Ok(1234.57)

    def test_coerce_rounds(self):
        behavior = fixed_point_behavior("currency", 2, prefix="$")
        assert behavior.coerce("19.999", 10.0) == Ok(20.0)
        assert behavior.coerce("1,200", 10.0) == Ok(1200.0)

    def test_coerce_rejects(self):
        result = fixed_point_behavior("currency", 2, prefix="$").coerce("ten", 10.0)
        assert isinstance(result.error, CoercionError)


class TestChoiceBehavior:
    def test_accepts_options(self):
        behavior = choice_behavior("status", ["open", "closed"])
        assert behavior.coerce("closed", "open") == Ok("closed")
        assert behavior.coerce(" open ", "closed") == Ok("open")

    @pytest.mark.parametrize("raw", ["archived", "", None, "Open"])
    def test_rejects_other_values(self, raw):
        result = choice_behavior("status", ["open", "closed"]).coerce(raw, "open")
        assert isinstance(result, Err)
        assert isinstance(result.error, CoercionError)
        assert result.error.target_type == "status"

    def test_format_is_raw(self):
        behavior = choice_behavior("status", ["open"])
        assert behavior.format("open") == "open"
        assert behavior.format(None) == ""

    def test_editor_commits_on_choose(self):
        submitted = []
        editor = choice_behavior("status", ["open", "closed"]).edit("open", submitted.append)
        assert editor.options == ("open", "closed")
        editor.choose("closed")
        assert submitted == ["closed"]
        assert editor.value == "closed"
        assert editor.mode is CellMode.VIEWING

    def test_editor_has_no_edit_mode(self):
        editor = choice_behavior("status", ["open"]).edit("open", lambda raw: raw)
        with pytest.raises(InvalidTransitionError):
            editor.activate()

    def test_only_choice_editors_choose(self):
        editor = CellEditor("Ann", lambda raw: raw)
        with pytest.raises(InvalidTransitionError):
            editor.choose("Bob")


class TestForColumn:
    def _column(self, behavior=None, semantic_type=SemanticType.NUMBER):
        return ColumnDefinition("balance", "Balance", semantic_type, behavior=behavior)

    def test_named_style_wins(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.for_column(self._column("currency")).format(1234.5) == "$1234.50"

    def test_semantic_type_without_style(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.for_column(self._column()).format(1234.5) == "1,234.5"

    def test_unregistered_style_falls_back_to_type(self):
        registry = ColumnRegistry(GridSettings())
        assert registry.for_column(self._column("percent")).name == "number"

    def test_registered_choice(self):
        registry = ColumnRegistry(GridSettings())
        registry.register("status", choice_behavior("status", ["open", "closed"]))
        column = self._column("status", SemanticType.TEXT)
        assert registry.for_column(column).coerce("archived", "open").is_err()
