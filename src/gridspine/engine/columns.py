"""
Column behaviors: per-type formatting, input coercion and cell editors.

``ColumnRegistry.for_column(column)`` returns a :class:`ColumnBehavior`,
picked by the column's named style or else its semantic type. It holds
what the render layer needs for a column:

- ``format(value) -> str``        how a stored value is displayed
- ``coerce(raw, previous)``       ``Ok(value)`` or ``Err(CoercionError)``
- ``edit(current, on_commit)``    a :class:`CellEditor` state machine

Architecture:
    ::

        ┌───────────┬──────────────────────┬──────────────────────────────┐
        │ type      │ format               │ coerce / edit                │
        ├───────────┼──────────────────────┼──────────────────────────────┤
        │ number    │ 1,234,567.5          │ int/float, grouped input ok  │
        │ boolean   │ ✔️ / ❌               │ toggle commits immediately   │
        │ date      │ 01/15/2024           │ normalized YYYY-MM-DD        │
        │ text      │ raw value            │ raw string as-is             │
        │ unknown   │ raw value            │ (column is read-only)        │
        │ currency  │ $1234.50             │ number rounded to 2 places   │
        │ decimal2  │ 0.93                 │ number rounded to 2 places   │
        │ choice    │ raw value            │ one of the options, on pick  │
        │ other     │ falls back to text   │                              │
        └───────────┴──────────────────────┴──────────────────────────────┘

Tags:
    columns, formatting, coercion, cell-editor, state-machine, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from gridspine.core.errors import CoercionError, InvalidTransitionError
from gridspine.core.logging import get_logger
from gridspine.core.result import Err, Ok, Result
from gridspine.core.settings import GridSettings, get_settings
from gridspine.core.timestamps import parse_calendar_date
from gridspine.engine.types import CellMode, ColumnDefinition, SemanticType

logger = get_logger(__name__)

R = TypeVar("R")

Formatter = Callable[[Any], str]
Coercer = Callable[[Any, Any], Result[Any]]

_TRUE_WORDS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "n", "0", "off"})


# =============================================================================
# CELL EDITOR STATE MACHINE
# =============================================================================


class CellEditor(Generic[R]):
    """
    Local editing state of one cell.

    Transitions::

        VIEWING ──activate()──► EDITING ──commit()──► VIEWING
                                   │
                                   └────cancel()────► VIEWING

    Toggle editors (boolean columns) never enter EDITING: ``toggle()``
    commits ``not value`` straight away. Choice editors behave the same way
    through ``choose(option)``, one of ``options``.

    ``on_commit`` receives the draft and returns an outcome (typically a
    ``CommitResult``). When ``settle`` is given it maps that outcome to the
    value the cell shows afterwards; otherwise the cell shows the draft.
    """

    def __init__(
        self,
        current: Any,
        on_commit: Callable[[Any], R],
        *,
        toggle_only: bool = False,
        options: tuple[str, ...] = (),
        settle: Callable[[R], Any] | None = None,
    ):
        self.value = current
        self.draft: Any = None
        self.mode = CellMode.VIEWING
        self.toggle_only = toggle_only
        self.options = options
        self.last_outcome: R | None = None
        self._on_commit = on_commit
        self._settle = settle

    @property
    def editing(self) -> bool:
        return self.mode is CellMode.EDITING

    def activate(self) -> None:
        if self.toggle_only:
            raise InvalidTransitionError("Toggle cells commit on click and have no edit mode")
        if self.options:
            raise InvalidTransitionError("Choice cells commit on selection and have no edit mode")
        self._require(CellMode.VIEWING, "activate")
        self.mode = CellMode.EDITING
        self.draft = self.value

    def update(self, raw: Any) -> None:
        self._require(CellMode.EDITING, "update")
        self.draft = raw

    def commit(self) -> R:
        """Blur: hand the draft to ``on_commit`` and return to VIEWING."""
        self._require(CellMode.EDITING, "commit")
        draft = self.draft
        self.mode = CellMode.VIEWING
        self.draft = None
        return self._finish(draft)

    def cancel(self) -> None:
        self._require(CellMode.EDITING, "cancel")
        self.mode = CellMode.VIEWING
        self.draft = None

    def toggle(self) -> R:
        if not self.toggle_only:
            raise InvalidTransitionError("Only boolean cells can be toggled")
        return self._finish(not bool(self.value))

    def choose(self, option: str) -> R:
        """Select one of ``options``; commits immediately."""
        if not self.options:
            raise InvalidTransitionError("Only choice cells offer options")
        self._require(CellMode.VIEWING, "choose")
        return self._finish(option)

    def _finish(self, submitted: Any) -> R:
        outcome = self._on_commit(submitted)
        self.last_outcome = outcome
        self.value = self._settle(outcome) if self._settle else submitted
        return outcome

    def _require(self, mode: CellMode, action: str) -> None:
        if self.mode is not mode:
            raise InvalidTransitionError(
                f"Cannot {action} while {self.mode.value}",
            )

    def __repr__(self) -> str:
        return f"CellEditor(value={self.value!r}, mode={self.mode.value})"


@dataclass(frozen=True)
class ColumnBehavior:
    """Formatter and editor pair for one semantic type or named column style."""

    name: str
    format: Formatter
    coerce: Coercer
    toggle_only: bool = False
    options: tuple[str, ...] = ()

    def edit(
        self,
        current: Any,
        on_commit: Callable[[Any], R],
        *,
        settle: Callable[[R], Any] | None = None,
    ) -> CellEditor[R]:
        return CellEditor(
            current,
            on_commit,
            toggle_only=self.toggle_only,
            options=self.options,
            settle=settle,
        )


# =============================================================================
# FORMATTERS
# =============================================================================


def _swap_separators(text: str, thousands: str, decimal: str) -> str:
    if thousands == "," and decimal == ".":
        return text
    return text.replace(",", "\0").replace(".", decimal).replace("\0", thousands)


def format_number(value: Any, *, thousands: str = ",", decimal: str = ".") -> str:
    """Grouped number display; floats keep at most three fraction digits."""
    if value is None or value == "":
        return ""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        parsed = parse_number(value, thousands=thousands, decimal=decimal)
        if parsed is None:
            return str(value)
        value = parsed
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        text = f"{value:,}"
    else:
        text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return _swap_separators(text, thousands, decimal)


def format_boolean(value: Any, *, true_label: str = "✔️", false_label: str = "❌") -> str:
    return true_label if value else false_label


def format_date(value: Any, *, pattern: str = "%m/%d/%Y") -> str:
    if value is None or value == "":
        return ""
    parsed = parse_calendar_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(pattern)


def format_text(value: Any) -> str:
    return "" if value is None else str(value)


# =============================================================================
# COERCERS
# =============================================================================


def _strip_grouping(text: str, thousands: str, decimal: str) -> str | None:
    """Drop separators that sit between three-digit groups; None if misplaced."""
    whole, mark, fraction = text.partition(decimal)
    sign = whole[:1] if whole[:1] in ("+", "-") else ""
    digits = whole[len(sign):]
    if not re.fullmatch(rf"\d{{1,3}}(?:{re.escape(thousands)}\d{{3}})+", digits):
        return None
    return sign + digits.replace(thousands, "") + mark + fraction


def parse_number(raw: Any, *, thousands: str = ",", decimal: str = ".") -> int | float | None:
    """Parse user input as a finite number, or return None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        number = raw if isinstance(raw, int) else float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if thousands and thousands in text:
            text = _strip_grouping(text, thousands, decimal)
            if text is None:
                return None
        if decimal != ".":
            text = text.replace(decimal, ".")
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def _coerce_number(thousands: str, decimal: str) -> Coercer:
    def coerce(raw: Any, previous: Any) -> Result[Any]:
        number = parse_number(raw, thousands=thousands, decimal=decimal)
        if number is None:
            return Err(CoercionError(
                f"Not a number: {raw!r}",
                value=raw,
                target_type=SemanticType.NUMBER.value,
            ))
        return Ok(number)

    return coerce


def coerce_boolean(raw: Any, previous: Any) -> Result[Any]:
    if isinstance(raw, bool):
        return Ok(raw)
    if isinstance(raw, int) and raw in (0, 1):
        return Ok(bool(raw))
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return Ok(True)
        if word in _FALSE_WORDS:
            return Ok(False)
    return Err(CoercionError(
        f"Not a boolean: {raw!r}",
        value=raw,
        target_type=SemanticType.BOOLEAN.value,
    ))


def coerce_date(raw: Any, previous: Any, *, pattern: str | None = None) -> Result[Any]:
    """ISO input, or input in the display ``pattern``, as ``YYYY-MM-DD``."""
    parsed = parse_calendar_date(raw)
    if parsed is None and pattern and isinstance(raw, str):
        try:
            parsed = datetime.strptime(raw.strip(), pattern).date()
        except ValueError:
            parsed = None
    if parsed is None:
        return Err(CoercionError(
            f"Not a calendar date: {raw!r}",
            value=raw,
            target_type=SemanticType.DATE.value,
        ))
    return Ok(parsed.isoformat())


def coerce_text(raw: Any, previous: Any) -> Result[Any]:
    if raw is None:
        return Ok("")
    return Ok(raw if isinstance(raw, str) else str(raw))


# =============================================================================
# NAMED COLUMN STYLES
# =============================================================================


def fixed_point_behavior(
    name: str,
    places: int = 2,
    *,
    prefix: str = "",
    thousands: str = ",",
    decimal: str = ".",
) -> ColumnBehavior:
    """
    Numbers shown with exactly ``places`` fraction digits.

    Commits are rounded to ``places``; ``prefix`` is a unit such as ``$``.

    Examples:
        >>> currency = fixed_point_behavior("currency", 2, prefix="$")
        >>> currency.format(1234.5)
        '$1234.50'
        >>> currency.format(-3)
        '-$3.00'
    """
    def fmt(value: Any) -> str:
        if value is None or value == "":
            return ""
        number = value
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            number = parse_number(value, thousands=thousands, decimal=decimal)
            if number is None:
                return str(value)
        text = f"{abs(number):.{places}f}"
        sign = "-" if number < 0 and float(text) != 0 else ""
        return f"{sign}{prefix}{text.replace('.', decimal)}"

    parse = _coerce_number(thousands, decimal)

    def coerce(raw: Any, previous: Any) -> Result[Any]:
        return parse(raw, previous).map(lambda number: round(float(number), places))

    return ColumnBehavior(name, fmt, coerce)


def choice_behavior(name: str, options: Sequence[str]) -> ColumnBehavior:
    """
    A column restricted to ``options``, edited by picking one.

    Examples:
        >>> status = choice_behavior("status", ["open", "closed"])
        >>> status.coerce("closed", "open").unwrap()
        'closed'
        >>> status.coerce("archived", "open").is_err()
        True
    """
    allowed = tuple(options)

    def coerce(raw: Any, previous: Any) -> Result[Any]:
        value = raw.strip() if isinstance(raw, str) else raw
        if value in allowed:
            return Ok(value)
        return Err(CoercionError(
            f"Not one of {', '.join(allowed)}: {raw!r}",
            value=raw,
            target_type=name,
        ))

    return ColumnBehavior(name, format_text, coerce, options=allowed)


# =============================================================================
# REGISTRY
# =============================================================================


class ColumnRegistry:
    """
    Maps semantic types, and named column styles, to column behaviors.

    Display conventions come from :class:`GridSettings`. Unregistered types
    resolve to the text behavior rather than failing. Besides the semantic
    types, ``currency`` (``$1234.50``) and ``decimal2`` (``0.93``) are
    registered; a column opts in through ``ColumnOverride(behavior=...)``.

    Examples:
        >>> registry = ColumnRegistry()
        >>> registry.resolve(SemanticType.NUMBER).format(1234567.5)
        '1,234,567.5'
        >>> registry.resolve("currency").format(1234.5)
        '$1234.50'
        >>> registry.resolve("percent").name
        'text'
    """

    def __init__(self, settings: GridSettings | None = None):
        self.settings = settings or get_settings()
        self._behaviors: dict[str, ColumnBehavior] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        s = self.settings
        text = ColumnBehavior("text", format_text, coerce_text)
        self.register(SemanticType.TEXT, text)
        self.register(SemanticType.UNKNOWN, text)
        self.register(SemanticType.NUMBER, ColumnBehavior(
            "number",
            lambda v: format_number(v, thousands=s.thousands_separator, decimal=s.decimal_separator),
            _coerce_number(s.thousands_separator, s.decimal_separator),
        ))
        self.register(SemanticType.BOOLEAN, ColumnBehavior(
            "boolean",
            lambda v: format_boolean(v, true_label=s.true_label, false_label=s.false_label),
            coerce_boolean,
            toggle_only=True,
        ))
        self.register(SemanticType.DATE, ColumnBehavior(
            "date",
            lambda v: format_date(v, pattern=s.date_format),
            lambda raw, previous: coerce_date(raw, previous, pattern=s.date_format),
        ))
        separators = {"thousands": s.thousands_separator, "decimal": s.decimal_separator}
        self.register("currency", fixed_point_behavior("currency", 2, prefix="$", **separators))
        self.register("decimal2", fixed_point_behavior("decimal2", 2, **separators))

    def register(self, semantic_type: SemanticType | str, behavior: ColumnBehavior) -> None:
        """Register (or replace) the behavior for a semantic type."""
        key = _type_key(semantic_type)
        self._behaviors[key] = behavior
        logger.debug("column_behavior_registered", semantic_type=key, behavior=behavior.name)

    def resolve(self, semantic_type: SemanticType | str) -> ColumnBehavior:
        """Behavior for ``semantic_type``; text behavior if unregistered."""
        key = _type_key(semantic_type)
        behavior = self._behaviors.get(key)
        if behavior is None:
            return self._behaviors[SemanticType.TEXT.value]
        return behavior

    def for_column(self, column: ColumnDefinition) -> ColumnBehavior:
        """The column's named behavior when registered, else its type's."""
        if column.behavior is not None:
            behavior = self._behaviors.get(column.behavior)
            if behavior is not None:
                return behavior
            logger.warning("column_behavior_missing", field=column.field, behavior=column.behavior)
        return self.resolve(column.semantic_type)

    def registered(self) -> list[str]:
        return sorted(self._behaviors)


def _type_key(semantic_type: SemanticType | str) -> str:
    if isinstance(semantic_type, SemanticType):
        return semantic_type.value
    return str(semantic_type)


__all__ = [
    "CellEditor",
    "ColumnBehavior",
    "ColumnRegistry",
    "format_number",
    "format_boolean",
    "format_date",
    "format_text",
    "parse_number",
    "coerce_boolean",
    "coerce_date",
    "coerce_text",
    "fixed_point_behavior",
    "choice_behavior",
]
