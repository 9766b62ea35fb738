"""
Shared value types of the table engine.

Everything here is immutable: ``ColumnDefinition`` and ``Group`` are frozen
dataclasses, ``Record`` is a read-only mapping, and the enums are closed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

Record = Mapping[str, Any]
"""One row: an ordered, read-only mapping from field name to scalar value."""

KeyFn = Callable[[Record], str]
"""Pure, total function deriving a group key from a record."""


class SemanticType(str, Enum):
    """
    Inferred logical category of a field's values.

    Closed set with an explicit ``UNKNOWN`` arm for values of unrecognized
    shape; anything the registry has no behavior for renders as text.
    """

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    UNKNOWN = "unknown"


class ExpandState(str, Enum):
    """Expand/collapse state of a group."""

    COLLAPSED = "collapsed"
    EXPANDED = "expanded"

    def flipped(self) -> ExpandState:
        if self is ExpandState.COLLAPSED:
            return ExpandState.EXPANDED
        return ExpandState.COLLAPSED


class CellMode(str, Enum):
    """Local state of one editable cell: click to edit, commit on blur."""

    VIEWING = "viewing"
    EDITING = "editing"


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """
    Derived description of one column.

    Attributes:
        field: Record field the column reads
        header: Display name
        semantic_type: Inferred type driving format/edit dispatch
        editable: Whether the column accepts edits
        size_hint: Suggested width in pixels
        filter_kind: Filter family the presentation layer may offer
        behavior: Registered behavior name used instead of the semantic
            type's (e.g. ``"currency"``)
    """

    field: str
    header: str
    semantic_type: SemanticType
    editable: bool = True
    size_hint: int = 200
    filter_kind: str | None = None
    behavior: str | None = None

    def with_overrides(self, override: ColumnOverride) -> ColumnDefinition:
        changes = {
            name: value
            for name, value in (
                ("header", override.header),
                ("editable", override.editable),
                ("size_hint", override.size_hint),
                ("behavior", override.behavior),
            )
            if value is not None
        }
        return replace(self, **changes) if changes else self


@dataclass(frozen=True, slots=True)
class ColumnOverride:
    """Caller-supplied adjustments applied on top of an inferred column."""

    header: str | None = None
    editable: bool | None = None
    size_hint: int | None = None
    behavior: str | None = None


@dataclass(frozen=True, slots=True)
class Group:
    """Rows sharing one derived group key, in input order."""

    key: str
    rows: tuple[Record, ...]
    state: ExpandState = ExpandState.COLLAPSED

    @property
    def expanded(self) -> bool:
        return self.state is ExpandState.EXPANDED

    def __len__(self) -> int:
        return len(self.rows)


__all__ = [
    "Record",
    "KeyFn",
    "SemanticType",
    "ExpandState",
    "CellMode",
    "ColumnDefinition",
    "ColumnOverride",
    "Group",
]
