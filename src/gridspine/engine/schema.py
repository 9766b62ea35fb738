"""
Schema inference: derive column definitions from one representative record.

The first record of a collection is taken as representative of all of them.
Each field is classified by the shape of its value, in field order, and
turned into an immutable :class:`ColumnDefinition`.

Manifesto:
    Data arrives as loosely-typed JSON-like records with no declared schema.
    Rather than asking callers to describe every column, the engine looks at
    a sample and picks a behavior per field. Classification must be
    deterministic (same shape, same columns) and must never fail: a value of
    unrecognized shape degrades to an ``unknown`` pass-through column.

Architecture:
    ::

        sample record ──► classify_value() per field ──► ColumnDefinition
                              │
                              │  bool      → BOOLEAN   (before number)
                              │  int/float → NUMBER
                              │  date-like → DATE      (only after the above)
                              │  str       → TEXT
                              │  other     → UNKNOWN   (read-only)
                              ▼
        SchemaCache: keyed by shape_of(sample); re-infers on shape change only

Examples:
    >>> from gridspine.engine.schema import SchemaInferencer
    >>> columns = SchemaInferencer().infer(
    ...     {"id": 1, "name": "Ann", "age": 30, "active": True, "joined": "2024-01-01"}
    ... )
    >>> [(c.field, c.semantic_type.value) for c in columns]
    [('id', 'number'), ('name', 'text'), ('age', 'number'), ('active', 'boolean'), ('joined', 'date')]

Guardrails:
    ❌ DON'T: Treat numeric strings ("20240101") as dates
    ✅ DO: Attempt date detection only after boolean and number checks fail

Tags:
    schema-inference, columns, type-detection, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from gridspine.core.logging import get_logger
from gridspine.core.timestamps import parse_calendar_date
from gridspine.engine.types import ColumnDefinition, ColumnOverride, Record, SemanticType

logger = get_logger(__name__)

Shape = tuple[tuple[str, SemanticType], ...]

_SIZE_HINTS: dict[SemanticType, int] = {
    SemanticType.BOOLEAN: 80,
    SemanticType.NUMBER: 120,
    SemanticType.DATE: 140,
    SemanticType.TEXT: 200,
    SemanticType.UNKNOWN: 160,
}

_FILTER_KINDS: dict[SemanticType, str | None] = {
    SemanticType.TEXT: "text",
    SemanticType.NUMBER: "number",
    SemanticType.DATE: "date",
    SemanticType.BOOLEAN: None,
    SemanticType.UNKNOWN: None,
}


def classify_value(value: Any) -> SemanticType:
    """Classify a single raw value. Never raises."""
    # bool is a subclass of int
    if isinstance(value, bool):
        return SemanticType.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return SemanticType.NUMBER
    if parse_calendar_date(value) is not None:
        return SemanticType.DATE
    if isinstance(value, str):
        return SemanticType.TEXT
    return SemanticType.UNKNOWN


def header_for(field: str) -> str:
    """Display name for a field: first character upper-cased."""
    return field[:1].upper() + field[1:]


def shape_of(record: Record) -> Shape:
    """Hashable signature of a record's shape: ordered (field, type) pairs."""
    return tuple((str(name), classify_value(value)) for name, value in record.items())


def column_for(
    field: str,
    semantic_type: SemanticType,
    *,
    read_only: bool = False,
) -> ColumnDefinition:
    """Build the default column definition for a classified field."""
    return ColumnDefinition(
        field=field,
        header=header_for(field),
        semantic_type=semantic_type,
        editable=not read_only and semantic_type is not SemanticType.UNKNOWN,
        size_hint=_SIZE_HINTS[semantic_type],
        filter_kind=_FILTER_KINDS[semantic_type],
    )


class SchemaInferencer:
    """Derives column definitions from a representative record.

    Args:
        key_field: Row identity field; its column is never editable
        overrides: Per-field adjustments applied after inference
    """

    def __init__(
        self,
        *,
        key_field: str | None = None,
        overrides: Mapping[str, ColumnOverride] | None = None,
    ):
        self.key_field = key_field
        self.overrides = dict(overrides or {})

    def infer(self, sample: Record | None) -> tuple[ColumnDefinition, ...]:
        """Derive one column per field of ``sample``, in field order."""
        if not sample:
            return ()
        return self.from_shape(shape_of(sample))

    def infer_collection(self, records: Sequence[Record]) -> tuple[ColumnDefinition, ...]:
        """Infer from the first record; an empty collection has no columns."""
        if not records:
            return ()
        return self.infer(records[0])

    def from_shape(self, shape: Shape) -> tuple[ColumnDefinition, ...]:
        columns = []
        for field, semantic_type in shape:
            column = column_for(field, semantic_type, read_only=field == self.key_field)
            if field in self.overrides:
                column = column.with_overrides(self.overrides[field])
            columns.append(column)
        logger.debug(
            "schema_inferred",
            columns=len(columns),
            types={c.field: c.semantic_type.value for c in columns},
        )
        return tuple(columns)


class SchemaCache:
    """Keeps the last inferred schema and re-infers only when the shape changes."""

    def __init__(self, inferencer: SchemaInferencer | None = None):
        self.inferencer = inferencer or SchemaInferencer()
        self._shape: Shape | None = None
        self._columns: tuple[ColumnDefinition, ...] = ()

    @property
    def shape(self) -> Shape | None:
        return self._shape

    def columns_for(self, records: Sequence[Record]) -> tuple[ColumnDefinition, ...]:
        """Return definitions for ``records``, re-inferring on shape change."""
        shape = shape_of(records[0]) if records else ()
        if shape != self._shape:
            if self._shape is not None:
                logger.info("schema_shape_changed", fields=[name for name, _ in shape])
            self._shape = shape
            self._columns = self.inferencer.from_shape(shape)
        return self._columns

    def invalidate(self) -> None:
        self._shape = None
        self._columns = ()


__all__ = [
    "Shape",
    "classify_value",
    "header_for",
    "shape_of",
    "column_for",
    "SchemaInferencer",
    "SchemaCache",
]
