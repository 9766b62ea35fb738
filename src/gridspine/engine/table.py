"""
TableEngine: one dataset wired through inference, grouping and editing.

The facade owns the five components for a single dataset and exposes what
the presentation layer consumes: column definitions, grouped render output,
group toggles, cell editors and edit submission.

Examples:
    >>> from gridspine.engine.grouping import by_field
    >>> engine = TableEngine(
    ...     [{"id": 1, "name": "Ann", "age": 30}, {"id": 2, "name": "Bob", "age": 41}],
    ...     key_fn=by_field("name"),
    ... )
    >>> engine.toggle("Ann")["Ann"].value
    'expanded'
    >>> [(g.key, g.count, [r.cells for r in g.rows]) for g in engine.render()]
    [('Ann', 1, [('1', 'Ann', '30')]), ('Bob', 1, [])]
    >>> engine.submit(1, "age", "31").status
    'committed'
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from gridspine.core.logging import LogContext, get_logger
from gridspine.core.settings import GridSettings, get_settings
from gridspine.engine.columns import CellEditor, ColumnRegistry
from gridspine.engine.edits import CommitResult, EditEventSink, EditPipeline
from gridspine.engine.grouping import GroupingEngine
from gridspine.engine.schema import SchemaCache, SchemaInferencer, column_for
from gridspine.engine.store import RowStore
from gridspine.engine.types import (
    ColumnDefinition,
    ColumnOverride,
    ExpandState,
    Group,
    KeyFn,
    Record,
    SemanticType,
)

logger = get_logger(__name__)

ALL_ROWS = "All"


def single_group(record: Record) -> str:
    """Key function putting every row in one group."""
    return ALL_ROWS


@dataclass(frozen=True, slots=True)
class RowView:
    """Formatted cells of one visible row, in column order."""

    row_id: Any
    cells: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class GroupView:
    """Render output of one group; collapsed groups carry no rows."""

    key: str
    state: ExpandState
    count: int
    rows: tuple[RowView, ...]

    @property
    def expanded(self) -> bool:
        return self.state is ExpandState.EXPANDED


class TableEngine:
    """Tabular data engine for one dataset.

    Args:
        records: Initial collection
        key_fn: Group key function (defaults to a single "All" group)
        key_field: Row identity field (defaults to settings, then auto)
        overrides: Per-field column overrides
        registry: Column behavior registry (defaults from settings)
        sink: Receiver of committed EditEvents
        settings: Display and identity settings
        name: Dataset name bound into log records
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]] = (),
        *,
        key_fn: KeyFn = single_group,
        key_field: str | None = None,
        overrides: Mapping[str, ColumnOverride] | None = None,
        registry: ColumnRegistry | None = None,
        sink: EditEventSink | None = None,
        settings: GridSettings | None = None,
        name: str = "table",
    ):
        self.settings = settings or get_settings()
        self.name = name
        self.key_fn = key_fn
        self.registry = registry or ColumnRegistry(self.settings)
        self.store = RowStore(key_field=key_field or self.settings.row_key_field)
        self.grouping = GroupingEngine(
            ExpandState.EXPANDED if self.settings.default_expanded else ExpandState.COLLAPSED
        )
        self._schema = SchemaCache(SchemaInferencer(overrides=overrides))
        self._columns: tuple[ColumnDefinition, ...] = ()
        self.edits = EditPipeline(self.store, (), self.registry, sink)
        self.load(records)

    # ── Data ─────────────────────────────────────────────────────

    def load(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Replace the dataset; schema is re-inferred only on shape change."""
        with LogContext(dataset=self.name):
            self.store.load(records)
            inferencer = self._schema.inferencer
            if inferencer.key_field != self.store.key_field:
                inferencer.key_field = self.store.key_field
                self._schema.invalidate()
            self._columns = self._schema.columns_for(self.store.current())
            self.edits.set_columns(self._columns)

    def rows(self) -> tuple[Record, ...]:
        return self.store.current()

    @property
    def columns(self) -> tuple[ColumnDefinition, ...]:
        return self._columns

    def columns_for(self, record: Record) -> tuple[ColumnDefinition, ...]:
        """
        Columns covering ``record``: the inferred schema plus read-only
        ``unknown`` columns for fields the sample did not have.
        """
        columns = self.columns
        known = {c.field for c in columns}
        drifted = [name for name in record if name not in known]
        if not drifted:
            return columns
        logger.warning("schema_drift_detected", dataset=self.name, fields=drifted)
        return columns + tuple(column_for(name, SemanticType.UNKNOWN) for name in drifted)

    # ── Groups ───────────────────────────────────────────────────

    def set_grouping(self, key_fn: KeyFn) -> None:
        self.key_fn = key_fn

    def groups(self) -> tuple[Group, ...]:
        return self.grouping.partition(self.store.current(), self.key_fn)

    def toggle(self, key: str) -> Mapping[str, ExpandState]:
        with LogContext(dataset=self.name):
            return self.grouping.toggle(key)

    def render(self) -> tuple[GroupView, ...]:
        """Grouped, formatted output for the presentation layer."""
        columns = self.columns
        behaviors = [self.registry.for_column(c) for c in columns]
        views = []
        for group in self.groups():
            rows: tuple[RowView, ...] = ()
            if group.expanded:
                rows = tuple(
                    RowView(
                        row_id=self.store.row_id(record),
                        cells=tuple(
                            behavior.format(record[c.field]) if c.field in record else ""
                            for c, behavior in zip(columns, behaviors)
                        ),
                    )
                    for record in group.rows
                )
            views.append(GroupView(group.key, group.state, len(group), rows))
        return tuple(views)

    # ── Edits ────────────────────────────────────────────────────

    def submit(self, row_id: Hashable, field: str, raw: Any) -> CommitResult:
        with LogContext(dataset=self.name):
            return self.edits.submit(row_id, field, raw)

    def editor(self, row_id: Hashable, field: str) -> CellEditor[CommitResult]:
        return self.edits.editor(row_id, field)
