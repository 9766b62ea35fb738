"""gridspine engine -- schema inference, column behaviors, row store,
grouping and the edit pipeline.

Architecture::

    types.py     SemanticType, ColumnDefinition, Group, ExpandState, CellMode
    schema.py    SchemaInferencer + SchemaCache (shape-keyed)
    columns.py   ColumnRegistry, formatters, coercers, CellEditor
    store.py     RowStore (copy-on-write snapshots)
    grouping.py  GroupingEngine + key functions (date_bucket, by_field)
    edits.py     EditPipeline, CommitResult variants, EditEvent sinks
    table.py     TableEngine facade and render views
"""

from gridspine.engine.columns import CellEditor, ColumnBehavior, ColumnRegistry
from gridspine.engine.edits import (
    CallbackEditSink,
    Committed,
    CommitResult,
    EditEvent,
    EditEventSink,
    EditPipeline,
    InMemoryEditSink,
    NotFound,
    Rejected,
)
from gridspine.engine.grouping import DATE_BUCKETS, GroupingEngine, by_field, date_bucket
from gridspine.engine.schema import SchemaCache, SchemaInferencer, shape_of
from gridspine.engine.store import RowStore
from gridspine.engine.table import GroupView, RowView, TableEngine
from gridspine.engine.types import (
    CellMode,
    ColumnDefinition,
    ColumnOverride,
    ExpandState,
    Group,
    Record,
    SemanticType,
)

__all__ = [
    "CellEditor",
    "ColumnBehavior",
    "ColumnRegistry",
    "CallbackEditSink",
    "Committed",
    "CommitResult",
    "EditEvent",
    "EditEventSink",
    "EditPipeline",
    "InMemoryEditSink",
    "NotFound",
    "Rejected",
    "DATE_BUCKETS",
    "GroupingEngine",
    "by_field",
    "date_bucket",
    "SchemaCache",
    "SchemaInferencer",
    "shape_of",
    "RowStore",
    "GroupView",
    "RowView",
    "TableEngine",
    "CellMode",
    "ColumnDefinition",
    "ColumnOverride",
    "ExpandState",
    "Group",
    "Record",
    "SemanticType",
]
