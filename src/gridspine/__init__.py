"""gridspine -- a tabular data engine.

Infers column schema from sample records, dispatches per-column formatting
and editing by semantic type, groups rows with sticky expand/collapse state,
and commits cell edits into copy-on-write row snapshots.

Quick start::

    from gridspine import TableEngine, InMemoryEditSink, date_bucket

    sink = InMemoryEditSink()
    engine = TableEngine(records, key_fn=date_bucket("joined"), sink=sink)
    engine.toggle("Today")
    for group in engine.render():
        ...
    engine.submit(1, "age", "31")
"""

from gridspine.engine import (
    CallbackEditSink,
    Committed,
    CommitResult,
    EditEvent,
    InMemoryEditSink,
    NotFound,
    Rejected,
    SemanticType,
    TableEngine,
    by_field,
    date_bucket,
)

__version__ = "0.1.0"

__all__ = [
    "CallbackEditSink",
    "Committed",
    "CommitResult",
    "EditEvent",
    "InMemoryEditSink",
    "NotFound",
    "Rejected",
    "SemanticType",
    "TableEngine",
    "by_field",
    "date_bucket",
    "__version__",
]
