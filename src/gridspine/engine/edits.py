"""
Edit pipeline: raw editor input in, committed snapshot and EditEvent out.

Architecture:
    ::

        submit(row_id, field, raw)
            │
            ├─ row absent ─────────────────────────────► NotFound
            ├─ column unknown / read-only ─────────────► Rejected
            ├─ registry.for_column(column).coerce(raw)
            │     └─ Err(CoercionError) ───────────────► Rejected(previous)
            ├─ value unchanged ────────────────────────► Committed(event=None)
            └─ store.commit(row_id, field, value)
                  ├─ Err(RowNotFoundError) ────────────► NotFound
                  ├─ Err(other) ───────────────────────► Rejected(previous)
                  └─ Ok(snapshot) ─► sink.publish(EditEvent) ─► Committed

The sink is the persistence collaborator's inbox. Publishing is
fire-and-forget: the pipeline neither waits for an acknowledgement nor
retries, and a sink that raises is logged and ignored.

Tags:
    edit-pipeline, coercion, commit, edit-events, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from gridspine.core.errors import GridError, RowNotFoundError
from gridspine.core.logging import get_logger
from gridspine.core.result import Err, Ok
from gridspine.core.timestamps import generate_ulid, to_iso8601, utc_now
from gridspine.engine.columns import CellEditor, ColumnRegistry
from gridspine.engine.store import RowStore
from gridspine.engine.types import ColumnDefinition

logger = get_logger(__name__)


# ── Event Model ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EditEvent:
    """One committed cell edit, handed to the persistence collaborator.

    Attributes:
        row_id: Identity of the edited row
        field: Edited field
        previous_value: Value before the commit
        new_value: Coerced value after the commit
        timestamp: When the commit happened (UTC)
        event_id: Unique, time-sortable identifier
    """

    row_id: Any
    field: str
    previous_value: Any
    new_value: Any
    timestamp: datetime = field(default_factory=utc_now)
    event_id: str = field(default_factory=generate_ulid)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "row_id": self.row_id,
            "field": self.field,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "timestamp": to_iso8601(self.timestamp),
        }


# ── Sinks ────────────────────────────────────────────────────────────────


@runtime_checkable
class EditEventSink(Protocol):
    """Receiver of committed edit events."""

    def publish(self, event: EditEvent) -> None:
        ...


class InMemoryEditSink:
    """Collects events in a list; the collaborator drains it."""

    def __init__(self) -> None:
        self.events: list[EditEvent] = []

    def publish(self, event: EditEvent) -> None:
        self.events.append(event)

    def drain(self) -> list[EditEvent]:
        events, self.events = self.events, []
        return events

    def __len__(self) -> int:
        return len(self.events)


class CallbackEditSink:
    """Forwards each event to a plain callable."""

    def __init__(self, callback: Callable[[EditEvent], Any]):
        self._callback = callback

    def publish(self, event: EditEvent) -> None:
        self._callback(event)


# ── Commit results ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Committed:
    """The edit was applied; ``event`` is None when the value was unchanged."""

    row_id: Any
    field: str
    value: Any
    event: EditEvent | None = None

    status = "committed"

    @property
    def settled_value(self) -> Any:
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "row_id": self.row_id,
            "field": self.field,
            "value": self.value,
            "event": self.event.to_dict() if self.event else None,
        }


@dataclass(frozen=True)
class Rejected:
    """The edit was refused; the row keeps ``previous_value``."""

    row_id: Any
    field: str
    previous_value: Any
    reason: str
    error: Exception | None = None

    status = "rejected"

    @property
    def settled_value(self) -> Any:
        return self.previous_value

    def to_dict(self) -> dict[str, Any]:
        result = {
            "status": self.status,
            "row_id": self.row_id,
            "field": self.field,
            "previous_value": self.previous_value,
            "reason": self.reason,
        }
        if isinstance(self.error, GridError):
            result["error"] = self.error.to_dict()
        return result


@dataclass(frozen=True)
class NotFound:
    """No row with ``row_id`` exists in the current snapshot."""

    row_id: Any
    field: str

    status = "not_found"

    @property
    def settled_value(self) -> Any:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "row_id": self.row_id, "field": self.field}


CommitResult = Committed | Rejected | NotFound


# ── Pipeline ─────────────────────────────────────────────────────────────


class EditPipeline:
    """Validates, coerces and commits cell edits.

    Args:
        store: Row store to commit into
        columns: Column definitions of the current schema
        registry: Behavior registry supplying coercion per semantic type
        sink: Receiver of EditEvents (optional)
    """

    def __init__(
        self,
        store: RowStore,
        columns: Iterable[ColumnDefinition],
        registry: ColumnRegistry,
        sink: EditEventSink | None = None,
    ):
        self.store = store
        self.registry = registry
        self.sink = sink
        self._columns: dict[str, ColumnDefinition] = {}
        self.set_columns(columns)

    def set_columns(self, columns: Iterable[ColumnDefinition]) -> None:
        self._columns = {c.field: c for c in columns}

    @property
    def columns(self) -> Mapping[str, ColumnDefinition]:
        return self._columns

    def submit(self, row_id: Hashable, field: str, raw: Any) -> CommitResult:
        """Coerce ``raw`` for ``field`` and commit it to row ``row_id``."""
        row = self.store.get(row_id)
        if row is None:
            logger.info("edit_not_found", row_id=row_id, field=field)
            return NotFound(row_id, field)

        previous = row.get(field)
        column = self._columns.get(field)
        if column is None:
            return self._reject(row_id, field, previous, f"Unknown column {field!r}")
        if not column.editable:
            return self._reject(row_id, field, previous, f"Column {field!r} is read-only")

        behavior = self.registry.for_column(column)
        match behavior.coerce(raw, previous):
            case Err(error):
                if isinstance(error, GridError):
                    error.with_context(row_id=row_id, field=field)
                return self._reject(row_id, field, previous, str(error), error)
            case Ok(value):
                pass

        if _same_value(value, previous):
            return Committed(row_id, field, value)

        match self.store.commit(row_id, field, value):
            case Err(RowNotFoundError()):
                return NotFound(row_id, field)
            case Err(error):
                return self._reject(row_id, field, previous, str(error), error)

        event = EditEvent(row_id=row_id, field=field, previous_value=previous, new_value=value)
        logger.info(
            "edit_committed",
            row_id=row_id,
            field=field,
            event_id=event.event_id,
            version=self.store.version,
        )
        self._publish(event)
        return Committed(row_id, field, value, event)

    def editor(self, row_id: Hashable, field: str) -> CellEditor[CommitResult]:
        """Cell editor for one cell, wired to :meth:`submit`."""
        row = self.store.get(row_id)
        current = row.get(field) if row is not None else None
        column = self._columns.get(field)
        behavior = self.registry.for_column(column) if column else self.registry.resolve("text")
        return behavior.edit(
            current,
            lambda raw: self.submit(row_id, field, raw),
            settle=lambda result: result.settled_value,
        )

    def _reject(
        self,
        row_id: Any,
        field: str,
        previous: Any,
        reason: str,
        error: Exception | None = None,
    ) -> Rejected:
        logger.info("edit_rejected", row_id=row_id, field=field, reason=reason)
        return Rejected(row_id, field, previous, reason, error)

    def _publish(self, event: EditEvent) -> None:
        if self.sink is None:
            return
        try:
            self.sink.publish(event)
        except Exception as e:
            logger.warning(
                "edit_sink_failed",
                event_id=event.event_id,
                row_id=event.row_id,
                field=event.field,
                error=str(e),
            )


def _same_value(a: Any, b: Any) -> bool:
    # True == 1 in Python; a bool replacing a number is still a change
    return type(a) is type(b) and a == b


__all__ = [
    "EditEvent",
    "EditEventSink",
    "InMemoryEditSink",
    "CallbackEditSink",
    "Committed",
    "Rejected",
    "NotFound",
    "CommitResult",
    "EditPipeline",
]
