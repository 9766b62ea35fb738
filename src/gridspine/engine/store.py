"""
Copy-on-write row store.

``RowStore`` owns the canonical snapshot of a dataset: a tuple of read-only
records. A commit never touches an existing record or tuple. It builds one
new record with the single field replaced and one new tuple in which only
that row's reference differs, so downstream code can detect changes by
identity (``old_row is new_row``) and any previously returned snapshot stays
valid forever.

Manifesto:
    - **Immutable snapshots:** Readers never observe a half-applied edit
    - **Structural sharing:** Unchanged rows are reused, not copied
    - **Errors as values:** A missing row is ``Err(RowNotFoundError)``, not a
      crash in the middle of a render callback
    - **Last write wins:** Commits apply in call order with no merging

Architecture:
    ::

        snapshot v1: (r0, r1, r2)
                           │ commit(id(r1), "age", 31)
                           ▼
        snapshot v2: (r0, r1', r2)     r0, r2 shared; r1' is a new record

Examples:
    >>> store = RowStore([{"id": 1, "age": 30}, {"id": 2, "age": 40}])
    >>> before = store.current()
    >>> store.commit(1, "age", 31).is_ok()
    True
    >>> before[0]["age"], store.current()[0]["age"]
    (30, 31)
    >>> before[1] is store.current()[1]
    True

Tags:
    row-store, copy-on-write, immutability, structural-sharing, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from gridspine.core.errors import (
    DuplicateRowKeyError,
    MissingRowKeyError,
    RowKeyError,
    RowNotFoundError,
    UnknownFieldError,
)
from gridspine.core.logging import get_logger
from gridspine.core.result import Err, Ok, Result
from gridspine.engine.types import Record

logger = get_logger(__name__)

Snapshot = tuple[Record, ...]


def resolve_row_key(sample: Mapping[str, Any] | None, configured: str | None = None) -> str | None:
    """
    Pick the row identity field.

    An explicitly configured field wins, then an ``id`` field, then the
    first field of the sample. An empty sample has no key.
    """
    if configured:
        return configured
    if not sample:
        return None
    if "id" in sample:
        return "id"
    return next(iter(sample))


def freeze_record(record: Mapping[str, Any]) -> Record:
    """Read-only view over a private copy of ``record``."""
    return MappingProxyType(dict(record))


class RowStore:
    """Holds the current snapshot and applies single-field commits.

    Args:
        records: Initial records (copied and frozen); None leaves the store
            empty without a load
        key_field: Row identity field; auto-detected when omitted
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]] | None = None,
        *,
        key_field: str | None = None,
    ):
        self._configured_key = key_field
        self.key_field: str | None = None
        self._rows: Snapshot = ()
        self._index: dict[Hashable, int] = {}
        self.version = 0
        if records is not None:
            self.load(records)

    def load(self, records: Iterable[Mapping[str, Any]]) -> Snapshot:
        """
        Replace the whole collection.

        Raises:
            MissingRowKeyError: a record lacks the key field
            DuplicateRowKeyError: two records share an identity
        """
        rows = tuple(freeze_record(r) for r in records)
        key_field = resolve_row_key(rows[0] if rows else None, self._configured_key)
        index: dict[Hashable, int] = {}
        for position, row in enumerate(rows):
            if key_field not in row:
                raise MissingRowKeyError(key_field, position)
            row_id = row[key_field]
            if not isinstance(row_id, Hashable):
                raise RowKeyError(f"Row identity at position {position} is not hashable: {row_id!r}")
            if row_id in index:
                raise DuplicateRowKeyError(key_field, row_id)
            index[row_id] = position

        self.key_field = key_field
        self._rows = rows
        self._index = index
        self.version += 1
        logger.info("rows_loaded", rows=len(rows), key_field=key_field, version=self.version)
        return rows

    def current(self) -> Snapshot:
        return self._rows

    def get(self, row_id: Hashable) -> Record | None:
        position = self._position(row_id)
        return None if position is None else self._rows[position]

    def _position(self, row_id: Hashable) -> int | None:
        try:
            return self._index.get(row_id)
        except TypeError:
            # unhashable identities never match a loaded row
            return None

    def row_id(self, record: Record) -> Any:
        """Identity of ``record`` under the store's key field."""
        return record[self.key_field] if self.key_field else None

    def __contains__(self, row_id: Hashable) -> bool:
        return row_id in self._index

    def __len__(self) -> int:
        return len(self._rows)

    def commit(self, row_id: Hashable, field: str, value: Any) -> Result[Snapshot]:
        """
        Replace one field of one row.

        Returns:
            ``Ok(new_snapshot)``; ``Err(RowNotFoundError)`` when the identity is
            absent; ``Err(UnknownFieldError)`` when the row has no such field.
            On ``Err`` the store is unchanged.
        """
        position = self._position(row_id)
        if position is None:
            logger.warning("commit_row_not_found", row_id=row_id, field=field)
            return Err(RowNotFoundError(row_id))

        old = self._rows[position]
        if field not in old:
            logger.warning("commit_unknown_field", row_id=row_id, field=field)
            return Err(UnknownFieldError(row_id, field))
        if field == self.key_field and value != row_id:
            logger.warning("commit_key_change_refused", row_id=row_id, field=field)
            return Err(RowKeyError(f"Row identity field {field!r} is immutable"))

        updated = dict(old)
        updated[field] = value
        rows = self._rows[:position] + (freeze_record(updated),) + self._rows[position + 1:]

        self._rows = rows
        self.version += 1
        logger.debug("row_committed", row_id=row_id, field=field, version=self.version)
        return Ok(rows)


__all__ = ["Snapshot", "RowStore", "resolve_row_key", "freeze_record"]
