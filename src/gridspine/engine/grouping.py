"""
Row grouping and expand/collapse state.

``GroupingEngine.partition`` splits a snapshot into groups using a caller
supplied key function and attaches the remembered expand state of each
group. Groups are recomputed from scratch on every call; only the expand
state survives between calls.

Manifesto:
    A grouped table is a view, not a data structure. Keeping groups as
    derived data means an edit that moves a row from "This Week" to "Today"
    needs no bookkeeping: the next partition simply puts it there. What the
    user did (expanding a group) is state and must outlive the recompute.

    - **Partition, not cover:** every row lands in exactly one group
    - **Stable ordering:** groups in first-seen order, rows in input order
    - **Sticky state:** expand state is keyed by group key, not group object
    - **Pruned when empty:** a key that loses its last row forgets its state

Architecture:
    ::

        snapshot ──► key_fn(row) per row ──► {key: [rows]} (first-seen order)
                                                 │
                          _states[key] ──────────┤
                                                 ▼
                                  (Group(key, rows, state), ...)

        toggle("Today")      flips one key, others untouched
        toggle("Absent")     remembered until "Absent" shows up

Examples:
    >>> engine = GroupingEngine()
    >>> groups = engine.partition(
    ...     [{"id": 1, "team": "a"}, {"id": 2, "team": "b"}, {"id": 3, "team": "a"}],
    ...     by_field("team"),
    ... )
    >>> [(g.key, len(g)) for g in groups]
    [('a', 2), ('b', 1)]
    >>> engine.toggle("a")["a"]
    <ExpandState.EXPANDED: 'expanded'>

Tags:
    grouping, partition, expand-collapse, date-buckets, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from types import MappingProxyType

from gridspine.core.errors import GroupKeyError
from gridspine.core.logging import get_logger
from gridspine.core.timestamps import parse_calendar_date
from gridspine.engine.types import ExpandState, Group, KeyFn, Record

logger = get_logger(__name__)

PAST_DUE = "Past Due"
TODAY = "Today"
THIS_WEEK = "This Week"
NEXT_WEEK = "Next Week"
THIS_MONTH = "This Month"
NEXT_MONTH = "Next Month"
LATER = "Later"

DATE_BUCKETS: tuple[str, ...] = (
    PAST_DUE,
    TODAY,
    THIS_WEEK,
    NEXT_WEEK,
    THIS_MONTH,
    NEXT_MONTH,
    LATER,
)


# =============================================================================
# KEY FUNCTIONS
# =============================================================================


def bucket_for_date(target: date, today: date) -> str:
    """
    Temporal-proximity bucket of ``target`` relative to ``today``.

    Both sides are calendar days, so the time of day never matters: anything
    on ``today`` is "Today", anything strictly before it is "Past Due". The
    remaining rules apply in priority order, first match wins.
    """
    delta = (target - today).days
    if delta < 0:
        return PAST_DUE
    if delta == 0:
        return TODAY
    if delta <= 7:
        return THIS_WEEK
    if delta <= 14:
        return NEXT_WEEK
    if (target.year, target.month) == (today.year, today.month):
        return THIS_MONTH
    next_year, next_month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    if (target.year, target.month) == (next_year, next_month):
        return NEXT_MONTH
    return LATER


def date_bucket(field: str, today: date | datetime | None = None) -> KeyFn:
    """
    Key function bucketing ``record[field]`` into :data:`DATE_BUCKETS`.

    With ``today`` omitted the current local date is read on every call.
    Missing or unparseable dates fall into "Later".
    """
    pinned = today.date() if isinstance(today, datetime) else today

    def key_fn(record: Record) -> str:
        target = parse_calendar_date(record.get(field))
        if target is None:
            return LATER
        return bucket_for_date(target, pinned or date.today())

    return key_fn


def by_field(field: str, missing: str = "(blank)") -> KeyFn:
    """Key function grouping by the stringified value of ``record[field]``."""

    def key_fn(record: Record) -> str:
        value = record.get(field)
        if value is None or value == "":
            return missing
        return str(value)

    return key_fn


# =============================================================================
# ENGINE
# =============================================================================


class GroupingEngine:
    """Partitions snapshots into groups and owns per-key expand state.

    Args:
        default_state: State of a key that has never been toggled
    """

    def __init__(self, default_state: ExpandState = ExpandState.COLLAPSED):
        self.default_state = default_state
        self._states: dict[str, ExpandState] = {}
        self._present: frozenset[str] = frozenset()

    def partition(self, collection: Iterable[Record], key_fn: KeyFn) -> tuple[Group, ...]:
        """Group ``collection`` by ``key_fn`` in first-seen key order."""
        buckets: dict[str, list[Record]] = {}
        for record in collection:
            buckets.setdefault(self._key(key_fn, record), []).append(record)

        present = frozenset(buckets)
        for key in self._present - present:
            if self._states.pop(key, None) is not None:
                logger.debug("group_state_discarded", key=key)
        self._present = present

        return tuple(
            Group(key=key, rows=tuple(rows), state=self.state_of(key))
            for key, rows in buckets.items()
        )

    def state_of(self, key: str) -> ExpandState:
        return self._states.get(key, self.default_state)

    def toggle(self, key: str) -> Mapping[str, ExpandState]:
        """Flip one group's state; returns the updated state mapping."""
        new_state = self.state_of(key).flipped()
        self._states[key] = new_state
        logger.debug("group_toggled", key=key, state=new_state.value, present=key in self._present)
        return self.states

    def expand_all(self) -> Mapping[str, ExpandState]:
        return self._set_all(ExpandState.EXPANDED)

    def collapse_all(self) -> Mapping[str, ExpandState]:
        return self._set_all(ExpandState.COLLAPSED)

    def reset(self) -> None:
        """Forget all expand state."""
        self._states.clear()

    @property
    def states(self) -> Mapping[str, ExpandState]:
        """Read-only view: every present key plus remembered absent keys."""
        merged = {key: self.state_of(key) for key in self._present}
        merged.update(self._states)
        return MappingProxyType(merged)

    def _set_all(self, state: ExpandState) -> Mapping[str, ExpandState]:
        for key in self._present:
            self._states[key] = state
        return self.states

    @staticmethod
    def _key(key_fn: KeyFn, record: Record) -> str:
        try:
            key = key_fn(record)
        except Exception as e:
            raise GroupKeyError(f"Group key function failed: {e}", cause=e) from e
        if not isinstance(key, str):
            raise GroupKeyError(f"Group key must be a string, got {type(key).__name__}")
        return key


__all__ = [
    "DATE_BUCKETS",
    "PAST_DUE",
    "TODAY",
    "THIS_WEEK",
    "NEXT_WEEK",
    "THIS_MONTH",
    "NEXT_MONTH",
    "LATER",
    "bucket_for_date",
    "date_bucket",
    "by_field",
    "GroupingEngine",
]
