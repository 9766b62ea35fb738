"""Tests for gridspine.engine.grouping -- partitioning and expand state."""

from datetime import date, datetime

import pytest

from gridspine.core.errors import GroupKeyError
from gridspine.engine.grouping import (
    DATE_BUCKETS,
    LATER,
    NEXT_MONTH,
    NEXT_WEEK,
    PAST_DUE,
    THIS_MONTH,
    THIS_WEEK,
    TODAY,
    GroupingEngine,
    bucket_for_date,
    by_field,
    date_bucket,
)
from gridspine.engine.types import ExpandState


class TestBucketForDate:
    """Buckets relative to Wednesday 2024-03-13."""

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            (date(2024, 3, 12), PAST_DUE),
            (date(2023, 12, 31), PAST_DUE),
            (date(2024, 3, 13), TODAY),
            (date(2024, 3, 14), THIS_WEEK),
            (date(2024, 3, 20), THIS_WEEK),
            (date(2024, 3, 21), NEXT_WEEK),
            (date(2024, 3, 27), NEXT_WEEK),
            (date(2024, 3, 30), THIS_MONTH),
            (date(2024, 4, 15), NEXT_MONTH),
            (date(2024, 5, 1), LATER),
            (date(2025, 3, 13), LATER),
        ],
    )
    def test_buckets(self, today, target, expected):
        assert bucket_for_date(target, today) == expected

    def test_next_month_wraps_year(self):
        assert bucket_for_date(date(2025, 1, 20), date(2024, 12, 2)) == NEXT_MONTH

    def test_week_rules_win_over_month(self):
        """Seven days ahead across a month boundary is still This Week."""
        assert bucket_for_date(date(2024, 4, 2), date(2024, 3, 28)) == THIS_WEEK

    def test_bucket_order(self):
        assert DATE_BUCKETS == (PAST_DUE, TODAY, THIS_WEEK, NEXT_WEEK, THIS_MONTH, NEXT_MONTH, LATER)


class TestDateBucket:
    def test_today_and_this_week(self, today):
        key_fn = date_bucket("due", today)
        assert key_fn({"due": "2024-03-13"}) == TODAY
        assert key_fn({"due": "2024-03-16"}) == THIS_WEEK

    def test_time_of_day_ignored(self, today):
        key_fn = date_bucket("due", today)
        assert key_fn({"due": "2024-03-13T00:00:01"}) == TODAY
        assert key_fn({"due": "2024-03-12T23:59:59"}) == PAST_DUE

    def test_datetime_reference(self):
        key_fn = date_bucket("due", datetime(2024, 3, 13, 18, 45))
        assert key_fn({"due": "2024-03-13"}) == TODAY

    @pytest.mark.parametrize("value", [None, "", "soon", 42])
    def test_unparseable_is_later(self, today, value):
        assert date_bucket("due", today)({"due": value}) == LATER

    def test_missing_field_is_later(self, today):
        assert date_bucket("due", today)({}) == LATER

    def test_unpinned_reads_current_date(self):
        assert date_bucket("due")({"due": date.today().isoformat()}) == TODAY


class TestByField:
    def test_stringified(self):
        assert by_field("team")({"team": 7}) == "7"

    def test_blank(self):
        key_fn = by_field("team")
        assert key_fn({"team": None}) == "(blank)"
        assert key_fn({}) == "(blank)"
        assert by_field("team", missing="-")({"team": ""}) == "-"


class TestPartition:
    """partition is a complete, ordered partition of the collection."""

    def test_partition_complete_and_disjoint(self, users, today):
        groups = GroupingEngine().partition(users, date_bucket("joined", today))
        ids = [row["id"] for group in groups for row in group.rows]
        assert sorted(ids) == [1, 2, 3, 4]
        assert len(ids) == len(set(ids))

    def test_first_seen_order(self, users, today):
        groups = GroupingEngine().partition(users, date_bucket("joined", today))
        assert [g.key for g in groups] == [TODAY, THIS_WEEK, PAST_DUE]

    def test_input_order_within_group(self, users, today):
        groups = GroupingEngine().partition(users, date_bucket("joined", today))
        assert [r["id"] for r in groups[0].rows] == [1, 4]

    def test_no_empty_groups(self):
        assert GroupingEngine().partition([], by_field("team")) == ()

    def test_default_collapsed(self, users):
        groups = GroupingEngine().partition(users, by_field("active"))
        assert all(g.state is ExpandState.COLLAPSED for g in groups)

    def test_default_expanded(self, users):
        groups = GroupingEngine(ExpandState.EXPANDED).partition(users, by_field("active"))
        assert all(g.expanded for g in groups)

    def test_raising_key_fn(self, users):
        def broken(record):
            raise KeyError("team")

        with pytest.raises(GroupKeyError) as exc_info:
            GroupingEngine().partition(users, broken)
        assert isinstance(exc_info.value.cause, KeyError)

    def test_non_string_key(self, users):
        with pytest.raises(GroupKeyError):
            GroupingEngine().partition(users, lambda record: record["id"])


class TestToggle:
    def test_toggle_flips_one_key(self, users, today):
        engine = GroupingEngine()
        key_fn = date_bucket("joined", today)
        engine.partition(users, key_fn)
        states = engine.toggle(TODAY)
        assert states[TODAY] is ExpandState.EXPANDED
        assert states[THIS_WEEK] is ExpandState.COLLAPSED
        assert states[PAST_DUE] is ExpandState.COLLAPSED

    def test_toggle_involution(self, users):
        engine = GroupingEngine()
        engine.partition(users, by_field("name"))
        before = dict(engine.states)
        engine.toggle("Ann")
        engine.toggle("Ann")
        assert dict(engine.states) == before

    def test_state_survives_repartition(self, users, today):
        engine = GroupingEngine()
        key_fn = date_bucket("joined", today)
        engine.partition(users, key_fn)
        engine.toggle(TODAY)
        reloaded = [{**row, "age": row["age"] + 1} for row in users]
        groups = {g.key: g for g in engine.partition(reloaded, key_fn)}
        assert groups[TODAY].expanded
        assert not groups[THIS_WEEK].expanded

    def test_absent_key_remembered(self, users):
        engine = GroupingEngine()
        engine.partition(users, by_field("team"))
        states = engine.toggle("Ops")
        assert states["Ops"] is ExpandState.EXPANDED
        groups = engine.partition([{"id": 9, "team": "Ops"}], by_field("team"))
        assert groups[0].expanded

    def test_vanished_key_forgets_state(self):
        engine = GroupingEngine()
        key_fn = by_field("team")
        engine.partition([{"team": "a"}, {"team": "b"}], key_fn)
        engine.toggle("a")
        engine.partition([{"team": "b"}], key_fn)
        groups = engine.partition([{"team": "a"}, {"team": "b"}], key_fn)
        assert not groups[0].expanded

    def test_states_read_only(self, users):
        engine = GroupingEngine()
        engine.partition(users, by_field("name"))
        with pytest.raises(TypeError):
            engine.states["Ann"] = ExpandState.EXPANDED

    def test_expand_and_collapse_all(self, users):
        engine = GroupingEngine()
        engine.partition(users, by_field("name"))
        assert set(engine.expand_all().values()) == {ExpandState.EXPANDED}
        assert set(engine.collapse_all().values()) == {ExpandState.COLLAPSED}

    def test_reset(self, users):
        engine = GroupingEngine()
        engine.partition(users, by_field("name"))
        engine.toggle("Ann")
        engine.reset()
        assert engine.state_of("Ann") is ExpandState.COLLAPSED
