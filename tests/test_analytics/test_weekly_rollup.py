"""Tests for ISO-week bounds and the weekly roll-up aggregation."""

import datetime as dt
from dataclasses import dataclass

import pytest

from whale_tracker.analytics.weekly import (
    WeekEntry,
    churned_addresses,
    last_completed_week,
    roll_up_week,
    week_bounds,
)


@dataclass
class Metrics:
    gini_coefficient: float | None
    total_balance: float | None
    net_flow: float | None
    whale_activity_index: float | None


def test_week_bounds_monday_to_sunday():
    assert week_bounds(dt.date(2024, 1, 3)) == (dt.date(2024, 1, 1), dt.date(2024, 1, 7))
    assert week_bounds(dt.date(2024, 1, 1)) == (dt.date(2024, 1, 1), dt.date(2024, 1, 7))
    assert week_bounds(dt.date(2024, 1, 7)) == (dt.date(2024, 1, 1), dt.date(2024, 1, 7))


def test_last_completed_week():
    assert last_completed_week(dt.date(2024, 1, 10)) == (dt.date(2024, 1, 1), dt.date(2024, 1, 7))
    assert last_completed_week(dt.date(2024, 1, 8)) == (dt.date(2024, 1, 1), dt.date(2024, 1, 7))
    assert last_completed_week(dt.date(2024, 1, 7)) == (dt.date(2023, 12, 25), dt.date(2023, 12, 31))


def test_churned_addresses_counts_distinct():
    entered, left = churned_addresses([{"a", "b"}, {"a", "c"}, {"a", "b"}])
    assert entered == {"b", "c"}
    assert left == {"b", "c"}


def test_churned_addresses_with_previous_membership():
    entered, left = churned_addresses([{"a", "b"}], previous={"a", "b", "d"})
    assert entered == set()
    assert left == {"d"}


def test_roll_up_week():
    metrics = [
        Metrics(0.5, 1000.0, None, 10.0),
        Metrics(0.6, 1100.0, 100.0, 20.0),
        Metrics(0.55, 1050.0, -50.0, None),
    ]
    entries = [
        WeekEntry("a", 10.0, None),
        WeekEntry("a", 5.0, None),
        WeekEntry("b", -20.0, 4.0),
        WeekEntry("c", None, 2.0),
    ]
    rollup = roll_up_week(
        dt.date(2024, 1, 1),
        metrics,
        [{"a", "b"}, {"a", "b", "c"}, {"a", "c"}],
        entries,
    )
    assert rollup.week_end == dt.date(2024, 1, 7)
    assert rollup.gini_start == 0.5
    assert rollup.gini_end == 0.55
    assert rollup.gini_change == pytest.approx(0.05)
    assert rollup.total_balance_start == 1000.0
    assert rollup.total_balance_end == 1050.0
    assert rollup.net_flow_total == pytest.approx(50.0)
    assert rollup.avg_whale_activity_index == pytest.approx(15.0)
    assert rollup.total_new_entries == 1
    assert rollup.total_dropouts == 1
    assert rollup.top_accumulator_address == "a"
    assert rollup.top_accumulator_change == pytest.approx(15.0)
    assert rollup.top_distributor_address == "b"
    assert rollup.top_distributor_change == pytest.approx(-20.0)
    assert rollup.avg_rank_volatility == pytest.approx(3.0)
    assert rollup.snapshot_count == 3


def test_roll_up_week_without_movers():
    rollup = roll_up_week(
        dt.date(2024, 1, 1),
        [Metrics(0.4, 10.0, 0.0, 0.0)],
        [{"a"}],
        [WeekEntry("a", 0.0, None)],
    )
    assert rollup.top_accumulator_address is None
    assert rollup.top_distributor_address is None
    assert rollup.avg_rank_volatility is None
    assert rollup.gini_change == 0.0


def test_roll_up_empty_week():
    rollup = roll_up_week(dt.date(2024, 1, 1), [], [], [])
    assert rollup.snapshot_count == 0
    assert rollup.gini_start is None
    assert rollup.gini_change is None
    assert rollup.avg_whale_activity_index is None
    assert rollup.net_flow_total == 0
