"""Tests for pairwise wallet balance correlation."""

import pytest

from whale_tracker.analytics.correlation import (
    canonical_pair,
    correlate_balances,
    pearson_correlation,
)


def test_pearson_perfect_positive_and_negative():
    xs = [1.0, 2.0, 3.0, 4.0, 5.0]
    assert pearson_correlation(xs, [2.0, 4.0, 6.0, 8.0, 10.0]) == 1.0
    assert pearson_correlation(xs, [10.0, 8.0, 6.0, 4.0, 2.0]) == -1.0


def test_pearson_zero_variance_is_undefined():
    assert pearson_correlation([1.0, 2.0, 3.0], [5.0, 5.0, 5.0]) is None
    assert pearson_correlation([1.0], [2.0]) is None


def test_pearson_length_mismatch():
    with pytest.raises(ValueError):
        pearson_correlation([1.0, 2.0], [1.0])


def test_pearson_rounded_to_four_places():
    r = pearson_correlation([1.0, 2.0, 3.0], [1.0, 3.0, 2.0])
    assert r == 0.5


def test_canonical_pair():
    assert canonical_pair("Eb", "Ea") == ("Ea", "Eb")
    assert canonical_pair("Ea", "Eb") == ("Ea", "Eb")


def _series(values, start=0):
    return {i + start: v for i, v in enumerate(values)}


def test_correlate_respects_minimum_overlap():
    series = {
        "EA": _series([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]),
        "EB": _series([2.0, 4.0, 6.0, 8.0, 10.0, 12.0]),
        # shares only 3 snapshots with the others
        "EC": _series([7.0, 1.0, 9.0], start=3),
    }
    pairs = correlate_balances(series, min_overlap=5)
    assert [(p.address_a, p.address_b) for p in pairs] == [("EA", "EB")]
    assert pairs[0].correlation == 1.0
    assert pairs[0].data_points == 6

    relaxed = correlate_balances(series, min_overlap=3)
    assert {(p.address_a, p.address_b) for p in relaxed} == {("EA", "EB"), ("EA", "EC"), ("EB", "EC")}


def test_correlate_skips_flat_series_and_orders_pairs():
    series = {
        "Ez": _series([1.0, 2.0, 3.0, 4.0, 5.0]),
        "Ea": _series([5.0, 3.0, 4.0, 1.0, 2.0]),
        "Em": _series([9.0] * 5),
    }
    pairs = correlate_balances(series)
    assert len(pairs) == 1
    pair = pairs[0]
    assert pair.address_a < pair.address_b
    assert (pair.address_a, pair.address_b) == ("Ea", "Ez")
    assert -1.0 <= pair.correlation < 0


def test_correlate_uses_only_shared_snapshots():
    series = {
        "EA": {1: 1.0, 2: 2.0, 3: 3.0, 4: 4.0, 5: 5.0, 6: 100.0},
        "EB": {1: 1.0, 2: 2.0, 3: 3.0, 4: 4.0, 5: 5.0, 7: -100.0},
    }
    pairs = correlate_balances(series)
    assert pairs[0].data_points == 5
    assert pairs[0].correlation == 1.0
