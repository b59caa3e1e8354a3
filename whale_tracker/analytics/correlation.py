"""Pairwise Pearson correlation of wallet balance series."""

import math
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from itertools import combinations

MIN_OVERLAP = 5


@dataclass
class PairCorrelation:
    address_a: str
    address_b: str
    correlation: float
    data_points: int


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Order a pair lexicographically so (A, B) and (B, A) map to one row."""
    return (a, b) if a <= b else (b, a)


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Pearson r of two equally long series, None when either has zero variance."""
    if len(xs) != len(ys):
        raise ValueError(f"series length mismatch: {len(xs)} != {len(ys)}")
    n = len(xs)
    if n < 2:
        return None

    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    sum_xy = 0.0
    sum_xx = 0.0
    sum_yy = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        sum_xy += dx * dy
        sum_xx += dx * dx
        sum_yy += dy * dy

    denominator = math.sqrt(sum_xx * sum_yy)
    if denominator == 0:
        return None
    r = sum_xy / denominator
    return round(min(max(r, -1.0), 1.0), 4)


def correlate_balances(
    series: Mapping[str, Mapping[Hashable, float]],
    *,
    min_overlap: int = MIN_OVERLAP,
) -> list[PairCorrelation]:
    """Correlate every pair of addresses over the snapshots both appear in.

    ``series`` maps address -> {snapshot key -> balance}. Snapshot keys must
    sort chronologically. Pairs with fewer than ``min_overlap`` shared
    snapshots, or a flat series, are left out entirely.
    """
    results: list[PairCorrelation] = []
    for a, b in combinations(sorted(series), 2):
        points_a = series[a]
        points_b = series[b]
        shared = sorted(points_a.keys() & points_b.keys())
        if len(shared) < min_overlap:
            continue
        r = pearson_correlation(
            [points_a[k] for k in shared],
            [points_b[k] for k in shared],
        )
        if r is None:
            continue
        results.append(PairCorrelation(address_a=a, address_b=b, correlation=r, data_points=len(shared)))
    return results
