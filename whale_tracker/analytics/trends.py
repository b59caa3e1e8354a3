"""Per-address history annotations: streaks, rank volatility, balance trend.

Every function works on an ordered history slice (oldest first) so a
recomputation over the same slice always yields the same annotations.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class BalanceTrend(StrEnum):
    ACCUMULATING = "accumulating"
    DISTRIBUTING = "distributing"
    HOLDING = "holding"
    ERRATIC = "erratic"


@dataclass(frozen=True)
class TrendPolicy:
    """Thresholds for balance trend classification.

    Rules are evaluated in order over the trailing balances:
      1. fewer than ``min_points`` points or zero mean     -> holding
      2. R² < ``erratic_max_r_squared`` and |slope%| > ``erratic_min_slope_pct`` -> erratic
      3. slope% > ``flat_slope_pct``                        -> accumulating
      4. slope% < -``flat_slope_pct``                       -> distributing
      5. otherwise                                          -> holding
    slope% is the least-squares slope per snapshot as a percentage of the
    mean balance.
    """

    min_points: int = 3
    erratic_max_r_squared: float = 0.3
    erratic_min_slope_pct: float = 0.1
    flat_slope_pct: float = 0.05


DEFAULT_TREND_POLICY = TrendPolicy()


@dataclass
class HistoryPoint:
    """One past entry of an address, as needed for history annotations."""

    rank: int
    balance: float
    rank_streak: int | None = None
    balance_streak: int | None = None


@dataclass
class EntryAnnotations:
    rank_streak: int | None
    balance_streak: int | None
    rank_volatility: float | None
    balance_trend: BalanceTrend


def next_streak(delta: float | None, previous_streak: int | None) -> int | None:
    """Extend a signed same-direction counter with a new delta.

    Same sign as the previous streak grows its magnitude by one, any other
    non-zero delta starts over at ±1, a zero delta resets to 0 and an
    unknown delta (no previous entry) gives an unknown streak.
    """
    if delta is None:
        return None
    if delta == 0:
        return 0
    direction = 1 if delta > 0 else -1
    if previous_streak and (previous_streak > 0) == (direction > 0):
        return previous_streak + direction
    return direction


def rank_volatility(ranks: Sequence[int]) -> float | None:
    """Population standard deviation of ranks; None below two points."""
    if len(ranks) < 2:
        return None
    mean = sum(ranks) / len(ranks)
    variance = sum((r - mean) ** 2 for r in ranks) / len(ranks)
    return round(math.sqrt(variance), 2)


def classify_balance_trend(
    balances: Sequence[float],
    policy: TrendPolicy = DEFAULT_TREND_POLICY,
) -> BalanceTrend:
    n = len(balances)
    if n < policy.min_points:
        return BalanceTrend.HOLDING

    y_mean = sum(balances) / n
    if y_mean == 0:
        return BalanceTrend.HOLDING

    x_mean = (n - 1) / 2
    sum_xy = 0.0
    sum_xx = 0.0
    for i, y in enumerate(balances):
        x_dev = i - x_mean
        sum_xy += x_dev * (y - y_mean)
        sum_xx += x_dev * x_dev
    slope = sum_xy / sum_xx if sum_xx else 0.0

    ss_res = sum((y - (y_mean + slope * (i - x_mean))) ** 2 for i, y in enumerate(balances))
    ss_tot = sum((y - y_mean) ** 2 for y in balances)
    r_squared = 1 - ss_res / ss_tot if ss_tot else 0.0

    slope_pct = slope / y_mean * 100

    if r_squared < policy.erratic_max_r_squared and abs(slope_pct) > policy.erratic_min_slope_pct:
        return BalanceTrend.ERRATIC
    if slope_pct > policy.flat_slope_pct:
        return BalanceTrend.ACCUMULATING
    if slope_pct < -policy.flat_slope_pct:
        return BalanceTrend.DISTRIBUTING
    return BalanceTrend.HOLDING


def annotate_entry(
    *,
    rank: int,
    balance: float,
    rank_change: int | None,
    balance_change: float | None,
    history: Sequence[HistoryPoint],
    volatility_window: int = 30,
    trend_window: int = 15,
    policy: TrendPolicy = DEFAULT_TREND_POLICY,
) -> EntryAnnotations:
    """Derive streaks, volatility and trend for one entry from its prior history."""
    last = history[-1] if history else None

    ranks = [h.rank for h in history] + [rank]
    balances = [h.balance for h in history] + [balance]

    return EntryAnnotations(
        rank_streak=next_streak(rank_change, last.rank_streak if last else None),
        balance_streak=next_streak(balance_change, last.balance_streak if last else None),
        rank_volatility=rank_volatility(ranks[-volatility_window:]),
        balance_trend=classify_balance_trend(balances[-trend_window:], policy),
    )
