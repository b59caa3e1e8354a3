"""ISO-week roll-up of per-snapshot metrics."""

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol


class SnapshotMetrics(Protocol):
    gini_coefficient: float | None
    total_balance: float | None
    net_flow: float | None
    whale_activity_index: float | None


@dataclass
class WeekEntry:
    address: str
    balance_change: float | None
    rank_volatility: float | None


@dataclass
class WeekRollup:
    week_start: dt.date
    week_end: dt.date
    gini_start: float | None
    gini_end: float | None
    gini_change: float | None
    total_balance_start: float | None
    total_balance_end: float | None
    net_flow_total: float
    avg_whale_activity_index: float | None
    total_new_entries: int
    total_dropouts: int
    top_accumulator_address: str | None
    top_accumulator_change: float | None
    top_distributor_address: str | None
    top_distributor_change: float | None
    avg_rank_volatility: float | None
    snapshot_count: int


def week_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """Monday and Sunday of the ISO week containing ``day``."""
    start = day - dt.timedelta(days=day.weekday())
    return start, start + dt.timedelta(days=6)


def last_completed_week(today: dt.date) -> tuple[dt.date, dt.date]:
    """Bounds of the most recent ISO week that ended before ``today``."""
    current_start, _ = week_bounds(today)
    return week_bounds(current_start - dt.timedelta(days=1))


def churned_addresses(
    memberships: Sequence[set[str]],
    previous: set[str] | None = None,
) -> tuple[set[str], set[str]]:
    """Distinct addresses that entered / left the top list across consecutive snapshots.

    ``previous`` is the membership of the snapshot right before the first one;
    without it the first snapshot only serves as a baseline.
    """
    entered: set[str] = set()
    left: set[str] = set()
    before = previous
    for current in memberships:
        if before is not None:
            entered |= current - before
            left |= before - current
        before = current
    return entered, left


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def roll_up_week(
    week_start: dt.date,
    metrics: Sequence[SnapshotMetrics],
    memberships: Sequence[set[str]],
    entries: Iterable[WeekEntry],
    *,
    previous_membership: set[str] | None = None,
) -> WeekRollup:
    """Aggregate a week's chronologically ordered snapshot metrics.

    ``memberships`` holds the address set of each of the week's snapshots,
    also in chronological order.
    """
    first = metrics[0] if metrics else None
    last = metrics[-1] if metrics else None

    gini_start = first.gini_coefficient if first else None
    gini_end = last.gini_coefficient if last else None
    gini_change = (
        round(gini_end - gini_start, 6)
        if gini_start is not None and gini_end is not None
        else None
    )

    net_flow_total = sum(m.net_flow for m in metrics if m.net_flow is not None)
    avg_wai = _mean([m.whale_activity_index for m in metrics if m.whale_activity_index is not None])

    entered, left = churned_addresses(memberships, previous_membership)

    cumulative: dict[str, float] = defaultdict(float)
    volatilities: list[float] = []
    for entry in entries:
        if entry.balance_change is not None:
            cumulative[entry.address] += entry.balance_change
        if entry.rank_volatility is not None:
            volatilities.append(entry.rank_volatility)

    accumulator = max(cumulative.items(), key=lambda kv: kv[1], default=None)
    distributor = min(cumulative.items(), key=lambda kv: kv[1], default=None)
    if accumulator is not None and accumulator[1] <= 0:
        accumulator = None
    if distributor is not None and distributor[1] >= 0:
        distributor = None

    avg_volatility = _mean(volatilities)

    return WeekRollup(
        week_start=week_start,
        week_end=week_start + dt.timedelta(days=6),
        gini_start=gini_start,
        gini_end=gini_end,
        gini_change=gini_change,
        total_balance_start=first.total_balance if first else None,
        total_balance_end=last.total_balance if last else None,
        net_flow_total=round(net_flow_total, 8),
        avg_whale_activity_index=round(avg_wai, 2) if avg_wai is not None else None,
        total_new_entries=len(entered),
        total_dropouts=len(left),
        top_accumulator_address=accumulator[0] if accumulator else None,
        top_accumulator_change=round(accumulator[1], 8) if accumulator else None,
        top_distributor_address=distributor[0] if distributor else None,
        top_distributor_change=round(distributor[1], 8) if distributor else None,
        avg_rank_volatility=round(avg_volatility, 2) if avg_volatility is not None else None,
        snapshot_count=len(metrics),
    )
