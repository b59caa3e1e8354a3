"""Wealth distribution and flow metrics for a single snapshot.

All functions are pure: they take the ranked entries of one snapshot (plus the
previous snapshot's total where needed) and never touch the database.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


class RankedBalance(Protocol):
    rank: int
    balance: float
    rank_change: int | None
    balance_change: float | None


@dataclass(frozen=True)
class ActivityWeights:
    """Whale Activity Index weighting policy.

    Each component is scaled to 0..100 and clamped, so the index stays in
    0..100 and never decreases when one input grows with the others fixed.
    """

    net_flow: float = 0.4  # |net_flow| as % of total balance
    active_wallets: float = 0.3  # share of entries whose balance moved
    rank_change: float = 0.2  # mean |rank delta|, capped at 100
    churn: float = 0.1  # (new entries + dropouts) as % of N


DEFAULT_ACTIVITY_WEIGHTS = ActivityWeights()


@dataclass
class FlowSummary:
    total_inflow: float
    total_outflow: float
    active_wallets: int


@dataclass
class ConcentrationSnapshot:
    """Everything stored in a ``concentration_metrics`` row, minus identity columns."""

    gini_coefficient: float
    hhi: float
    top10_pct: float
    top20_pct: float
    top50_pct: float
    net_flow: float | None
    total_inflow: float
    total_outflow: float
    whale_activity_index: float
    active_wallets: int
    avg_rank_change: float | None
    avg_balance_change_pct: float | None
    new_entry_count: int
    dropout_count: int
    total_balance: float


def gini_coefficient(balances: Sequence[float]) -> float:
    """Gini coefficient of a balance distribution.

    0 = every holder has the same balance, 1 = one holder has everything.
    Uses the sorted-rank form G = 2·Σ(i·x_i) / (n·Σx) − (n+1)/n, which is
    equal to the mean absolute difference over twice the mean.
    """
    n = len(balances)
    if n == 0:
        return 0.0
    ordered = sorted(balances)
    total = sum(ordered)
    if total <= 0:
        return 0.0
    weighted = sum((i + 1) * value for i, value in enumerate(ordered))
    gini = (2 * weighted) / (n * total) - (n + 1) / n
    # Float noise can push equal distributions slightly below zero
    return min(max(gini, 0.0), 1.0)


def herfindahl_hirschman_index(balances: Sequence[float]) -> float:
    """HHI on a 0..10000 scale: 10000/N for N equal holders, 10000 for a monopoly."""
    total = sum(balances)
    if not balances or total <= 0:
        return 0.0
    return sum((balance / total) ** 2 for balance in balances) * 10000


def top_share_pct(balances_by_rank: Sequence[float], top: int) -> float:
    """Share of the top ``top`` ranks in the total, as a percentage."""
    total = sum(balances_by_rank)
    if total <= 0:
        return 0.0
    return sum(balances_by_rank[:top]) / total * 100


def summarize_flows(entries: Sequence[RankedBalance]) -> FlowSummary:
    """Inflow = Σ positive balance deltas, outflow = |Σ negative balance deltas|."""
    inflow = 0.0
    outflow = 0.0
    active = 0
    for entry in entries:
        change = entry.balance_change
        if change is None or change == 0:
            continue
        active += 1
        if change > 0:
            inflow += change
        else:
            outflow += -change
    return FlowSummary(total_inflow=inflow, total_outflow=outflow, active_wallets=active)


def average_rank_change(entries: Sequence[RankedBalance]) -> float | None:
    changes = [abs(e.rank_change) for e in entries if e.rank_change is not None]
    if not changes:
        return None
    return sum(changes) / len(changes)


def average_balance_change_pct(entries: Sequence[RankedBalance]) -> float | None:
    """Mean of balance delta relative to the previous balance, in percent."""
    pcts = []
    for entry in entries:
        if entry.balance_change is None:
            continue
        previous = entry.balance - entry.balance_change
        if previous == 0:
            continue
        pcts.append(entry.balance_change / previous * 100)
    if not pcts:
        return None
    return sum(pcts) / len(pcts)


def whale_activity_index(
    *,
    entry_count: int,
    total_balance: float,
    net_flow: float | None,
    active_wallets: int,
    avg_rank_change: float | None,
    new_entry_count: int = 0,
    dropout_count: int = 0,
    weights: ActivityWeights = DEFAULT_ACTIVITY_WEIGHTS,
) -> float:
    """Composite 0..100 score of how much the top holders are moving."""
    if entry_count == 0 or total_balance <= 0:
        return 0.0

    flow_score = min(abs(net_flow or 0.0) / total_balance * 100, 100.0)
    active_score = min(active_wallets / entry_count * 100, 100.0)
    rank_score = min(avg_rank_change or 0.0, 100.0)
    churn_score = min((new_entry_count + dropout_count) / entry_count * 100, 100.0)

    wai = (
        flow_score * weights.net_flow
        + active_score * weights.active_wallets
        + rank_score * weights.rank_change
        + churn_score * weights.churn
    )
    return round(wai, 2)


def _round(value: float | None, digits: int = 2) -> float | None:
    return None if value is None else round(value, digits)


def build_concentration_metrics(
    entries: Sequence[RankedBalance],
    *,
    previous_total: float | None,
    new_entry_count: int,
    dropout_count: int,
    weights: ActivityWeights = DEFAULT_ACTIVITY_WEIGHTS,
) -> ConcentrationSnapshot:
    """Compute the full metric set for one snapshot.

    ``previous_total`` is the total balance of the preceding snapshot of the
    same chain; without it net flow is unknown and stored as null.
    """
    ranked = sorted(entries, key=lambda e: e.rank)
    balances = [e.balance for e in ranked]
    total = sum(balances)

    flows = summarize_flows(ranked)
    net_flow = total - previous_total if previous_total is not None else None
    avg_rank = average_rank_change(ranked)
    avg_pct = average_balance_change_pct(ranked)

    return ConcentrationSnapshot(
        gini_coefficient=round(gini_coefficient(balances), 6),
        hhi=round(herfindahl_hirschman_index(balances), 4),
        top10_pct=round(top_share_pct(balances, 10), 4),
        top20_pct=round(top_share_pct(balances, 20), 4),
        top50_pct=round(top_share_pct(balances, 50), 4),
        net_flow=_round(net_flow, 8),
        total_inflow=round(flows.total_inflow, 8),
        total_outflow=round(flows.total_outflow, 8),
        whale_activity_index=whale_activity_index(
            entry_count=len(ranked),
            total_balance=total,
            net_flow=net_flow,
            active_wallets=flows.active_wallets,
            avg_rank_change=avg_rank,
            new_entry_count=new_entry_count,
            dropout_count=dropout_count,
            weights=weights,
        ),
        active_wallets=flows.active_wallets,
        avg_rank_change=_round(avg_rank),
        avg_balance_change_pct=_round(avg_pct, 4),
        new_entry_count=new_entry_count,
        dropout_count=dropout_count,
        total_balance=round(total, 8),
    )
