"""Snapshot analyzer — ranks a raw rich list against the previous snapshot."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from whale_tracker.analytics.trends import (
    DEFAULT_TREND_POLICY,
    BalanceTrend,
    HistoryPoint,
    TrendPolicy,
    annotate_entry,
)
from whale_tracker.exceptions import InvalidSnapshotError
from whale_tracker.services.schemas import RichListItem


class PreviousEntry(Protocol):
    address: str
    rank: int
    balance: float


@dataclass
class AnalyzedEntry:
    rank: int
    address: str
    balance: float
    percentage: float | None
    prev_rank: int | None
    rank_change: int | None
    balance_change: float | None
    rank_volatility: float | None
    balance_trend: BalanceTrend
    rank_streak: int | None
    balance_streak: int | None


@dataclass
class Mover:
    address: str
    change: float


@dataclass
class SnapshotAnalysis:
    entries: list[AnalyzedEntry]
    total_balance: float
    new_entries: list[str] = field(default_factory=list)
    dropouts: list[str] = field(default_factory=list)
    biggest_gainer: Mover | None = None
    biggest_loser: Mover | None = None


def analyze_snapshot(
    holders: Sequence[RichListItem],
    previous_entries: Sequence[PreviousEntry],
    history: Mapping[str, Sequence[HistoryPoint]] | None = None,
    *,
    volatility_window: int = 30,
    trend_window: int = 15,
    policy: TrendPolicy = DEFAULT_TREND_POLICY,
) -> SnapshotAnalysis:
    """Assign dense ranks and derive every comparison field.

    Holders are ranked by balance (descending, ties keep input order).
    ``previous_entries`` are the entries of the immediately preceding snapshot
    of the same chain; ``history`` maps address -> its prior entries, oldest
    first, and feeds streaks, volatility and trend.
    """
    if not holders:
        raise InvalidSnapshotError("rich list is empty")

    seen: set[str] = set()
    for item in holders:
        if item.address in seen:
            raise InvalidSnapshotError(f"duplicate address in rich list: {item.address}")
        seen.add(item.address)

    history = history or {}
    ranked = sorted(holders, key=lambda h: h.balance, reverse=True)
    total = sum(h.balance for h in ranked)
    prev_by_address = {e.address: e for e in previous_entries}

    entries: list[AnalyzedEntry] = []
    new_entries: list[str] = []
    gainer: Mover | None = None
    loser: Mover | None = None

    for index, item in enumerate(ranked):
        rank = index + 1
        prev = prev_by_address.get(item.address)
        prev_rank = rank_change = balance_change = None

        if prev is not None:
            prev_rank = prev.rank
            rank_change = prev.rank - rank
            balance_change = item.balance - prev.balance
            if gainer is None or balance_change > gainer.change:
                gainer = Mover(item.address, balance_change)
            if loser is None or balance_change < loser.change:
                loser = Mover(item.address, balance_change)
        elif previous_entries:
            new_entries.append(item.address)

        percentage = item.percentage
        if percentage is None:
            percentage = item.balance / total * 100 if total > 0 else 0.0

        notes = annotate_entry(
            rank=rank,
            balance=item.balance,
            rank_change=rank_change,
            balance_change=balance_change,
            history=history.get(item.address, ()),
            volatility_window=volatility_window,
            trend_window=trend_window,
            policy=policy,
        )
        entries.append(
            AnalyzedEntry(
                rank=rank,
                address=item.address,
                balance=item.balance,
                percentage=percentage,
                prev_rank=prev_rank,
                rank_change=rank_change,
                balance_change=balance_change,
                rank_volatility=notes.rank_volatility,
                balance_trend=notes.balance_trend,
                rank_streak=notes.rank_streak,
                balance_streak=notes.balance_streak,
            )
        )

    dropouts = [e.address for e in previous_entries if e.address not in seen]

    return SnapshotAnalysis(
        entries=entries,
        total_balance=total,
        new_entries=new_entries,
        dropouts=dropouts,
        biggest_gainer=gainer if gainer and gainer.change > 0 else None,
        biggest_loser=loser if loser and loser.change < 0 else None,
    )
