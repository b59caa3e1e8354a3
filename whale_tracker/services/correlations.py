"""Wallet correlation scan — Pearson r of top holders' balance series."""

import datetime as dt
from collections import defaultdict

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from whale_tracker.analytics.correlation import PairCorrelation, correlate_balances
from whale_tracker.models.snapshot import Snapshot, SnapshotEntry
from whale_tracker.services.persistence import (
    get_entries,
    get_latest_snapshot,
    prune_wallet_correlations,
    upsert_wallet_correlations,
)


def period_label(days: int) -> str:
    return f"{days}d"


async def load_balance_series(
    session: AsyncSession,
    addresses: list[str],
    *,
    chain: str,
    since: dt.date,
) -> dict[str, dict[tuple[dt.date, str], float]]:
    """address -> {(date, time_slot) -> balance} for snapshots on or after ``since``."""
    stmt = (
        select(SnapshotEntry.address, Snapshot.date, Snapshot.time_slot, SnapshotEntry.balance)
        .join(Snapshot, Snapshot.id == SnapshotEntry.snapshot_id)
        .where(
            Snapshot.chain == chain,
            Snapshot.date >= since,
            SnapshotEntry.address.in_(addresses),
        )
    )
    result = await session.execute(stmt)
    series: dict[str, dict[tuple[dt.date, str], float]] = defaultdict(dict)
    for address, date, time_slot, balance in result.all():
        series[address][(date, time_slot)] = float(balance)
    return dict(series)


async def scan_wallet_correlations(
    session: AsyncSession,
    *,
    period_days: int = 30,
    chain: str = "mainchain",
    top_n: int = 100,
    min_overlap: int = 5,
    today: dt.date | None = None,
) -> list[PairCorrelation]:
    """Recompute correlations for the current top-N over the trailing period.

    Qualifying pairs are upserted; rows of the same period that this run did
    not produce are pruned so pairs below ``min_overlap`` are never stored.
    """
    today = today or dt.datetime.now(dt.UTC).date()
    period = period_label(period_days)

    latest = await get_latest_snapshot(session, chain)
    if latest is None:
        logger.info(f"[CORR] No {chain} snapshots yet, skipping {period} scan")
        return []

    candidates = [e.address for e in await get_entries(session, latest.id)][:top_n]
    series = await load_balance_series(
        session, candidates, chain=chain, since=today - dt.timedelta(days=period_days)
    )
    pairs = correlate_balances(series, min_overlap=min_overlap)

    computed_at = dt.datetime.now(dt.UTC).replace(tzinfo=None)
    await upsert_wallet_correlations(session, pairs, period=period, computed_at=computed_at)
    pruned = await prune_wallet_correlations(session, period=period, computed_at=computed_at)

    logger.info(
        f"[CORR] {period}: {len(candidates)} candidates, {len(pairs)} pairs stored, "
        f"{pruned} stale pairs pruned"
    )
    return pairs
