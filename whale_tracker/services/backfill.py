"""Recompute analytics for historical snapshots.

Metrics are normally written once at ingestion; these routines are the only
place they are recomputed, for snapshots ingested before analytics existed
or after the trend policy changed.
"""

from collections import defaultdict
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from whale_tracker.analytics.concentration import build_concentration_metrics
from whale_tracker.analytics.trends import HistoryPoint, annotate_entry
from whale_tracker.models.analytics import ConcentrationMetrics
from whale_tracker.models.snapshot import Snapshot
from whale_tracker.services.persistence import get_entries, insert_concentration_metrics


@dataclass
class BackfillStats:
    processed: int = 0
    skipped: int = 0


async def _chain_snapshots(session: AsyncSession, chain: str) -> list[Snapshot]:
    stmt = select(Snapshot).where(Snapshot.chain == chain).order_by(Snapshot.date, Snapshot.time_slot)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def backfill_concentration_metrics(
    session: AsyncSession, chain: str = "mainchain"
) -> BackfillStats:
    """Create missing ``concentration_metrics`` rows; existing rows are left alone."""
    stats = BackfillStats()
    snapshots = await _chain_snapshots(session, chain)
    existing = set(
        (await session.execute(
            select(ConcentrationMetrics.snapshot_id).where(ConcentrationMetrics.chain == chain)
        )).scalars().all()
    )
    logger.info(f"[BACKFILL] {len(snapshots)} {chain} snapshots, {len(existing)} already have metrics")

    previous: Snapshot | None = None
    previous_addresses: set[str] = set()
    for snap in snapshots:
        entries = await get_entries(session, snap.id)
        addresses = {e.address for e in entries}

        if snap.id in existing or not entries:
            stats.skipped += 1
        else:
            metrics = build_concentration_metrics(
                entries,
                previous_total=previous.total_balances if previous else None,
                new_entry_count=len(addresses - previous_addresses) if previous_addresses else 0,
                dropout_count=len(previous_addresses - addresses),
            )
            await insert_concentration_metrics(session, snap, metrics)
            stats.processed += 1
            if stats.processed % 50 == 0:
                logger.info(f"[BACKFILL] Progress: {stats.processed} processed, {stats.skipped} skipped")

        previous = snap
        previous_addresses = addresses

    logger.info(f"[BACKFILL] Metrics done: {stats.processed} processed, {stats.skipped} skipped")
    return stats


async def backfill_entry_analytics(
    session: AsyncSession, chain: str = "mainchain"
) -> BackfillStats:
    """Recompute streaks, rank volatility and balance trend chronologically."""
    stats = BackfillStats()
    window = max(settings.rank_volatility_window, settings.balance_trend_window)
    history: dict[str, list[HistoryPoint]] = defaultdict(list)

    for snap in await _chain_snapshots(session, chain):
        for entry in await get_entries(session, snap.id):
            past = history[entry.address]
            notes = annotate_entry(
                rank=entry.rank,
                balance=entry.balance,
                rank_change=entry.rank_change,
                balance_change=entry.balance_change,
                history=past,
                volatility_window=settings.rank_volatility_window,
                trend_window=settings.balance_trend_window,
            )
            entry.rank_streak = notes.rank_streak
            entry.balance_streak = notes.balance_streak
            entry.rank_volatility = notes.rank_volatility
            entry.balance_trend = str(notes.balance_trend)

            past.append(
                HistoryPoint(
                    rank=entry.rank,
                    balance=entry.balance,
                    rank_streak=notes.rank_streak,
                    balance_streak=notes.balance_streak,
                )
            )
            if len(past) > window:
                del past[0]
            stats.processed += 1

        await session.flush()
        if stats.processed and stats.processed % 500 == 0:
            logger.info(f"[BACKFILL] Entry progress: {stats.processed} entries")

    logger.info(f"[BACKFILL] Entry analytics done: {stats.processed} entries")
    return stats
