"""Weekly roll-up job — aggregates a completed ISO week into ``weekly_summary``."""

import datetime as dt

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from whale_tracker.analytics.weekly import WeekEntry, WeekRollup, last_completed_week, roll_up_week
from whale_tracker.models.snapshot import SnapshotEntry
from whale_tracker.services.persistence import (
    get_concentration_between,
    get_entries,
    get_latest_snapshot,
    get_snapshots_between,
    upsert_weekly_summary,
)


async def compute_weekly_summary(
    session: AsyncSession,
    week_start: dt.date,
    *,
    chain: str = settings.primary_chain,
) -> WeekRollup | None:
    """Roll up the week starting ``week_start`` (a Monday) and upsert it.

    Running it again for the same week overwrites the stored row. Returns
    None when the week has no metrics. ``weekly_summary`` is keyed by week
    alone, so only the primary chain can be rolled up.
    """
    if chain != settings.primary_chain:
        raise ValueError(f"weekly roll-up runs on {settings.primary_chain!r} only, got {chain!r}")
    if week_start.weekday() != 0:
        raise ValueError(f"week_start must be a Monday, got {week_start} ({week_start:%A})")
    week_end = week_start + dt.timedelta(days=6)

    metrics = await get_concentration_between(session, chain, week_start, week_end)
    if not metrics:
        logger.info(f"[WEEKLY] No concentration metrics for {week_start}..{week_end}, skipping")
        return None

    snapshots = await get_snapshots_between(session, chain, week_start, week_end)
    snapshot_ids = [s.id for s in snapshots]

    rows = (
        await session.execute(
            select(
                SnapshotEntry.snapshot_id,
                SnapshotEntry.address,
                SnapshotEntry.balance_change,
                SnapshotEntry.rank_volatility,
            ).where(SnapshotEntry.snapshot_id.in_(snapshot_ids))
        )
    ).all()

    members: dict[int, set[str]] = {sid: set() for sid in snapshot_ids}
    entries: list[WeekEntry] = []
    for snapshot_id, address, balance_change, volatility in rows:
        members[snapshot_id].add(address)
        entries.append(WeekEntry(address=address, balance_change=balance_change, rank_volatility=volatility))

    previous_membership = None
    if snapshots:
        before = await get_latest_snapshot(session, chain, before=snapshots[0])
        if before is not None:
            previous_membership = {e.address for e in await get_entries(session, before.id)}

    rollup = roll_up_week(
        week_start,
        metrics,
        [members[sid] for sid in snapshot_ids],
        entries,
        previous_membership=previous_membership,
    )
    await upsert_weekly_summary(session, rollup)

    logger.info(
        f"[WEEKLY] {week_start}..{week_end}: {rollup.snapshot_count} snapshots, "
        f"Gini {rollup.gini_start} -> {rollup.gini_end}, net flow {rollup.net_flow_total:+.2f}"
    )
    return rollup


async def roll_up_last_week(
    session: AsyncSession,
    *,
    today: dt.date | None = None,
    chain: str = settings.primary_chain,
) -> WeekRollup | None:
    """Roll up the most recent ISO week that has fully ended."""
    today = today or dt.datetime.now(dt.UTC).date()
    week_start, _ = last_completed_week(today)
    return await compute_weekly_summary(session, week_start, chain=chain)
