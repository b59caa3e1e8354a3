"""Tests for historical analytics backfill."""

import datetime as dt

import pytest
from sqlalchemy import delete, select, update

from whale_tracker.models.analytics import ConcentrationMetrics
from whale_tracker.models.snapshot import SnapshotEntry
from whale_tracker.services.backfill import backfill_concentration_metrics, backfill_entry_analytics
from whale_tracker.services.ingestion import ingest_snapshot
from whale_tracker.services.persistence import get_concentration_for_snapshot

DAY = dt.date(2024, 1, 1)
SLOTS = [
    {"Ea": 100, "Eb": 80, "Ec": 60},
    {"Ea": 110, "Eb": 70, "Ec": 60},
    {"Ea": 120, "Eb": 60, "Ed": 90},
    {"Ea": 125, "Eb": 50, "Ed": 95},
]


async def _ingest(session):
    results = []
    for i, balances in enumerate(SLOTS):
        holders = [{"address": a, "balance": b} for a, b in balances.items()]
        results.append(await ingest_snapshot(session, holders, date=DAY, time_slot=f"00:{i * 5:02d}"))
    return [r.snapshot for r in results]


async def _entry_analytics(session):
    rows = await session.execute(
        select(
            SnapshotEntry.snapshot_id,
            SnapshotEntry.address,
            SnapshotEntry.rank_streak,
            SnapshotEntry.balance_streak,
            SnapshotEntry.rank_volatility,
            SnapshotEntry.balance_trend,
        ).order_by(SnapshotEntry.snapshot_id, SnapshotEntry.rank)
    )
    return [tuple(r) for r in rows.all()]


@pytest.mark.asyncio
async def test_backfill_recreates_missing_metrics(db_session):
    snapshots = await _ingest(db_session)
    original = await get_concentration_for_snapshot(db_session, snapshots[2].id)
    expected = (original.net_flow, original.gini_coefficient, original.new_entry_count, original.dropout_count)

    await db_session.execute(
        delete(ConcentrationMetrics).where(
            ConcentrationMetrics.snapshot_id.in_([snapshots[0].id, snapshots[2].id])
        )
    )
    db_session.expunge_all()

    stats = await backfill_concentration_metrics(db_session, "mainchain")
    assert stats.processed == 2
    assert stats.skipped == 2

    rebuilt = await get_concentration_for_snapshot(db_session, snapshots[2].id)
    assert (rebuilt.net_flow, rebuilt.gini_coefficient, rebuilt.new_entry_count, rebuilt.dropout_count) == pytest.approx(expected)
    first = await get_concentration_for_snapshot(db_session, snapshots[0].id)
    assert first.net_flow is None


@pytest.mark.asyncio
async def test_backfill_is_noop_when_complete(db_session):
    await _ingest(db_session)
    stats = await backfill_concentration_metrics(db_session, "mainchain")
    assert stats.processed == 0
    assert stats.skipped == len(SLOTS)


@pytest.mark.asyncio
async def test_entry_analytics_recomputed_identically(db_session):
    await _ingest(db_session)
    expected = await _entry_analytics(db_session)

    await db_session.execute(
        update(SnapshotEntry).values(
            rank_streak=None, balance_streak=None, rank_volatility=None, balance_trend=None
        )
    )
    assert all(row[2:] == (None, None, None, None) for row in await _entry_analytics(db_session))

    stats = await backfill_entry_analytics(db_session, "mainchain")
    assert stats.processed == sum(len(s) for s in SLOTS)
    assert await _entry_analytics(db_session) == expected
