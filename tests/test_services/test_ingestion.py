"""Tests for snapshot ingestion."""

import datetime as dt

import pytest
from sqlalchemy import func, select

from whale_tracker.exceptions import InvalidSnapshotError
from whale_tracker.models.analytics import ConcentrationMetrics
from whale_tracker.models.snapshot import DailySummary, Snapshot
from whale_tracker.services.ingestion import current_time_slot, ingest_snapshot, parse_rich_list
from whale_tracker.services.persistence import get_concentration_for_snapshot, get_entries

DAY = dt.date(2024, 1, 1)
FETCHED = dt.datetime(2024, 1, 1, 0, 0, 30)

FIRST = [
    {"address": "EWhaleA0000000000000000000000000a", "balance": "4000.5"},
    {"address": "EWhaleB0000000000000000000000000b", "balance": 3000},
    {"address": "EWhaleC0000000000000000000000000c", "balance": 2000},
    {"address": "EWhaleD0000000000000000000000000d", "balance": 1000},
]
SECOND = [
    {"address": "EWhaleB0000000000000000000000000b", "balance": 4500},
    {"address": "EWhaleA0000000000000000000000000a", "balance": 4000.5},
    {"address": "EWhaleC0000000000000000000000000c", "balance": 1500},
    {"address": "EWhaleE0000000000000000000000000e", "balance": 1200},
]


def test_current_time_slot_floors_to_five_minutes():
    assert current_time_slot(dt.datetime(2024, 1, 1, 13, 47, 59)) == "13:45"
    assert current_time_slot(dt.datetime(2024, 1, 1, 0, 4)) == "00:00"
    assert current_time_slot(dt.datetime(2024, 1, 1, 9, 5)) == "09:05"


def test_parse_rich_list_rejects_bad_rows():
    with pytest.raises(InvalidSnapshotError):
        parse_rich_list([{"address": "Ea", "balance": -1}])
    with pytest.raises(InvalidSnapshotError):
        parse_rich_list([{"address": "", "balance": 1}])
    with pytest.raises(InvalidSnapshotError):
        parse_rich_list([{"address": "Ea", "balance": 1}, {"address": "Ea", "balance": 2}])


@pytest.mark.asyncio
async def test_ingest_first_snapshot(db_session):
    result = await ingest_snapshot(
        db_session, FIRST, chain="mainchain", date=DAY, time_slot="00:00", fetched_at=FETCHED
    )
    assert result is not None
    assert result.entry_count == 4
    assert result.new_entries == 0
    assert result.snapshot.total_balances == pytest.approx(10000.5)
    assert result.snapshot.total_richlist == 4

    entries = await get_entries(db_session, result.snapshot.id)
    assert [e.rank for e in entries] == [1, 2, 3, 4]
    assert all(e.prev_rank is None and e.rank_streak is None for e in entries)

    metrics = await get_concentration_for_snapshot(db_session, result.snapshot.id)
    assert metrics is not None
    assert metrics.chain == "mainchain"
    assert metrics.net_flow is None
    assert metrics.total_balance == pytest.approx(10000.5)
    assert 0 < metrics.gini_coefficient < 1


@pytest.mark.asyncio
async def test_ingest_same_slot_twice_keeps_one_snapshot(db_session):
    first = await ingest_snapshot(db_session, FIRST, chain="mainchain", date=DAY, time_slot="00:00")
    again = await ingest_snapshot(db_session, SECOND, chain="mainchain", date=DAY, time_slot="00:00")
    assert first is not None
    assert again is None

    count = await db_session.scalar(
        select(func.count(Snapshot.id)).where(
            Snapshot.date == DAY, Snapshot.time_slot == "00:00", Snapshot.chain == "mainchain"
        )
    )
    assert count == 1
    metric_rows = await db_session.scalar(select(func.count(ConcentrationMetrics.id)))
    assert metric_rows == 1


@pytest.mark.asyncio
async def test_same_slot_on_other_chain_is_separate(db_session):
    main = await ingest_snapshot(db_session, FIRST, chain="mainchain", date=DAY, time_slot="00:00")
    esc = await ingest_snapshot(db_session, SECOND, chain="esc", date=DAY, time_slot="00:00")
    assert main is not None and esc is not None
    assert main.snapshot.id != esc.snapshot.id

    # the ESC snapshot is compared with nothing, not with mainchain
    esc_entries = await get_entries(db_session, esc.snapshot.id)
    assert all(e.prev_rank is None for e in esc_entries)


@pytest.mark.asyncio
async def test_second_snapshot_compares_with_previous(db_session):
    await ingest_snapshot(db_session, FIRST, chain="mainchain", date=DAY, time_slot="00:00")
    result = await ingest_snapshot(db_session, SECOND, chain="mainchain", date=DAY, time_slot="00:05")
    assert result is not None
    assert result.new_entries == 1
    assert result.dropouts == 1

    entries = {e.address: e for e in await get_entries(db_session, result.snapshot.id)}
    b = entries["EWhaleB0000000000000000000000000b"]
    assert b.rank == 1
    assert b.prev_rank == 2
    assert b.rank_change == 1
    assert b.balance_change == pytest.approx(1500.0)
    assert b.rank_streak == 1
    assert b.balance_streak == 1
    assert b.rank_volatility == pytest.approx(0.5)

    a = entries["EWhaleA0000000000000000000000000a"]
    assert a.rank_change == -1
    assert a.balance_change == pytest.approx(0.0)
    assert a.balance_streak == 0

    e = entries["EWhaleE0000000000000000000000000e"]
    assert e.prev_rank is None
    assert e.rank_change is None

    metrics = await get_concentration_for_snapshot(db_session, result.snapshot.id)
    assert metrics.net_flow == pytest.approx(11200.5 - 10000.5)
    assert metrics.new_entry_count == 1
    assert metrics.dropout_count == 1
    assert metrics.total_inflow == pytest.approx(1500.0)
    assert metrics.total_outflow == pytest.approx(500.0)

    summary = await db_session.scalar(select(DailySummary).where(DailySummary.date == DAY))
    assert summary.new_entries == ["EWhaleE0000000000000000000000000e"]
    assert summary.dropouts == ["EWhaleD0000000000000000000000000d"]
    assert summary.biggest_gainer_address == "EWhaleB0000000000000000000000000b"
    assert summary.biggest_loser_address == "EWhaleC0000000000000000000000000c"


@pytest.mark.asyncio
async def test_empty_rich_list_rejected(db_session):
    with pytest.raises(InvalidSnapshotError):
        await ingest_snapshot(db_session, [], date=DAY, time_slot="00:00")


@pytest.mark.asyncio
async def test_esc_ingestion_leaves_daily_summary_alone(db_session):
    await ingest_snapshot(db_session, FIRST, chain="mainchain", date=DAY, time_slot="00:00")
    await ingest_snapshot(db_session, SECOND, chain="mainchain", date=DAY, time_slot="00:05")

    esc_first = [{"address": "0xAAAA", "balance": 900}, {"address": "0xBBBB", "balance": 800}]
    esc_second = [{"address": "0xAAAA", "balance": 100}, {"address": "0xCCCC", "balance": 700}]
    await ingest_snapshot(db_session, esc_first, chain="esc", date=DAY, time_slot="00:05")
    esc = await ingest_snapshot(db_session, esc_second, chain="esc", date=DAY, time_slot="00:10")
    assert esc is not None and esc.new_entries == 1

    rows = (await db_session.scalars(select(DailySummary).where(DailySummary.date == DAY))).all()
    assert len(rows) == 1
    summary = rows[0]
    assert summary.new_entries == ["EWhaleE0000000000000000000000000e"]
    assert summary.dropouts == ["EWhaleD0000000000000000000000000d"]
    assert summary.biggest_gainer_address == "EWhaleB0000000000000000000000000b"
    assert summary.biggest_loser_address == "EWhaleC0000000000000000000000000c"


@pytest.mark.asyncio
async def test_esc_only_day_has_no_daily_summary(db_session):
    await ingest_snapshot(db_session, [{"address": "0xAAAA", "balance": 5}], chain="esc", date=DAY, time_slot="00:00")
    assert await db_session.scalar(select(func.count(DailySummary.id))) == 0
