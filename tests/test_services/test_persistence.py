"""Tests for the persistence layer and consumer reads."""

import datetime as dt

import pytest

from whale_tracker.services.ingestion import ingest_snapshot
from whale_tracker.services.persistence import (
    find_dormant_wallets,
    get_address_histories,
    get_address_history,
    get_address_label,
    get_concentration_history,
    get_cross_chain_history,
    get_entries_with_labels,
    get_latest_snapshot,
    get_recent_daily_summaries,
    get_snapshot,
    get_snapshot_count,
    get_streak_leaders,
    insert_snapshot,
    record_cross_chain_supply,
    upsert_address_label,
)
from whale_tracker.services.schemas import CrossChainFigures

DAY = dt.date(2024, 1, 1)
NOW = dt.datetime(2024, 1, 1, 0, 0)


async def _ingest_series(session, balances_per_slot, chain="mainchain"):
    snapshots = []
    for i, balances in enumerate(balances_per_slot):
        holders = [{"address": a, "balance": b} for a, b in balances.items()]
        result = await ingest_snapshot(session, holders, chain=chain, date=DAY, time_slot=f"00:{i * 5:02d}")
        snapshots.append(result.snapshot)
    return snapshots


@pytest.mark.asyncio
async def test_insert_snapshot_conflict_returns_none(db_session):
    kwargs = dict(chain="mainchain", date=DAY, time_slot="00:00", fetched_at=NOW, total_balances=1.0, total_richlist=1)
    created = await insert_snapshot(db_session, **kwargs)
    assert created is not None and created.id is not None
    assert await insert_snapshot(db_session, **kwargs) is None

    found = await get_snapshot(db_session, date=DAY, time_slot="00:00", chain="mainchain")
    assert found.id == created.id
    assert await get_snapshot_count(db_session, "mainchain") == 1
    assert await get_snapshot_count(db_session, "esc") == 0


@pytest.mark.asyncio
async def test_latest_snapshot_per_chain(db_session):
    snaps = await _ingest_series(db_session, [{"Ea": 10}, {"Ea": 11}, {"Ea": 12}])
    await _ingest_series(db_session, [{"Ex": 1}], chain="esc")

    latest = await get_latest_snapshot(db_session, "mainchain")
    assert latest.id == snaps[-1].id
    before = await get_latest_snapshot(db_session, "mainchain", before=snaps[-1])
    assert before.id == snaps[1].id
    assert await get_latest_snapshot(db_session, "mainchain", before=snaps[0]) is None


@pytest.mark.asyncio
async def test_address_histories_window_oldest_first(db_session):
    snaps = await _ingest_series(db_session, [{"Ea": 10 + i, "Eb": 100} for i in range(5)])
    histories = await get_address_histories(
        db_session, ["Ea", "Ezz"], chain="mainchain", before=snaps[-1], window=3
    )
    assert list(histories) == ["Ea"]
    assert [p.balance for p in histories["Ea"]] == [11.0, 12.0, 13.0]
    assert [p.rank for p in histories["Ea"]] == [2, 2, 2]

    history = await get_address_history(db_session, "Ea", "mainchain")
    assert [entry.balance for entry, _ in history] == [10.0, 11.0, 12.0, 13.0, 14.0]


@pytest.mark.asyncio
async def test_entries_with_labels(db_session):
    snaps = await _ingest_series(db_session, [{"Ea": 10, "Eb": 5}])
    await upsert_address_label(db_session, address="Ea", label="Old", category="whale")
    await upsert_address_label(db_session, address="Ea", label="KuCoin Exchange", category="exchange")

    label = await get_address_label(db_session, "Ea")
    assert label.label == "KuCoin Exchange"

    rows = await get_entries_with_labels(db_session, snaps[0].id)
    assert [(r["entry"].address, r["label"], r["category"]) for r in rows] == [
        ("Ea", "KuCoin Exchange", "exchange"),
        ("Eb", None, None),
    ]


@pytest.mark.asyncio
async def test_streak_leaders(db_session):
    await _ingest_series(
        db_session,
        [
            {"Ea": 10, "Eb": 20, "Ec": 5},
            {"Ea": 11, "Eb": 19, "Ec": 5},
            {"Ea": 12, "Eb": 18, "Ec": 5},
        ],
    )
    leaders = await get_streak_leaders(db_session, "mainchain", kind="balance")
    assert {e.address: e.balance_streak for e in leaders} == {"Ea": 2, "Eb": -2}

    with pytest.raises(ValueError):
        await get_streak_leaders(db_session, "mainchain", kind="volume")


@pytest.mark.asyncio
async def test_concentration_history_and_daily_summary(db_session):
    await _ingest_series(db_session, [{"Ea": 10}, {"Ea": 12}, {"Ea": 9}])
    history = await get_concentration_history(db_session, "mainchain", limit=2)
    assert [m.time_slot for m in history] == ["00:05", "00:10"]
    assert history[-1].net_flow == pytest.approx(-3.0)

    summaries = await get_recent_daily_summaries(db_session)
    assert len(summaries) == 1
    assert summaries[0].date == DAY


@pytest.mark.asyncio
async def test_cross_chain_supply_recorded_once(db_session):
    figures = CrossChainFigures(mainchain_top100=1_000_000.0, esc_bridge_balance=250_000.0)
    assert await record_cross_chain_supply(db_session, date=DAY, time_slot="00:00", figures=figures, fetched_at=NOW)
    assert not await record_cross_chain_supply(db_session, date=DAY, time_slot="00:00", figures=figures, fetched_at=NOW)

    rows = await get_cross_chain_history(db_session)
    assert len(rows) == 1
    assert rows[0].esc_bridge_balance == pytest.approx(250_000.0)
    assert rows[0].eth_bridged_supply is None


@pytest.mark.asyncio
async def test_find_dormant_wallets(db_session):
    slots = [{"Ea": 10, "Eb": 5}] + [{"Ea": 10}] * 4 + [{"Ea": 10, "Eb": 6}]
    await _ingest_series(db_session, slots)
    dormant = await find_dormant_wallets(db_session, "mainchain", min_gap_snapshots=3)
    assert list(dormant) == ["Eb"]
    assert dormant["Eb"].gap_snapshots == 4
    assert await find_dormant_wallets(db_session, "mainchain", min_gap_snapshots=5) == {}
