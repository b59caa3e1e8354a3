"""Data persistence layer — maps analyzer/analytics results to SQLAlchemy models.

All writers flush only; the caller owns the transaction and commits.
"""

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable, Sequence

from loguru import logger
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from whale_tracker.analytics.concentration import ConcentrationSnapshot
from whale_tracker.analytics.correlation import PairCorrelation
from whale_tracker.analytics.dormancy import Appearance, DormancyInfo, detect_dormancy
from whale_tracker.analytics.trends import HistoryPoint
from whale_tracker.analytics.weekly import WeekRollup
from whale_tracker.db.upsert import conflict_insert
from whale_tracker.models.analytics import ConcentrationMetrics, WalletCorrelation, WeeklySummary
from whale_tracker.models.label import AddressLabel
from whale_tracker.models.snapshot import DailySummary, Snapshot, SnapshotEntry
from whale_tracker.models.supply import CrossChainSupply
from whale_tracker.services.analyzer import AnalyzedEntry, SnapshotAnalysis
from whale_tracker.services.schemas import CrossChainFigures


def _before(date: dt.date, time_slot: str):
    """Snapshots strictly earlier than (date, time_slot)."""
    return or_(
        Snapshot.date < date,
        and_(Snapshot.date == date, Snapshot.time_slot < time_slot),
    )


# === Snapshots ===


async def insert_snapshot(
    session: AsyncSession,
    *,
    chain: str,
    date: dt.date,
    time_slot: str,
    fetched_at: dt.datetime,
    total_balances: float,
    total_richlist: int,
) -> Snapshot | None:
    """Insert a snapshot row; returns None if (date, time_slot, chain) already exists."""
    stmt = (
        conflict_insert(session, Snapshot)
        .values(
            chain=chain,
            date=date,
            time_slot=time_slot,
            fetched_at=fetched_at,
            total_balances=total_balances,
            total_richlist=total_richlist,
        )
        .on_conflict_do_nothing(index_elements=["date", "time_slot", "chain"])
        .returning(Snapshot)
    )
    result = await session.execute(stmt)
    snapshot = result.scalar_one_or_none()
    await session.flush()
    return snapshot


async def get_snapshot(
    session: AsyncSession, *, date: dt.date, time_slot: str, chain: str
) -> Snapshot | None:
    stmt = select(Snapshot).where(
        Snapshot.date == date,
        Snapshot.time_slot == time_slot,
        Snapshot.chain == chain,
    )
    return await session.scalar(stmt)


async def get_latest_snapshot(
    session: AsyncSession,
    chain: str,
    *,
    before: Snapshot | None = None,
) -> Snapshot | None:
    """Most recent snapshot of a chain, optionally the one right before ``before``."""
    stmt = select(Snapshot).where(Snapshot.chain == chain)
    if before is not None:
        stmt = stmt.where(_before(before.date, before.time_slot))
    stmt = stmt.order_by(Snapshot.date.desc(), Snapshot.time_slot.desc()).limit(1)
    return await session.scalar(stmt)


async def get_snapshots_between(
    session: AsyncSession, chain: str, start: dt.date, end: dt.date
) -> list[Snapshot]:
    stmt = (
        select(Snapshot)
        .where(Snapshot.chain == chain, Snapshot.date >= start, Snapshot.date <= end)
        .order_by(Snapshot.date, Snapshot.time_slot)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_snapshot_count(session: AsyncSession, chain: str | None = None) -> int:
    stmt = select(func.count(Snapshot.id))
    if chain is not None:
        stmt = stmt.where(Snapshot.chain == chain)
    return await session.scalar(stmt) or 0


# === Entries ===


async def insert_entries(
    session: AsyncSession, snapshot_id: int, entries: Sequence[AnalyzedEntry]
) -> list[SnapshotEntry]:
    rows = [
        SnapshotEntry(
            snapshot_id=snapshot_id,
            rank=e.rank,
            address=e.address,
            balance=e.balance,
            percentage=e.percentage,
            prev_rank=e.prev_rank,
            rank_change=e.rank_change,
            balance_change=e.balance_change,
            rank_volatility=e.rank_volatility,
            balance_trend=str(e.balance_trend),
            rank_streak=e.rank_streak,
            balance_streak=e.balance_streak,
        )
        for e in entries
    ]
    session.add_all(rows)
    await session.flush()
    return rows


async def get_entries(session: AsyncSession, snapshot_id: int) -> list[SnapshotEntry]:
    stmt = (
        select(SnapshotEntry)
        .where(SnapshotEntry.snapshot_id == snapshot_id)
        .order_by(SnapshotEntry.rank)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_address_histories(
    session: AsyncSession,
    addresses: Iterable[str],
    *,
    chain: str,
    before: Snapshot,
    window: int = 30,
) -> dict[str, list[HistoryPoint]]:
    """Last ``window`` entries per address in snapshots before ``before``, oldest first."""
    addresses = list(addresses)
    if not addresses:
        return {}

    ranked = (
        select(
            SnapshotEntry.address,
            SnapshotEntry.rank,
            SnapshotEntry.balance,
            SnapshotEntry.rank_streak,
            SnapshotEntry.balance_streak,
            Snapshot.date,
            Snapshot.time_slot,
            func.row_number()
            .over(
                partition_by=SnapshotEntry.address,
                order_by=(Snapshot.date.desc(), Snapshot.time_slot.desc()),
            )
            .label("rn"),
        )
        .join(Snapshot, Snapshot.id == SnapshotEntry.snapshot_id)
        .where(
            SnapshotEntry.address.in_(addresses),
            Snapshot.chain == chain,
            _before(before.date, before.time_slot),
        )
        .subquery()
    )
    stmt = (
        select(ranked)
        .where(ranked.c.rn <= window)
        .order_by(ranked.c.address, ranked.c.date, ranked.c.time_slot)
    )
    result = await session.execute(stmt)

    histories: dict[str, list[HistoryPoint]] = defaultdict(list)
    for row in result.mappings():
        histories[row["address"]].append(
            HistoryPoint(
                rank=row["rank"],
                balance=float(row["balance"]),
                rank_streak=row["rank_streak"],
                balance_streak=row["balance_streak"],
            )
        )
    return dict(histories)


async def get_entries_with_labels(session: AsyncSession, snapshot_id: int) -> list[dict]:
    stmt = (
        select(SnapshotEntry, AddressLabel.label, AddressLabel.category, AddressLabel.notes)
        .outerjoin(AddressLabel, AddressLabel.address == SnapshotEntry.address)
        .where(SnapshotEntry.snapshot_id == snapshot_id)
        .order_by(SnapshotEntry.rank)
    )
    result = await session.execute(stmt)
    return [
        {"entry": entry, "label": label, "category": category, "notes": notes}
        for entry, label, category, notes in result.all()
    ]


async def get_address_history(
    session: AsyncSession, address: str, chain: str
) -> list[tuple[SnapshotEntry, Snapshot]]:
    stmt = (
        select(SnapshotEntry, Snapshot)
        .join(Snapshot, Snapshot.id == SnapshotEntry.snapshot_id)
        .where(SnapshotEntry.address == address, Snapshot.chain == chain)
        .order_by(Snapshot.date, Snapshot.time_slot)
    )
    result = await session.execute(stmt)
    return [(entry, snapshot) for entry, snapshot in result.all()]


async def get_streak_leaders(
    session: AsyncSession, chain: str, *, kind: str = "rank", limit: int = 10
) -> list[SnapshotEntry]:
    """Entries of the latest snapshot with the longest running streaks."""
    if kind not in ("rank", "balance"):
        raise ValueError(f"unknown streak kind: {kind}")
    latest = await get_latest_snapshot(session, chain)
    if latest is None:
        return []
    column = SnapshotEntry.rank_streak if kind == "rank" else SnapshotEntry.balance_streak
    stmt = (
        select(SnapshotEntry)
        .where(SnapshotEntry.snapshot_id == latest.id, column.is_not(None), column != 0)
        .order_by(func.abs(column).desc(), SnapshotEntry.rank)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_dormant_wallets(
    session: AsyncSession,
    chain: str,
    *,
    min_gap_snapshots: int = settings.dormancy_min_gap_snapshots,
) -> dict[str, DormancyInfo]:
    """Addresses that left the top list for at least ``min_gap_snapshots`` and returned."""
    ordered = await session.execute(
        select(Snapshot.id).where(Snapshot.chain == chain).order_by(Snapshot.date, Snapshot.time_slot)
    )
    snapshot_ids = list(ordered.scalars().all())

    rows = await session.execute(
        select(SnapshotEntry.address, Snapshot.id, Snapshot.date)
        .join(Snapshot, Snapshot.id == SnapshotEntry.snapshot_id)
        .where(Snapshot.chain == chain)
    )
    appearances: dict[str, list[Appearance]] = defaultdict(list)
    for address, snapshot_id, date in rows.all():
        appearances[address].append(Appearance(snapshot_id=snapshot_id, date=date))

    dormant: dict[str, DormancyInfo] = {}
    for address, seen in appearances.items():
        info = detect_dormancy(seen, snapshot_ids, min_gap_snapshots=min_gap_snapshots)
        if info is not None:
            dormant[address] = info
    return dormant


# === Concentration metrics ===


async def insert_concentration_metrics(
    session: AsyncSession, snapshot: Snapshot, metrics: ConcentrationSnapshot
) -> ConcentrationMetrics:
    row = ConcentrationMetrics(
        snapshot_id=snapshot.id,
        chain=snapshot.chain,
        date=snapshot.date,
        time_slot=snapshot.time_slot,
        gini_coefficient=metrics.gini_coefficient,
        hhi=metrics.hhi,
        top10_pct=metrics.top10_pct,
        top20_pct=metrics.top20_pct,
        top50_pct=metrics.top50_pct,
        net_flow=metrics.net_flow,
        total_inflow=metrics.total_inflow,
        total_outflow=metrics.total_outflow,
        whale_activity_index=metrics.whale_activity_index,
        active_wallets=metrics.active_wallets,
        avg_rank_change=metrics.avg_rank_change,
        avg_balance_change_pct=metrics.avg_balance_change_pct,
        new_entry_count=metrics.new_entry_count,
        dropout_count=metrics.dropout_count,
        total_balance=metrics.total_balance,
    )
    session.add(row)
    await session.flush()
    return row


async def get_concentration_for_snapshot(
    session: AsyncSession, snapshot_id: int
) -> ConcentrationMetrics | None:
    return await session.scalar(
        select(ConcentrationMetrics).where(ConcentrationMetrics.snapshot_id == snapshot_id)
    )


async def get_concentration_between(
    session: AsyncSession, chain: str, start: dt.date, end: dt.date
) -> list[ConcentrationMetrics]:
    stmt = (
        select(ConcentrationMetrics)
        .where(
            ConcentrationMetrics.chain == chain,
            ConcentrationMetrics.date >= start,
            ConcentrationMetrics.date <= end,
        )
        .order_by(ConcentrationMetrics.date, ConcentrationMetrics.time_slot)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_concentration_history(
    session: AsyncSession, chain: str, limit: int = 288
) -> list[ConcentrationMetrics]:
    """Most recent ``limit`` metric rows, oldest first (288 = one day of 5-min slots)."""
    stmt = (
        select(ConcentrationMetrics)
        .where(ConcentrationMetrics.chain == chain)
        .order_by(ConcentrationMetrics.date.desc(), ConcentrationMetrics.time_slot.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(reversed(result.scalars().all()))


# === Daily summary ===


async def upsert_daily_summary(
    session: AsyncSession, date: dt.date, analysis: SnapshotAnalysis
) -> None:
    values = {
        "new_entries": analysis.new_entries,
        "dropouts": analysis.dropouts,
        "biggest_gainer_address": analysis.biggest_gainer.address if analysis.biggest_gainer else None,
        "biggest_gainer_change": analysis.biggest_gainer.change if analysis.biggest_gainer else None,
        "biggest_loser_address": analysis.biggest_loser.address if analysis.biggest_loser else None,
        "biggest_loser_change": analysis.biggest_loser.change if analysis.biggest_loser else None,
    }
    stmt = (
        conflict_insert(session, DailySummary)
        .values(date=date, **values)
        .on_conflict_do_update(index_elements=["date"], set_=values)
    )
    await session.execute(stmt)
    await session.flush()


async def get_recent_daily_summaries(session: AsyncSession, limit: int = 7) -> list[DailySummary]:
    stmt = select(DailySummary).order_by(DailySummary.date.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


# === Address labels ===


async def upsert_address_label(
    session: AsyncSession,
    *,
    address: str,
    label: str,
    category: str | None = None,
    notes: str | None = None,
) -> None:
    stmt = (
        conflict_insert(session, AddressLabel)
        .values(address=address, label=label, category=category, notes=notes)
        .on_conflict_do_update(
            index_elements=["address"],
            set_={"label": label, "category": category, "notes": notes},
        )
    )
    await session.execute(stmt)
    await session.flush()


async def get_address_label(session: AsyncSession, address: str) -> AddressLabel | None:
    return await session.get(AddressLabel, address)


# === Weekly summary ===


async def upsert_weekly_summary(session: AsyncSession, rollup: WeekRollup) -> None:
    """Insert or overwrite the summary for ``rollup.week_start``."""
    values = {
        "week_end": rollup.week_end,
        "gini_start": rollup.gini_start,
        "gini_end": rollup.gini_end,
        "gini_change": rollup.gini_change,
        "total_balance_start": rollup.total_balance_start,
        "total_balance_end": rollup.total_balance_end,
        "net_flow_total": rollup.net_flow_total,
        "avg_whale_activity_index": rollup.avg_whale_activity_index,
        "total_new_entries": rollup.total_new_entries,
        "total_dropouts": rollup.total_dropouts,
        "top_accumulator_address": rollup.top_accumulator_address,
        "top_accumulator_change": rollup.top_accumulator_change,
        "top_distributor_address": rollup.top_distributor_address,
        "top_distributor_change": rollup.top_distributor_change,
        "avg_rank_volatility": rollup.avg_rank_volatility,
        "snapshot_count": rollup.snapshot_count,
    }
    stmt = (
        conflict_insert(session, WeeklySummary)
        .values(week_start=rollup.week_start, **values)
        .on_conflict_do_update(
            index_elements=["week_start"],
            set_={**values, "computed_at": func.now()},
        )
    )
    await session.execute(stmt)
    await session.flush()


async def get_recent_weekly_summaries(session: AsyncSession, limit: int = 12) -> list[WeeklySummary]:
    stmt = select(WeeklySummary).order_by(WeeklySummary.week_start.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


# === Wallet correlations ===


async def upsert_wallet_correlations(
    session: AsyncSession,
    pairs: Sequence[PairCorrelation],
    *,
    period: str,
    computed_at: dt.datetime,
) -> int:
    if not pairs:
        return 0
    stmt = conflict_insert(session, WalletCorrelation).values(
        [
            {
                "address_a": p.address_a,
                "address_b": p.address_b,
                "period": period,
                "correlation": p.correlation,
                "data_points": p.data_points,
                "computed_at": computed_at,
            }
            for p in pairs
        ]
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["address_a", "address_b", "period"],
        set_={
            "correlation": stmt.excluded.correlation,
            "data_points": stmt.excluded.data_points,
            "computed_at": stmt.excluded.computed_at,
        },
    )
    await session.execute(stmt)
    await session.flush()
    return len(pairs)


async def prune_wallet_correlations(
    session: AsyncSession, *, period: str, computed_at: dt.datetime
) -> int:
    """Drop rows of ``period`` not refreshed by the run stamped ``computed_at``."""
    stmt = delete(WalletCorrelation).where(
        WalletCorrelation.period == period,
        WalletCorrelation.computed_at != computed_at,
    )
    result = await session.execute(stmt)
    await session.flush()
    return result.rowcount or 0


async def get_top_correlations(
    session: AsyncSession, period: str, limit: int = 20
) -> list[WalletCorrelation]:
    stmt = (
        select(WalletCorrelation)
        .where(WalletCorrelation.period == period)
        .order_by(func.abs(WalletCorrelation.correlation).desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_correlations_for_address(
    session: AsyncSession, address: str, period: str
) -> list[WalletCorrelation]:
    stmt = (
        select(WalletCorrelation)
        .where(
            WalletCorrelation.period == period,
            or_(WalletCorrelation.address_a == address, WalletCorrelation.address_b == address),
        )
        .order_by(WalletCorrelation.correlation.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


# === Cross-chain supply ===


async def record_cross_chain_supply(
    session: AsyncSession,
    *,
    date: dt.date,
    time_slot: str,
    figures: CrossChainFigures,
    fetched_at: dt.datetime,
) -> bool:
    """Store one cross-chain row; False if the slot was already recorded."""
    stmt = (
        conflict_insert(session, CrossChainSupply)
        .values(date=date, time_slot=time_slot, fetched_at=fetched_at, **figures.model_dump())
        .on_conflict_do_nothing(index_elements=["date", "time_slot"])
        .returning(CrossChainSupply.id)
    )
    result = await session.execute(stmt)
    inserted = result.scalar_one_or_none() is not None
    await session.flush()
    if not inserted:
        logger.debug(f"[SUPPLY] Cross-chain supply for {date} {time_slot} already recorded")
    return inserted


async def get_cross_chain_history(session: AsyncSession, limit: int = 288) -> list[CrossChainSupply]:
    stmt = (
        select(CrossChainSupply)
        .order_by(CrossChainSupply.date.desc(), CrossChainSupply.time_slot.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(reversed(result.scalars().all()))
