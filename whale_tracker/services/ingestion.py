"""Snapshot ingestion — one rich list in, snapshot + entries + metrics out."""

import datetime as dt
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from whale_tracker.analytics.concentration import build_concentration_metrics
from whale_tracker.exceptions import InvalidSnapshotError
from whale_tracker.models.snapshot import Snapshot
from whale_tracker.services.analyzer import analyze_snapshot
from whale_tracker.services.persistence import (
    get_address_histories,
    get_entries,
    get_latest_snapshot,
    insert_concentration_metrics,
    insert_entries,
    insert_snapshot,
    upsert_daily_summary,
)
from whale_tracker.services.schemas import RichListItem


@dataclass
class IngestResult:
    snapshot: Snapshot
    entry_count: int
    new_entries: int
    dropouts: int
    gini_coefficient: float
    whale_activity_index: float


def parse_rich_list(items: Sequence[RichListItem | Mapping]) -> list[RichListItem]:
    """Validate raw explorer rows, raising InvalidSnapshotError on bad input."""
    parsed = []
    for raw in items:
        if isinstance(raw, RichListItem):
            parsed.append(raw)
            continue
        try:
            parsed.append(RichListItem.model_validate(raw))
        except ValidationError as e:
            raise InvalidSnapshotError(f"invalid rich list row {raw!r}: {e}") from e

    addresses = [p.address for p in parsed]
    if len(set(addresses)) != len(addresses):
        raise InvalidSnapshotError("rich list contains duplicate addresses")
    return parsed


def current_time_slot(now: dt.datetime, minutes: int = 5) -> str:
    """UTC time slot "HH:MM" floored to ``minutes``."""
    return f"{now.hour:02d}:{now.minute // minutes * minutes:02d}"


async def ingest_snapshot(
    session: AsyncSession,
    holders: Sequence[RichListItem | Mapping],
    *,
    chain: str = "mainchain",
    date: dt.date | None = None,
    time_slot: str | None = None,
    fetched_at: dt.datetime | None = None,
) -> IngestResult | None:
    """Persist one top-N capture with every per-snapshot derived value.

    A snapshot that already exists for (date, time_slot, chain) is skipped and
    None is returned. Only flushes; commit is up to the caller.
    """
    fetched_at = fetched_at or dt.datetime.now(dt.UTC).replace(tzinfo=None)
    date = date or fetched_at.date()
    time_slot = time_slot or current_time_slot(fetched_at, settings.time_slot_minutes)

    items = parse_rich_list(holders)
    if not items:
        raise InvalidSnapshotError("rich list is empty")

    snapshot = await insert_snapshot(
        session,
        chain=chain,
        date=date,
        time_slot=time_slot,
        fetched_at=fetched_at,
        total_balances=sum(i.balance for i in items),
        total_richlist=len(items),
    )
    if snapshot is None:
        logger.info(f"[INGEST] Snapshot {chain} {date} {time_slot} already exists, skipping")
        return None

    previous = await get_latest_snapshot(session, chain, before=snapshot)
    previous_entries = await get_entries(session, previous.id) if previous else []
    history = await get_address_histories(
        session,
        [i.address for i in items],
        chain=chain,
        before=snapshot,
        window=settings.rank_volatility_window,
    )

    analysis = analyze_snapshot(
        items,
        previous_entries,
        history,
        volatility_window=settings.rank_volatility_window,
        trend_window=settings.balance_trend_window,
    )
    await insert_entries(session, snapshot.id, analysis.entries)
    # daily_summary is keyed by date alone and tracks the primary chain
    if chain == settings.primary_chain:
        await upsert_daily_summary(session, date, analysis)

    metrics = build_concentration_metrics(
        analysis.entries,
        previous_total=previous.total_balances if previous else None,
        new_entry_count=len(analysis.new_entries),
        dropout_count=len(analysis.dropouts),
    )
    await insert_concentration_metrics(session, snapshot, metrics)

    logger.info(
        f"[INGEST] Snapshot {snapshot.id} ({chain} {date} {time_slot}): "
        f"{len(analysis.entries)} entries, {len(analysis.new_entries)} new, "
        f"{len(analysis.dropouts)} dropouts, Gini={metrics.gini_coefficient:.4f}, "
        f"WAI={metrics.whale_activity_index}"
    )

    return IngestResult(
        snapshot=snapshot,
        entry_count=len(analysis.entries),
        new_entries=len(analysis.new_entries),
        dropouts=len(analysis.dropouts),
        gini_coefficient=metrics.gini_coefficient,
        whale_activity_index=metrics.whale_activity_index,
    )
