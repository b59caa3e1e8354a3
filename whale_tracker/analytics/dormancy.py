"""Dormancy detection — wallets that vanished from the top list and came back."""

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass
class Appearance:
    snapshot_id: int
    date: dt.date


@dataclass
class DormancyInfo:
    last_seen_date: dt.date
    re_entry_date: dt.date
    gap_snapshots: int
    gap_days: int


def detect_dormancy(
    appearances: Sequence[Appearance],
    snapshot_ids: Sequence[int],
    *,
    min_gap_snapshots: int = 144,
) -> DormancyInfo | None:
    """Find the longest run of snapshots an address was absent from, if it re-entered.

    ``snapshot_ids`` is the chain's full snapshot sequence in chronological
    order. Only gaps between two appearances count: snapshots before the
    first appearance are not dormancy, and a wallet still missing at the end
    has not re-entered yet.
    """
    if len(appearances) < 2:
        return None

    by_id = {a.snapshot_id: a for a in appearances}
    best_gap = 0
    best_last: Appearance | None = None
    best_return: Appearance | None = None
    last: Appearance | None = None
    gap = 0

    for sid in snapshot_ids:
        current = by_id.get(sid)
        if current is None:
            if last is not None:
                gap += 1
            continue
        if last is not None and gap > best_gap:
            best_gap, best_last, best_return = gap, last, current
        last = current
        gap = 0

    if best_gap < min_gap_snapshots or best_last is None or best_return is None:
        return None

    return DormancyInfo(
        last_seen_date=best_last.date,
        re_entry_date=best_return.date,
        gap_snapshots=best_gap,
        gap_days=(best_return.date - best_last.date).days,
    )
