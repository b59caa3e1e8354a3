import datetime as dt

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from whale_tracker.models.base import Balance, Base


class Snapshot(Base):
    """One point-in-time capture of the top-N holders of one chain."""

    __tablename__ = "snapshots"

    id: Mapped[int] = mapped_column(primary_key=True)
    chain: Mapped[str] = mapped_column(String(20), default="mainchain", server_default="mainchain")
    date: Mapped[dt.date] = mapped_column(Date)
    time_slot: Mapped[str] = mapped_column(String(5))  # "HH:MM" UTC
    fetched_at: Mapped[dt.datetime] = mapped_column(DateTime, server_default=func.now())
    total_balances: Mapped[float | None] = mapped_column(Balance)
    total_richlist: Mapped[int | None] = mapped_column(Integer)

    __table_args__ = (
        Index("uq_snapshots_date_slot_chain", "date", "time_slot", "chain", unique=True),
        Index("idx_snapshots_chain_date", "chain", "date"),
    )


class SnapshotEntry(Base):
    """One holder's rank and balance within a snapshot, plus derived history fields."""

    __tablename__ = "snapshot_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    snapshot_id: Mapped[int] = mapped_column(ForeignKey("snapshots.id", ondelete="CASCADE"))
    rank: Mapped[int] = mapped_column(Integer)
    address: Mapped[str] = mapped_column(String(64))
    balance: Mapped[float] = mapped_column(Balance)
    percentage: Mapped[float | None] = mapped_column(Float)
    prev_rank: Mapped[int | None] = mapped_column(Integer)
    rank_change: Mapped[int | None] = mapped_column(Integer)  # prev_rank - rank, positive = moved up
    balance_change: Mapped[float | None] = mapped_column(Balance)

    # Derived from the address's trailing history
    rank_volatility: Mapped[float | None] = mapped_column(Float)
    balance_trend: Mapped[str | None] = mapped_column(String(20))  # accumulating|distributing|holding|erratic
    rank_streak: Mapped[int | None] = mapped_column(Integer)
    balance_streak: Mapped[int | None] = mapped_column(Integer)

    __table_args__ = (
        UniqueConstraint("snapshot_id", "rank", name="uq_snapshot_entries_snapshot_rank"),
        Index("snapshot_entries_snapshot_id_idx", "snapshot_id"),
        Index("snapshot_entries_address_idx", "address"),
    )


class DailySummary(Base):
    """Per-date churn and biggest movers of the primary chain, rewritten by each of its ingestions."""

    __tablename__ = "daily_summary"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, unique=True)
    new_entries: Mapped[list | None] = mapped_column(JSON)
    dropouts: Mapped[list | None] = mapped_column(JSON)
    biggest_gainer_address: Mapped[str | None] = mapped_column(String(64))
    biggest_gainer_change: Mapped[float | None] = mapped_column(Balance)
    biggest_loser_address: Mapped[str | None] = mapped_column(String(64))
    biggest_loser_change: Mapped[float | None] = mapped_column(Balance)
