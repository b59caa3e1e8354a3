import datetime as dt

from sqlalchemy import (
    CheckConstraint,
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


class ConcentrationMetrics(Base):
    """Per-snapshot concentration, flow and activity metrics (1:1 with snapshots)."""

    __tablename__ = "concentration_metrics"

    id: Mapped[int] = mapped_column(primary_key=True)
    snapshot_id: Mapped[int] = mapped_column(
        ForeignKey("snapshots.id", ondelete="CASCADE"), unique=True
    )
    chain: Mapped[str] = mapped_column(String(20), default="mainchain", server_default="mainchain")
    date: Mapped[dt.date] = mapped_column(Date)
    time_slot: Mapped[str] = mapped_column(String(5))

    gini_coefficient: Mapped[float | None] = mapped_column(Float)  # 0..1
    hhi: Mapped[float | None] = mapped_column(Float)  # 0..10000
    top10_pct: Mapped[float | None] = mapped_column(Float)
    top20_pct: Mapped[float | None] = mapped_column(Float)
    top50_pct: Mapped[float | None] = mapped_column(Float)

    net_flow: Mapped[float | None] = mapped_column(Balance)
    total_inflow: Mapped[float | None] = mapped_column(Balance)
    total_outflow: Mapped[float | None] = mapped_column(Balance)
    whale_activity_index: Mapped[float | None] = mapped_column(Float)  # 0..100
    active_wallets: Mapped[int | None] = mapped_column(Integer)
    avg_rank_change: Mapped[float | None] = mapped_column(Float)
    avg_balance_change_pct: Mapped[float | None] = mapped_column(Float)
    new_entry_count: Mapped[int | None] = mapped_column(Integer)
    dropout_count: Mapped[int | None] = mapped_column(Integer)
    total_balance: Mapped[float | None] = mapped_column(Balance)
    computed_at: Mapped[dt.datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_concentration_chain_date", "chain", "date"),
    )


class WeeklySummary(Base):
    """ISO-week roll-up of concentration metrics, keyed by the Monday of the week."""

    __tablename__ = "weekly_summary"

    id: Mapped[int] = mapped_column(primary_key=True)
    week_start: Mapped[dt.date] = mapped_column(Date, unique=True)
    week_end: Mapped[dt.date] = mapped_column(Date)
    gini_start: Mapped[float | None] = mapped_column(Float)
    gini_end: Mapped[float | None] = mapped_column(Float)
    gini_change: Mapped[float | None] = mapped_column(Float)
    total_balance_start: Mapped[float | None] = mapped_column(Balance)
    total_balance_end: Mapped[float | None] = mapped_column(Balance)
    net_flow_total: Mapped[float | None] = mapped_column(Balance)
    avg_whale_activity_index: Mapped[float | None] = mapped_column(Float)
    total_new_entries: Mapped[int | None] = mapped_column(Integer)
    total_dropouts: Mapped[int | None] = mapped_column(Integer)
    top_accumulator_address: Mapped[str | None] = mapped_column(String(64))
    top_accumulator_change: Mapped[float | None] = mapped_column(Balance)
    top_distributor_address: Mapped[str | None] = mapped_column(String(64))
    top_distributor_change: Mapped[float | None] = mapped_column(Balance)
    avg_rank_volatility: Mapped[float | None] = mapped_column(Float)
    snapshot_count: Mapped[int] = mapped_column(Integer, default=0)
    computed_at: Mapped[dt.datetime] = mapped_column(DateTime, server_default=func.now())


class WalletCorrelation(Base):
    """Pearson correlation of two addresses' balance series over a trailing period."""

    __tablename__ = "wallet_correlations"

    id: Mapped[int] = mapped_column(primary_key=True)
    address_a: Mapped[str] = mapped_column(String(64))
    address_b: Mapped[str] = mapped_column(String(64))
    period: Mapped[str] = mapped_column(String(10))  # "30d", "90d"
    correlation: Mapped[float] = mapped_column(Float)
    data_points: Mapped[int] = mapped_column(Integer)
    computed_at: Mapped[dt.datetime] = mapped_column(DateTime)

    __table_args__ = (
        UniqueConstraint("address_a", "address_b", "period", name="uq_wallet_correlations_pair_period"),
        CheckConstraint("address_a < address_b", name="ck_wallet_correlations_pair_order"),
        Index("idx_wallet_correlations_period", "period"),
    )
