import datetime as dt

from sqlalchemy import Date, DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from whale_tracker.models.base import Balance, Base


class CrossChainSupply(Base):
    """Supply figures across mainchain, ESC and the Ethereum bridge for one time slot."""

    __tablename__ = "cross_chain_supply"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date)
    time_slot: Mapped[str] = mapped_column(String(5))
    fetched_at: Mapped[dt.datetime] = mapped_column(DateTime, server_default=func.now())
    mainchain_top100: Mapped[float | None] = mapped_column(Balance)
    esc_bridge_balance: Mapped[float | None] = mapped_column(Balance)
    esc_total_supply: Mapped[float | None] = mapped_column(Balance)
    esc_top100: Mapped[float | None] = mapped_column(Balance)
    eth_bridged_supply: Mapped[float | None] = mapped_column(Balance)  # ShadowTokens bridge (ESC -> Ethereum)

    __table_args__ = (
        UniqueConstraint("date", "time_slot", name="cross_chain_supply_date_time_slot_key"),
    )
