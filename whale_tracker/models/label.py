from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from whale_tracker.models.base import Base


class AddressLabel(Base):
    """Human-assigned identity for an address (exchange, pool, DAO, ...)."""

    __tablename__ = "address_labels"

    address: Mapped[str] = mapped_column(String(64), primary_key=True)
    label: Mapped[str] = mapped_column(String(255))
    category: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(String(1000))
