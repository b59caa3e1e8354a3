from whale_tracker.models.analytics import ConcentrationMetrics, WalletCorrelation, WeeklySummary
from whale_tracker.models.base import Base
from whale_tracker.models.label import AddressLabel
from whale_tracker.models.snapshot import DailySummary, Snapshot, SnapshotEntry
from whale_tracker.models.supply import CrossChainSupply

__all__ = [
    "Base",
    "Snapshot",
    "SnapshotEntry",
    "DailySummary",
    "AddressLabel",
    "ConcentrationMetrics",
    "WeeklySummary",
    "WalletCorrelation",
    "CrossChainSupply",
]
