"""Recompute wallet balance correlations for the configured periods.

Usage:
    python scripts/scan_correlations.py
    python scripts/scan_correlations.py --days 30 --top-n 50
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import async_session_factory  # noqa: E402
from whale_tracker.services.correlations import scan_wallet_correlations  # noqa: E402
from whale_tracker.utils.logger import setup_logger  # noqa: E402


async def main() -> None:
    parser = argparse.ArgumentParser(description="Wallet correlation scan")
    parser.add_argument("--days", type=int, action="append", help="Period in days (repeatable)")
    parser.add_argument("--top-n", type=int, default=settings.correlation_top_n)
    parser.add_argument("--min-overlap", type=int, default=settings.correlation_min_overlap)
    args = parser.parse_args()

    setup_logger("correlations", json_logs=settings.json_logs, level=settings.log_level)

    for days in args.days or settings.correlation_periods_days:
        async with async_session_factory() as session:
            await scan_wallet_correlations(
                session,
                period_days=days,
                chain=settings.primary_chain,
                top_n=args.top_n,
                min_overlap=args.min_overlap,
            )
            await session.commit()


if __name__ == "__main__":
    asyncio.run(main())
