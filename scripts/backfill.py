"""Backfill analytics for snapshots ingested before they were computed.

Usage:
    python scripts/backfill.py                 # metrics + entry analytics, primary chain
    python scripts/backfill.py --chain esc --metrics-only
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import async_session_factory  # noqa: E402
from whale_tracker.services.backfill import (  # noqa: E402
    backfill_concentration_metrics,
    backfill_entry_analytics,
)
from whale_tracker.utils.logger import setup_logger  # noqa: E402


async def main() -> None:
    parser = argparse.ArgumentParser(description="Backfill snapshot analytics")
    parser.add_argument("--chain", default=settings.primary_chain)
    parser.add_argument("--metrics-only", action="store_true", help="Skip per-entry streaks/volatility/trend")
    args = parser.parse_args()

    setup_logger("backfill", json_logs=settings.json_logs, level=settings.log_level)

    async with async_session_factory() as session:
        if not args.metrics_only:
            await backfill_entry_analytics(session, args.chain)
            await session.commit()
        await backfill_concentration_metrics(session, args.chain)
        await session.commit()


if __name__ == "__main__":
    asyncio.run(main())
