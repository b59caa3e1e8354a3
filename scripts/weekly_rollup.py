"""Roll up an ISO week of concentration metrics into weekly_summary.

Without --week the most recent completed week is rolled up. Re-running a
week overwrites its row.

Usage:
    python scripts/weekly_rollup.py
    python scripts/weekly_rollup.py --week 2024-01-01
"""

import argparse
import asyncio
import datetime as dt
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import async_session_factory  # noqa: E402
from whale_tracker.services.weekly import compute_weekly_summary, roll_up_last_week  # noqa: E402
from whale_tracker.utils.logger import setup_logger  # noqa: E402


async def main() -> None:
    parser = argparse.ArgumentParser(description="Weekly roll-up")
    parser.add_argument("--week", type=dt.date.fromisoformat, default=None, help="Monday of the week")
    args = parser.parse_args()

    setup_logger("weekly", json_logs=settings.json_logs, level=settings.log_level)

    async with async_session_factory() as session:
        if args.week:
            await compute_weekly_summary(session, args.week, chain=settings.primary_chain)
        else:
            await roll_up_last_week(session, chain=settings.primary_chain)
        await session.commit()


if __name__ == "__main__":
    asyncio.run(main())
