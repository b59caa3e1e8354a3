"""Upsert the known-address labels (exchanges, pools, DAO, sidechains, whales).

Usage:
    python scripts/seed_labels.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import async_session_factory  # noqa: E402
from whale_tracker.services.labels import seed_address_labels  # noqa: E402
from whale_tracker.utils.logger import setup_logger  # noqa: E402


async def main() -> None:
    setup_logger("labels", json_logs=settings.json_logs, level=settings.log_level)
    async with async_session_factory() as session:
        await seed_address_labels(session)
        await session.commit()


if __name__ == "__main__":
    asyncio.run(main())
