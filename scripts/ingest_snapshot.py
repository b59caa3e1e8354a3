"""Ingest one rich list capture from a JSON file.

The file holds either a list of ``{"address", "balance", "percentage"}``
rows or an explorer response with the rows under ``"richlist"``.

Usage:
    python scripts/ingest_snapshot.py richlist.json
    python scripts/ingest_snapshot.py esc.json --chain esc --date 2024-01-01 --time-slot 00:00
"""

import argparse
import asyncio
import datetime as dt
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import async_session_factory  # noqa: E402
from whale_tracker.services.ingestion import ingest_snapshot  # noqa: E402
from whale_tracker.utils.logger import setup_logger  # noqa: E402


def load_rich_list(path: Path) -> list[dict]:
    payload = json.loads(path.read_text())
    if isinstance(payload, dict):
        payload = payload.get("richlist", [])
    return payload


async def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest a rich list snapshot")
    parser.add_argument("path", type=Path, help="JSON file with the rich list rows")
    parser.add_argument("--chain", default=settings.primary_chain)
    parser.add_argument("--date", type=dt.date.fromisoformat, default=None, help="YYYY-MM-DD (UTC)")
    parser.add_argument("--time-slot", default=None, help="HH:MM (UTC)")
    args = parser.parse_args()

    setup_logger("ingest", json_logs=settings.json_logs, level=settings.log_level)
    rows = load_rich_list(args.path)

    async with async_session_factory() as session:
        result = await ingest_snapshot(
            session, rows, chain=args.chain, date=args.date, time_slot=args.time_slot
        )
        await session.commit()

    if result is None:
        logger.info("Nothing ingested, snapshot already present")


if __name__ == "__main__":
    asyncio.run(main())
