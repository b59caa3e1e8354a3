"""Apply the chain discriminator migration outside Alembic.

Safe to run repeatedly; already-applied steps are skipped. Exits non-zero
when a step fails (earlier steps stay applied).

Usage:
    python scripts/migrate.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from whale_tracker.db.database import engine  # noqa: E402
from whale_tracker.db.migrations import run_chain_migration  # noqa: E402
from whale_tracker.exceptions import MigrationError  # noqa: E402
from whale_tracker.utils.logger import setup_logger  # noqa: E402


async def main() -> int:
    setup_logger("migrate", json_logs=settings.json_logs, level=settings.log_level)
    try:
        # autocommit: each completed step persists even if a later one fails
        async with engine.connect() as conn:
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
            await conn.run_sync(run_chain_migration)
    except MigrationError as e:
        logger.error(f"[MIGRATE] Stopped at '{e.step}', completed: {e.completed or 'none'}")
        return 1
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
