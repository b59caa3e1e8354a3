"""Chain discriminator migration for databases created before multi-chain support.

Each step checks the live schema first, so the whole sequence can be re-run
at any time. Used by Alembic revision 0002 and ``scripts/migrate.py``.
"""

from collections.abc import Callable
from dataclasses import dataclass

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from loguru import logger
from sqlalchemy.engine import Connection

from whale_tracker.exceptions import MigrationError

LEGACY_SNAPSHOT_UNIQUE = "snapshots_date_time_slot"
SNAPSHOT_UNIQUE_INDEX = "uq_snapshots_date_slot_chain"
SNAPSHOT_CHAIN_INDEX = "idx_snapshots_chain_date"
CONCENTRATION_CHAIN_INDEX = "idx_concentration_chain_date"


@dataclass(frozen=True)
class MigrationStep:
    name: str
    is_applied: Callable[[sa.Inspector], bool]
    apply: Callable[[Operations, sa.Inspector], None]


def _columns(insp: sa.Inspector, table: str) -> set[str]:
    return {c["name"] for c in insp.get_columns(table)}


def _indexes(insp: sa.Inspector, table: str) -> set[str]:
    return {i["name"] for i in insp.get_indexes(table)}


def _chain_column() -> sa.Column:
    return sa.Column("chain", sa.String(20), nullable=False, server_default="mainchain")


# 1. snapshots.chain

def _has_snapshot_chain(insp: sa.Inspector) -> bool:
    return "chain" in _columns(insp, "snapshots")


def _add_snapshot_chain(ops: Operations, insp: sa.Inspector) -> None:
    ops.add_column("snapshots", _chain_column())


# 2. old (date, time_slot) unique constraint

def _legacy_unique_dropped(insp: sa.Inspector) -> bool:
    names = {uc["name"] for uc in insp.get_unique_constraints("snapshots")}
    return LEGACY_SNAPSHOT_UNIQUE not in names


def _drop_legacy_unique(ops: Operations, insp: sa.Inspector) -> None:
    # batch mode recreates the table on SQLite, plain ALTER elsewhere
    with ops.batch_alter_table("snapshots") as batch:
        batch.drop_constraint(LEGACY_SNAPSHOT_UNIQUE, type_="unique")


# 3. (date, time_slot, chain) unique index

def _has_snapshot_indexes(insp: sa.Inspector) -> bool:
    return {SNAPSHOT_UNIQUE_INDEX, SNAPSHOT_CHAIN_INDEX} <= _indexes(insp, "snapshots")


def _create_snapshot_indexes(ops: Operations, insp: sa.Inspector) -> None:
    existing = _indexes(insp, "snapshots")
    if SNAPSHOT_UNIQUE_INDEX not in existing:
        ops.create_index(
            SNAPSHOT_UNIQUE_INDEX, "snapshots", ["date", "time_slot", "chain"], unique=True
        )
    if SNAPSHOT_CHAIN_INDEX not in existing:
        ops.create_index(SNAPSHOT_CHAIN_INDEX, "snapshots", ["chain", "date"])


# 4. concentration_metrics.chain

def _has_concentration_chain(insp: sa.Inspector) -> bool:
    return (
        "chain" in _columns(insp, "concentration_metrics")
        and CONCENTRATION_CHAIN_INDEX in _indexes(insp, "concentration_metrics")
    )


def _add_concentration_chain(ops: Operations, insp: sa.Inspector) -> None:
    if "chain" not in _columns(insp, "concentration_metrics"):
        ops.add_column("concentration_metrics", _chain_column())
    ops.create_index(CONCENTRATION_CHAIN_INDEX, "concentration_metrics", ["chain", "date"])


# 5. cross_chain_supply

def _has_cross_chain_supply(insp: sa.Inspector) -> bool:
    return insp.has_table("cross_chain_supply")


def _create_cross_chain_supply(ops: Operations, insp: sa.Inspector) -> None:
    balance = sa.Numeric(38, 8)
    ops.create_table(
        "cross_chain_supply",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(5), nullable=False),
        sa.Column("fetched_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("mainchain_top100", balance, nullable=True),
        sa.Column("esc_bridge_balance", balance, nullable=True),
        sa.Column("esc_total_supply", balance, nullable=True),
        sa.Column("esc_top100", balance, nullable=True),
        sa.Column("eth_bridged_supply", balance, nullable=True),
        sa.UniqueConstraint("date", "time_slot", name="cross_chain_supply_date_time_slot_key"),
    )


CHAIN_MIGRATION: list[MigrationStep] = [
    MigrationStep("snapshots.chain", _has_snapshot_chain, _add_snapshot_chain),
    MigrationStep("drop snapshots_date_time_slot", _legacy_unique_dropped, _drop_legacy_unique),
    MigrationStep("snapshots (date, time_slot, chain) index", _has_snapshot_indexes, _create_snapshot_indexes),
    MigrationStep("concentration_metrics.chain", _has_concentration_chain, _add_concentration_chain),
    MigrationStep("cross_chain_supply table", _has_cross_chain_supply, _create_cross_chain_supply),
]


def run_chain_migration(
    conn: Connection, steps: list[MigrationStep] | None = None
) -> list[str]:
    """Apply every pending step in order; returns the names applied by this run.

    Stops at the first failing step and raises MigrationError carrying the
    steps completed so far.
    """
    steps = CHAIN_MIGRATION if steps is None else steps
    ops = Operations(MigrationContext.configure(conn))
    applied: list[str] = []

    logger.info(f"[MIGRATE] Running chain migration ({len(steps)} steps)")
    for step in steps:
        # fresh inspector per step, reflection results are cached
        insp = sa.inspect(conn)
        if step.is_applied(insp):
            logger.debug(f"[MIGRATE] {step.name}: already applied")
            continue
        try:
            step.apply(ops, insp)
        except Exception as e:
            logger.error(f"[MIGRATE] {step.name}: failed after {len(applied)} applied steps: {e}")
            raise MigrationError(step.name, applied, e) from e
        applied.append(step.name)
        logger.info(f"[MIGRATE] {step.name}: OK")

    logger.info(f"[MIGRATE] Chain migration complete, {len(applied)} steps applied")
    return applied
