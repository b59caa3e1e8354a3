"""chain_discriminator

Add the chain column to snapshots and concentration_metrics, move snapshot
uniqueness to (date, time_slot, chain) and create cross_chain_supply.
Steps are guarded, so a partially migrated database is picked up where it
stopped.

Revision ID: 0002
Revises: 0001
Create Date: 2026-02-03 14:30:00.000000

"""
from typing import Sequence, Union

from alembic import op

from whale_tracker.db.migrations import run_chain_migration


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    run_chain_migration(op.get_bind())


def downgrade() -> None:
    op.drop_table('cross_chain_supply')
    op.drop_index('idx_concentration_chain_date', 'concentration_metrics')
    op.drop_index('idx_snapshots_chain_date', 'snapshots')
    op.drop_index('uq_snapshots_date_slot_chain', 'snapshots')
    with op.batch_alter_table('concentration_metrics') as batch:
        batch.drop_column('chain')
    with op.batch_alter_table('snapshots') as batch:
        batch.drop_column('chain')
        batch.create_unique_constraint('snapshots_date_time_slot', ['date', 'time_slot'])
