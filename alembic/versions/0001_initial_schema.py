"""initial_schema

Single-chain schema: snapshots keyed by (date, time_slot), per-entry
history fields, daily/weekly summaries, concentration metrics, wallet
correlations and address labels.

Revision ID: 0001
Revises:
Create Date: 2026-01-12 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BALANCE = sa.Numeric(38, 8)


def upgrade() -> None:
    op.create_table(
        'snapshots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(5), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('total_balances', BALANCE, nullable=True),
        sa.Column('total_richlist', sa.Integer(), nullable=True),
        sa.UniqueConstraint('date', 'time_slot', name='snapshots_date_time_slot'),
    )

    op.create_table(
        'snapshot_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('snapshot_id', sa.Integer(), sa.ForeignKey('snapshots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(64), nullable=False),
        sa.Column('balance', BALANCE, nullable=False),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('prev_rank', sa.Integer(), nullable=True),
        sa.Column('rank_change', sa.Integer(), nullable=True),
        sa.Column('balance_change', BALANCE, nullable=True),
        sa.Column('rank_volatility', sa.Float(), nullable=True),
        sa.Column('balance_trend', sa.String(20), nullable=True),
        sa.Column('rank_streak', sa.Integer(), nullable=True),
        sa.Column('balance_streak', sa.Integer(), nullable=True),
        sa.UniqueConstraint('snapshot_id', 'rank', name='uq_snapshot_entries_snapshot_rank'),
    )
    op.create_index('snapshot_entries_snapshot_id_idx', 'snapshot_entries', ['snapshot_id'])
    op.create_index('snapshot_entries_address_idx', 'snapshot_entries', ['address'])

    op.create_table(
        'daily_summary',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False, unique=True),
        sa.Column('new_entries', sa.JSON(), nullable=True),
        sa.Column('dropouts', sa.JSON(), nullable=True),
        sa.Column('biggest_gainer_address', sa.String(64), nullable=True),
        sa.Column('biggest_gainer_change', BALANCE, nullable=True),
        sa.Column('biggest_loser_address', sa.String(64), nullable=True),
        sa.Column('biggest_loser_change', BALANCE, nullable=True),
    )

    op.create_table(
        'address_labels',
        sa.Column('address', sa.String(64), primary_key=True),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('notes', sa.String(1000), nullable=True),
    )

    op.create_table(
        'concentration_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('snapshot_id', sa.Integer(), sa.ForeignKey('snapshots.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(5), nullable=False),
        sa.Column('gini_coefficient', sa.Float(), nullable=True),
        sa.Column('hhi', sa.Float(), nullable=True),
        sa.Column('top10_pct', sa.Float(), nullable=True),
        sa.Column('top20_pct', sa.Float(), nullable=True),
        sa.Column('top50_pct', sa.Float(), nullable=True),
        sa.Column('net_flow', BALANCE, nullable=True),
        sa.Column('total_inflow', BALANCE, nullable=True),
        sa.Column('total_outflow', BALANCE, nullable=True),
        sa.Column('whale_activity_index', sa.Float(), nullable=True),
        sa.Column('active_wallets', sa.Integer(), nullable=True),
        sa.Column('avg_rank_change', sa.Float(), nullable=True),
        sa.Column('avg_balance_change_pct', sa.Float(), nullable=True),
        sa.Column('new_entry_count', sa.Integer(), nullable=True),
        sa.Column('dropout_count', sa.Integer(), nullable=True),
        sa.Column('total_balance', BALANCE, nullable=True),
        sa.Column('computed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'weekly_summary',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_start', sa.Date(), nullable=False, unique=True),
        sa.Column('week_end', sa.Date(), nullable=False),
        sa.Column('gini_start', sa.Float(), nullable=True),
        sa.Column('gini_end', sa.Float(), nullable=True),
        sa.Column('gini_change', sa.Float(), nullable=True),
        sa.Column('total_balance_start', BALANCE, nullable=True),
        sa.Column('total_balance_end', BALANCE, nullable=True),
        sa.Column('net_flow_total', BALANCE, nullable=True),
        sa.Column('avg_whale_activity_index', sa.Float(), nullable=True),
        sa.Column('total_new_entries', sa.Integer(), nullable=True),
        sa.Column('total_dropouts', sa.Integer(), nullable=True),
        sa.Column('top_accumulator_address', sa.String(64), nullable=True),
        sa.Column('top_accumulator_change', BALANCE, nullable=True),
        sa.Column('top_distributor_address', sa.String(64), nullable=True),
        sa.Column('top_distributor_change', BALANCE, nullable=True),
        sa.Column('avg_rank_volatility', sa.Float(), nullable=True),
        sa.Column('snapshot_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('computed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'wallet_correlations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('address_a', sa.String(64), nullable=False),
        sa.Column('address_b', sa.String(64), nullable=False),
        sa.Column('period', sa.String(10), nullable=False),
        sa.Column('correlation', sa.Float(), nullable=False),
        sa.Column('data_points', sa.Integer(), nullable=False),
        sa.Column('computed_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('address_a', 'address_b', 'period', name='uq_wallet_correlations_pair_period'),
        sa.CheckConstraint('address_a < address_b', name='ck_wallet_correlations_pair_order'),
    )
    op.create_index('idx_wallet_correlations_period', 'wallet_correlations', ['period'])


def downgrade() -> None:
    op.drop_index('idx_wallet_correlations_period', 'wallet_correlations')
    op.drop_table('wallet_correlations')
    op.drop_table('weekly_summary')
    op.drop_table('concentration_metrics')
    op.drop_table('address_labels')
    op.drop_table('daily_summary')
    op.drop_index('snapshot_entries_address_idx', 'snapshot_entries')
    op.drop_index('snapshot_entries_snapshot_id_idx', 'snapshot_entries')
    op.drop_table('snapshot_entries')
    op.drop_table('snapshots')
