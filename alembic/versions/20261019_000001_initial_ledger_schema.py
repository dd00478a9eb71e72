"""Initial ledger schema

Revision ID: 20261019_000001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(precision=18, scale=8)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'sponsor_id IS NULL OR sponsor_id <> id',
            name='check_user_not_self_sponsored',
        ),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_sponsor_id', 'users', ['sponsor_id'])

    op.create_table(
        'vip_packages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('investment_amount', MONEY, nullable=False),
        sa.Column('daily_profit_amount', MONEY, nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_vip_packages_level', 'vip_packages', ['level'])

    op.create_table(
        'referral_bonus_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.DECIMAL(precision=7, scale=4), nullable=False),
        sa.CheckConstraint(
            'level >= 1 AND level <= 3', name='check_referral_rule_level_range'
        ),
        sa.CheckConstraint(
            'percentage >= 0', name='check_referral_rule_percentage_non_negative'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('level')
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('investment_amount', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('daily_profit_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('total_credited', MONEY, nullable=False, server_default='0'),
        sa.Column('last_credited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('roulette_spent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('roulette_prize', MONEY, nullable=True),
        sa.Column('roulette_spent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'investment_amount > 0', name='check_purchase_investment_positive'
        ),
        sa.CheckConstraint(
            'total_credited >= 0', name='check_purchase_total_credited_non_negative'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['package_id'], ['vip_packages.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_purchases_user_id', 'purchases', ['user_id'])
    op.create_index('ix_purchases_status', 'purchases', ['status'])
    op.create_index('idx_purchase_user_status', 'purchases', ['user_id', 'status'])
    op.create_index('idx_purchase_user_package', 'purchases', ['user_id', 'package_id'])

    op.create_table(
        'wallet_ledger',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wallet_ledger_user_id', 'wallet_ledger', ['user_id'])
    op.create_index(
        'idx_wallet_ledger_user_type_created',
        'wallet_ledger',
        ['user_id', 'type', 'created_at'],
    )

    op.create_table(
        'daily_tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('position')
    )

    op.create_table(
        'task_completions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['task_id'], ['daily_tasks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'idx_task_completion_user_task', 'task_completions', ['user_id', 'task_id']
    )

    op.create_table(
        'daily_profit_runs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id')
    )
    op.execute("INSERT INTO daily_profit_runs (id, last_run_at, version) VALUES (1, NULL, 0)")

    op.create_table(
        'activation_claims',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('cycle_key', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'cycle_key', name='uq_activation_claim_user_cycle')
    )


def downgrade() -> None:
    op.drop_table('activation_claims')
    op.drop_table('daily_profit_runs')
    op.drop_index('idx_task_completion_user_task', table_name='task_completions')
    op.drop_table('task_completions')
    op.drop_table('daily_tasks')
    op.drop_index('idx_wallet_ledger_user_type_created', table_name='wallet_ledger')
    op.drop_index('ix_wallet_ledger_user_id', table_name='wallet_ledger')
    op.drop_table('wallet_ledger')
    op.drop_index('idx_purchase_user_package', table_name='purchases')
    op.drop_index('idx_purchase_user_status', table_name='purchases')
    op.drop_index('ix_purchases_status', table_name='purchases')
    op.drop_index('ix_purchases_user_id', table_name='purchases')
    op.drop_table('purchases')
    op.drop_table('referral_bonus_rules')
    op.drop_index('ix_vip_packages_level', table_name='vip_packages')
    op.drop_table('vip_packages')
    op.drop_index('ix_users_sponsor_id', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
