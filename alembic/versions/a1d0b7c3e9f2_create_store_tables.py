"""Create shop_sessions, store_settings and ad_accounts tables

Revision ID: a1d0b7c3e9f2
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers
revision: str = 'a1d0b7c3e9f2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    # ── shop_sessions ──
    if not _has_table('shop_sessions'):
        op.create_table(
            'shop_sessions',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('shop', sa.String(), nullable=False),
            sa.Column('access_token', sa.String(), nullable=False),
            sa.Column('scope', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_shop_sessions_shop', 'shop_sessions', ['shop'], unique=True)

    # ── store_settings ──
    if not _has_table('store_settings'):
        op.create_table(
            'store_settings',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('shop', sa.String(), nullable=False),
            sa.Column('default_cogs_percentage', sa.Numeric(5, 2), nullable=False, server_default='30'),
            sa.Column('custom_cogs', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_store_settings_shop', 'store_settings', ['shop'], unique=True)

    # ── ad_accounts ──
    if not _has_table('ad_accounts'):
        op.create_table(
            'ad_accounts',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('shop', sa.String(), nullable=False),
            sa.Column('platform', sa.String(), nullable=False),
            sa.Column('account_id', sa.String(), nullable=False),
            sa.Column('access_token', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('shop', 'platform', 'account_id', name='uq_ad_account_shop_platform_account'),
        )
        op.create_index('ix_ad_accounts_shop', 'ad_accounts', ['shop'])
        op.create_index('ix_ad_accounts_platform', 'ad_accounts', ['platform'])


def downgrade() -> None:
    op.drop_table('ad_accounts')
    op.drop_table('store_settings')
    op.drop_table('shop_sessions')
