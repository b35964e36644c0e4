# alembic/versions/001_initial.py

"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Assets with last-known price
    op.create_table('asset',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('current_price', sa.Numeric(precision=24, scale=12), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_asset_symbol', 'asset', ['symbol'], unique=True)

    # Price cache: one row per (symbol, date)
    op.create_table('price_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('price', sa.Numeric(precision=24, scale=12), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('symbol', 'date', name='uq_price_history_symbol_date')
    )
    op.create_index('ix_price_history_lookup', 'price_history', ['symbol', 'date'])

    # Investment plans
    op.create_table('investment_plan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('monthly_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('investment_day', sa.Integer(), nullable=False),
        sa.Column('allocation_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_investment_plan_symbol', 'investment_plan', ['symbol'])


def downgrade():
    op.drop_index('ix_investment_plan_symbol', table_name='investment_plan')
    op.drop_table('investment_plan')
    op.drop_index('ix_price_history_lookup', table_name='price_history')
    op.drop_table('price_history')
    op.drop_index('ix_asset_symbol', table_name='asset')
    op.drop_table('asset')
