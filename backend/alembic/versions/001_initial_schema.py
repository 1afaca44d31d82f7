"""Initial schema

Creates the schema of the Portfolio Tracker.

Tables:
    - portfolios: One portfolio per investment type instance, with its
      valuation snapshot, latest quote and version counter
    - transactions: Deposit/withdrawal ledger, one row per entry

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


investment_type_enum = sa.Enum(
    'COOPERATIVE', 'PVD', 'MUTUAL_FUND', 'STOCK', 'SAVINGS',
    name='investmenttype',
)
transaction_type_enum = sa.Enum('DEPOSIT', 'WITHDRAWAL', name='transactiontype')


def upgrade() -> None:
    # ==========================================================================
    # PORTFOLIOS
    # ==========================================================================
    op.create_table(
        'portfolios',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.String(128), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('investment_type', investment_type_enum, nullable=False),
        sa.Column('target_amount', sa.Numeric(18, 8), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),

        # Valuation snapshot (written only by the recalculation service)
        sa.Column('current_value', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('total_invested', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('total_return', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('return_percentage', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('transaction_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_units', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('snapshot_updated_at', sa.DateTime(timezone=True), nullable=True),

        # Latest quote
        sa.Column('current_nav_per_unit', sa.Numeric(18, 8), nullable=True),
        sa.Column('current_stock_price_usd', sa.Numeric(18, 8), nullable=True),
        sa.Column('current_exchange_rate', sa.Numeric(18, 8), nullable=True),
        sa.Column('quote_updated_at', sa.DateTime(timezone=True), nullable=True),

        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column(
            'portfolio_id',
            sa.Integer(),
            sa.ForeignKey('portfolios.id', ondelete='CASCADE'),
            nullable=False,
            index=True,
        ),
        sa.Column('transaction_type', transaction_type_enum, nullable=False),
        sa.Column('amount', sa.Numeric(18, 8), nullable=False),
        sa.Column('date', sa.Date(), nullable=False, index=True),
        sa.Column('notes', sa.String(1000), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Full-ledger scan of one portfolio, ordered by date
    op.create_index('ix_transaction_portfolio_date', 'transactions', ['portfolio_id', 'date'])


def downgrade() -> None:
    op.drop_index('ix_transaction_portfolio_date', table_name='transactions')
    op.drop_table('transactions')
    op.drop_table('portfolios')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS transactiontype')
    op.execute('DROP TYPE IF EXISTS investmenttype')
