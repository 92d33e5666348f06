"""Create donations table.

Revision ID: 0001_create_donations
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_create_donations'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'donations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.String(64), nullable=False),
        sa.Column('payment_id', sa.String(64), nullable=True),
        sa.Column('signature', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('donor_name', sa.String(255), nullable=True),
        sa.Column('donor_email', sa.String(255), nullable=True),
        sa.Column('donor_phone', sa.String(32), nullable=True),
        sa.Column('payment_method', sa.String(32), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        # One donation per order; a payment attaches to at most one donation
        sa.UniqueConstraint('order_id', name='uq_donations_order_id'),
        sa.UniqueConstraint('payment_id', name='uq_donations_payment_id'),
    )
    
    op.create_index('ix_donations_status', 'donations', ['status'])
    op.create_index('ix_donations_created_at', 'donations', ['created_at'])
    
    # Sweeper scans stale PENDING rows only
    op.create_index(
        'ix_donations_pending_created_at',
        'donations',
        ['created_at'],
        postgresql_where=sa.text("status = 'PENDING'")
    )


def downgrade() -> None:
    op.drop_index('ix_donations_pending_created_at', table_name='donations')
    op.drop_index('ix_donations_created_at', table_name='donations')
    op.drop_index('ix_donations_status', table_name='donations')
    op.drop_table('donations')
