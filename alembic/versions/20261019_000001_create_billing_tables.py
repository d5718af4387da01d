"""Create billing tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Creates invoices, their line items and payments, the append-only
invoice activity log, and the per-year invoice number counters.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

INVOICE_STATUSES = ('DRAFT', 'SENT', 'PARTIALLY_PAID', 'PAID', 'OVERDUE')
PAYMENT_METHODS = ('CASH', 'CARD', 'BANK_TRANSFER', 'OTHER')
ACTIVITY_TYPES = (
    'INVOICE_CREATED',
    'INVOICE_UPDATED',
    'INVOICE_STATUS_CHANGED',
    'INVOICE_SENT',
    'INVOICE_DELETED',
    'PAYMENT_RECORDED',
    'PAYMENT_DELETED',
    'LINE_ITEM_ADDED',
    'LINE_ITEM_UPDATED',
    'LINE_ITEM_DELETED',
)


def upgrade() -> None:
    """Create the billing tables."""
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_number', sa.String(20), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=True),
        sa.Column(
            'status',
            sa.Enum(*INVOICE_STATUSES, name='invoice_status', create_constraint=True),
            nullable=False,
            server_default='DRAFT'
        ),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('tax_rate', sa.Numeric(precision=6, scale=4), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('amount_due', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)
    op.create_index('ix_invoices_contact_id', 'invoices', ['contact_id'])
    op.create_index('ix_invoices_booking_id', 'invoices', ['booking_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_deleted_at', 'invoices', ['deleted_at'])

    op.create_table(
        'invoice_line_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_invoice_line_items_invoice_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_invoice_line_items_invoice_id', 'invoice_line_items', ['invoice_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'method',
            sa.Enum(*PAYMENT_METHODS, name='payment_method', create_constraint=True),
            nullable=False,
            server_default='OTHER'
        ),
        sa.Column('reference', sa.String(200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_payments_invoice_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])

    op.create_table(
        'invoice_activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column(
            'type',
            sa.Enum(*ACTIVITY_TYPES, name='invoice_activity_type', create_constraint=True),
            nullable=False
        ),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_invoice_activities_invoice_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_invoice_activities_invoice_id', 'invoice_activities', ['invoice_id'])
    op.create_index('ix_invoice_activities_type', 'invoice_activities', ['type'])
    op.create_index('ix_invoice_activities_created_at', 'invoice_activities', ['created_at'])

    op.create_table(
        'invoice_counters',
        sa.Column('year', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('last_number', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('year'),
    )


def downgrade() -> None:
    """Drop the billing tables."""
    op.drop_table('invoice_counters')

    op.drop_index('ix_invoice_activities_created_at', table_name='invoice_activities')
    op.drop_index('ix_invoice_activities_type', table_name='invoice_activities')
    op.drop_index('ix_invoice_activities_invoice_id', table_name='invoice_activities')
    op.drop_table('invoice_activities')

    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_table('payments')

    op.drop_index('ix_invoice_line_items_invoice_id', table_name='invoice_line_items')
    op.drop_table('invoice_line_items')

    op.drop_index('ix_invoices_deleted_at', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_booking_id', table_name='invoices')
    op.drop_index('ix_invoices_contact_id', table_name='invoices')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_table('invoices')

    # Drop the enum types (PostgreSQL only; other backends use CHECK constraints)
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("DROP TYPE IF EXISTS invoice_activity_type")
        op.execute("DROP TYPE IF EXISTS payment_method")
        op.execute("DROP TYPE IF EXISTS invoice_status")
