"""Create finance ledger tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Invoices, append-only payments, adjustment requests (discount / refund) and
the credit notes approved refunds produce.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


INVOICE_STATUSES = ('draft', 'sent', 'partially_paid', 'paid', 'overdue', 'cancelled')
PAYER_TYPES = ('parent', 'school', 'organisation')
PAYMENT_METHODS = ('mpesa', 'bank_transfer', 'cash', 'card', 'other')
REFUND_APPLICATIONS = ('refund_to_payer', 'credit_for_future')


def upgrade() -> None:
    """Create the ledger tables."""
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('payer_type', sa.Enum(*PAYER_TYPES, name='payer_type'), nullable=False),
        sa.Column('payer_id', sa.String(64), nullable=False),
        sa.Column('learner_id', sa.String(64), nullable=True),
        sa.Column('organisation_id', sa.String(64), nullable=True),
        sa.Column('programme_id', sa.String(64), nullable=True),
        sa.Column('term_id', sa.String(64), nullable=False),
        sa.Column('gross_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('net_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('balance', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum(*INVOICE_STATUSES, name='invoice_status'),
            nullable=False,
            server_default='draft'
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.String(100), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('updated_by', sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoices_payer_type', 'invoices', ['payer_type'])
    op.create_index('ix_invoices_payer_id', 'invoices', ['payer_id'])
    op.create_index('ix_invoices_term_id', 'invoices', ['term_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('method', sa.Enum(*PAYMENT_METHODS, name='payment_method'), nullable=False),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('recorded_by', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_payments_invoice_id',
            ondelete='RESTRICT'
        ),
        sa.CheckConstraint('amount > 0', name='ck_payments_amount_positive'),
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])
    op.create_index('ix_payments_date', 'payments', ['date'])

    op.create_table(
        'adjustment_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.Enum('discount', 'refund', name='adjustment_type'), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column(
            'discount_scope',
            sa.Enum('this_invoice', 'this_term', 'ongoing', name='discount_scope'),
            nullable=True
        ),
        sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('discount_percent', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('refund_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('refund_application', sa.Enum(*REFUND_APPLICATIONS, name='refund_application'), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'approved', 'rejected', name='adjustment_status'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('requested_by', sa.String(100), nullable=False),
        sa.Column('requested_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_by', sa.String(100), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('decision_note', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_adjustment_requests_invoice_id',
            ondelete='RESTRICT'
        ),
    )
    op.create_index('ix_adjustment_requests_invoice_id', 'adjustment_requests', ['invoice_id'])
    op.create_index('ix_adjustment_requests_status', 'adjustment_requests', ['status'])

    op.create_table(
        'credit_notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('adjustment_request_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('applied_as', sa.Enum(*REFUND_APPLICATIONS, name='credit_note_applied_as'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('created', 'applied_to_future', name='credit_note_status'),
            nullable=False
        ),
        sa.Column('requested_by', sa.String(100), nullable=False),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('approved_by', sa.String(100), nullable=False),
        sa.Column('approved_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_credit_notes_invoice_id',
            ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['adjustment_request_id'],
            ['adjustment_requests.id'],
            name='fk_credit_notes_adjustment_request_id',
            ondelete='RESTRICT'
        ),
        sa.UniqueConstraint('adjustment_request_id', name='uq_credit_notes_adjustment_request_id'),
    )
    op.create_index('ix_credit_notes_invoice_id', 'credit_notes', ['invoice_id'])


def downgrade() -> None:
    """Drop the ledger tables."""
    op.drop_index('ix_credit_notes_invoice_id', table_name='credit_notes')
    op.drop_table('credit_notes')

    op.drop_index('ix_adjustment_requests_status', table_name='adjustment_requests')
    op.drop_index('ix_adjustment_requests_invoice_id', table_name='adjustment_requests')
    op.drop_table('adjustment_requests')

    op.drop_index('ix_payments_date', table_name='payments')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_table('payments')

    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_term_id', table_name='invoices')
    op.drop_index('ix_invoices_payer_id', table_name='invoices')
    op.drop_index('ix_invoices_payer_type', table_name='invoices')
    op.drop_table('invoices')
