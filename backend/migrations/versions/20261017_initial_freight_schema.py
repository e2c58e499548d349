"""Initial freight schema: jobs, booking cost details, voucher sequences, registries

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17

This migration adds:
1. jobs (camelCase payload plus filter columns)
2. booking_cost_details (authoritative per-booking cost breakdown)
3. document_sequences (atomic NTTK / UNC voucher numbers)
4. external_receipts (standalone receipts sharing the voucher namespace)
5. customers and shipping_lines registries
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. JOBS TABLE
    # ==========================================================================
    op.create_table('jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('job_code', sa.String(length=64), nullable=False),
        sa.Column('booking', sa.String(length=64), nullable=True),
        sa.Column('month', sa.String(length=2), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('line', sa.String(length=64), nullable=True),
        sa.Column('customer_id', sa.String(length=64), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_code', name='uq_jobs_job_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('jobs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_jobs_booking'), ['booking'], unique=False)
        batch_op.create_index(batch_op.f('ix_jobs_customer_id'), ['customer_id'], unique=False)
        batch_op.create_index('ix_jobs_year_month', ['year', 'month'], unique=False)

    # ==========================================================================
    # 2. BOOKING COST DETAILS TABLE
    # ==========================================================================
    op.create_table('booking_cost_details',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('booking', sa.String(length=64), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking', name='uq_booking_cost_details_booking'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 3. DOCUMENT SEQUENCES TABLE
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('prefix', sa.String(length=16), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('prefix', name='uq_doc_sequences_prefix'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('document_sequences', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_document_sequences_prefix'), ['prefix'], unique=False)

    # ==========================================================================
    # 4. EXTERNAL RECEIPTS TABLE
    # ==========================================================================
    op.create_table('external_receipts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('doc_no', sa.String(length=32), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('customer_id', sa.String(length=64), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('external_receipts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_external_receipts_doc_no'), ['doc_no'], unique=False)

    # ==========================================================================
    # 5. REGISTRIES
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('mst', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_customers_code'),
        sqlite_autoincrement=True
    )
    op.create_table('shipping_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('mst', sa.String(length=32), nullable=True),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_shipping_lines_code'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('shipping_lines')
    op.drop_table('customers')

    with op.batch_alter_table('external_receipts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_external_receipts_doc_no'))
    op.drop_table('external_receipts')

    with op.batch_alter_table('document_sequences', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_document_sequences_prefix'))
    op.drop_table('document_sequences')

    op.drop_table('booking_cost_details')

    with op.batch_alter_table('jobs', schema=None) as batch_op:
        batch_op.drop_index('ix_jobs_year_month')
        batch_op.drop_index(batch_op.f('ix_jobs_customer_id'))
        batch_op.drop_index(batch_op.f('ix_jobs_booking'))
    op.drop_table('jobs')
