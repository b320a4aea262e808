"""Initial schema: venues, beer stock, staff, shifts, drafts, soft drinks

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. Venue (partition key for everything else)
2. Product, SoftDrink and RestockRecord (stock and restock history)
3. Worker
4. Shift with JSON count maps, and ShiftDraft for saved close counts
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. VENUES
    # ==========================================================================
    op.create_table('venues',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # ==========================================================================
    # 2. STOCK
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('purchase_cost', sa.Integer(), nullable=False),
        sa.Column('selling_price', sa.Integer(), nullable=False),
        sa.Column('last_restock_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_restock_worker', sa.String(length=128), nullable=True),
        sa.Column('weekly_restock_day', sa.String(length=16), nullable=False),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_venue_id', ['venue_id'], unique=False)
        batch_op.create_index('ix_products_venue_name', ['venue_id', 'name'], unique=False)

    op.create_table('soft_drinks',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('cost', sa.Integer(), nullable=False),
        sa.Column('last_restock_date', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('soft_drinks', schema=None) as batch_op:
        batch_op.create_index('ix_soft_drinks_venue_id', ['venue_id'], unique=False)

    op.create_table('restock_records',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('worker_name', sa.String(length=128), nullable=True),
        sa.Column('item_type', sa.String(length=16), nullable=False),
        sa.Column('item_id', sa.String(length=32), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('quantity_added', sa.Integer(), nullable=False),
        sa.Column('new_total_quantity', sa.Integer(), nullable=False),
        sa.Column('during_active_shift', sa.Boolean(), nullable=False),
        sa.Column('shift_id', sa.String(length=32), nullable=True),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('restock_records', schema=None) as batch_op:
        batch_op.create_index('ix_restock_records_venue_id', ['venue_id'], unique=False)
        batch_op.create_index('ix_restock_records_item_id', ['item_id'], unique=False)
        batch_op.create_index('ix_restock_records_shift_id', ['shift_id'], unique=False)
        batch_op.create_index('ix_restock_records_venue_date', ['venue_id', 'date'], unique=False)

    # ==========================================================================
    # 3. STAFF
    # ==========================================================================
    op.create_table('workers',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('workers', schema=None) as batch_op:
        batch_op.create_index('ix_workers_venue_id', ['venue_id'], unique=False)
        batch_op.create_index('ix_workers_is_active', ['is_active'], unique=False)

    # ==========================================================================
    # 4. SHIFTS
    # ==========================================================================
    op.create_table('shifts',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('worker_id', sa.String(length=32), nullable=False),
        sa.Column('worker_name', sa.String(length=128), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('initial_inventory', sa.JSON(), nullable=False),
        sa.Column('final_inventory', sa.JSON(), nullable=True),
        sa.Column('sold', sa.JSON(), nullable=True),
        sa.Column('given_away', sa.JSON(), nullable=True),
        sa.Column('bonuses', sa.Integer(), nullable=True),
        sa.Column('prizes', sa.Integer(), nullable=True),
        sa.Column('expected_cash', sa.Integer(), nullable=True),
        sa.Column('actual_cash', sa.Integer(), nullable=True),
        sa.Column('cash_breakdown', sa.JSON(), nullable=True),
        sa.Column('restock_during_shift', sa.Boolean(), nullable=False),
        sa.Column('restock_details', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('shifts', schema=None) as batch_op:
        batch_op.create_index('ix_shifts_venue_id', ['venue_id'], unique=False)
        batch_op.create_index('ix_shifts_worker_id', ['worker_id'], unique=False)
        batch_op.create_index('ix_shifts_is_active', ['is_active'], unique=False)
        batch_op.create_index('ix_shifts_venue_start', ['venue_id', 'start_time'], unique=False)

    op.create_table('shift_drafts',
        sa.Column('venue_id', sa.String(length=64), nullable=False),
        sa.Column('shift_id', sa.String(length=32), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('saved_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('venue_id', 'shift_id'),
    )


def downgrade():
    op.drop_table('shift_drafts')
    with op.batch_alter_table('shifts', schema=None) as batch_op:
        batch_op.drop_index('ix_shifts_venue_start')
        batch_op.drop_index('ix_shifts_is_active')
        batch_op.drop_index('ix_shifts_worker_id')
        batch_op.drop_index('ix_shifts_venue_id')
    op.drop_table('shifts')
    with op.batch_alter_table('workers', schema=None) as batch_op:
        batch_op.drop_index('ix_workers_is_active')
        batch_op.drop_index('ix_workers_venue_id')
    op.drop_table('workers')
    with op.batch_alter_table('restock_records', schema=None) as batch_op:
        batch_op.drop_index('ix_restock_records_venue_date')
        batch_op.drop_index('ix_restock_records_shift_id')
        batch_op.drop_index('ix_restock_records_item_id')
        batch_op.drop_index('ix_restock_records_venue_id')
    op.drop_table('restock_records')
    with op.batch_alter_table('soft_drinks', schema=None) as batch_op:
        batch_op.drop_index('ix_soft_drinks_venue_id')
    op.drop_table('soft_drinks')
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_venue_name')
        batch_op.drop_index('ix_products_venue_id')
    op.drop_table('products')
    op.drop_table('venues')
