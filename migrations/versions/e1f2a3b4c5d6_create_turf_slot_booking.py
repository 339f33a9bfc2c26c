"""create turfs, slots, bookings and audit log

Revision ID: e1f2a3b4c5d6
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'e1f2a3b4c5d6'
down_revision = None
branch_labels = None
depends_on = None

BOOKING_STATUSES = ('PENDING', 'CONFIRMED', 'CANCELLED', 'EXPIRED', 'FAILED')
TURF_STATUSES = ('ACTIVE', 'MAINTENANCE', 'CLOSED')


def upgrade():
    op.create_table(
        'turfs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('base_price', sa.Integer(), nullable=False),
        sa.Column('weekday_price', sa.Integer(), nullable=True),
        sa.Column('weekend_price', sa.Integer(), nullable=True),
        sa.Column('peak_hour_multiplier', sa.Numeric(precision=4, scale=2), nullable=False),
        sa.Column('peak_start_time', sa.Time(), nullable=True),
        sa.Column('peak_end_time', sa.Time(), nullable=True),
        sa.Column('opening_time', sa.Time(), nullable=False),
        sa.Column('closing_time', sa.Time(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('status', sa.Enum(*TURF_STATUSES, name='turf_status', native_enum=False,
                                    create_constraint=True, length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('opening_time < closing_time', name='ck_turf_hours'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('turfs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_turfs_admin_id'), ['admin_id'], unique=False)

    op.create_table(
        'slots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('turf_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['turf_id'], ['turfs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('turf_id', 'date', 'start_time', 'end_time', name='uq_turf_slot_window'),
    )
    with op.batch_alter_table('slots', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_slots_turf_id'), ['turf_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_slots_date'), ['date'], unique=False)

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('batch_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('turf_id', sa.Integer(), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=True),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.Enum(*BOOKING_STATUSES, name='booking_status', native_enum=False,
                                    create_constraint=True, length=20), nullable=False),
        sa.Column('base_price', sa.Integer(), nullable=False),
        sa.Column('is_peak', sa.Boolean(), nullable=False),
        sa.Column('price_paid', sa.Integer(), nullable=False),
        sa.Column('cancellation_charge', sa.Integer(), nullable=True),
        sa.Column('refund_due', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('status_changed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.Integer(), nullable=True),
        sa.Column('status_reason', sa.String(length=120), nullable=True),
        sa.ForeignKeyConstraint(['turf_id'], ['turfs.id']),
        sa.ForeignKeyConstraint(['slot_id'], ['slots.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bookings_batch_id'), ['batch_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bookings_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bookings_turf_id'), ['turf_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bookings_slot_id'), ['slot_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bookings_status'), ['status'], unique=False)

    # At most one PENDING/CONFIRMED booking per slot
    op.create_index(
        'uq_bookings_active_slot',
        'bookings',
        ['slot_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING', 'CONFIRMED')"),
        sqlite_where=sa.text("status IN ('PENDING', 'CONFIRMED')"),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('entity', sa.String(length=80), nullable=True),
        sa.Column('entity_id', sa.String(length=80), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_entity_id'), ['entity_id'], unique=False)


def downgrade():
    op.drop_table('audit_logs')
    op.drop_index('uq_bookings_active_slot', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('slots')
    op.drop_table('turfs')
