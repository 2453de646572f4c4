"""Initial schema: service_capacities, reservations

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17 09:30:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


RESERVATION_TYPE = sa.Enum('BOOKING', 'SOFT_HOLD', 'MAINTENANCE', 'BLOCKED',
                           name='reservationtype')
RESERVATION_STATUS = sa.Enum('PENDING', 'CONFIRMED', 'IN_USE', 'COMPLETED', 'CANCELLED', 'NO_SHOW',
                             name='reservationstatus')


def upgrade():
    # Create service_capacities table
    op.create_table(
        'service_capacities',
        sa.Column('service_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('total_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('service_id')
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('service_id', sa.String(length=36), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('quantity_reserved', sa.Integer(), nullable=False),
        sa.Column('type', RESERVATION_TYPE, nullable=False),
        sa.Column('status', RESERVATION_STATUS, nullable=False, server_default='PENDING'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('customer_id', sa.String(length=36), nullable=True),
        sa.Column('booking_id', sa.String(length=36), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['service_id'], ['service_capacities.service_id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Create indexes for reservations
    op.create_index('ix_reservations_service_id', 'reservations', ['service_id'])
    op.create_index('ix_reservations_start_date', 'reservations', ['start_date'])
    op.create_index('ix_reservations_end_date', 'reservations', ['end_date'])
    op.create_index('ix_reservations_type', 'reservations', ['type'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])
    op.create_index('ix_reservations_expires_at', 'reservations', ['expires_at'])
    op.create_index('ix_reservations_customer_id', 'reservations', ['customer_id'])
    op.create_index('ix_reservations_service_window', 'reservations',
                    ['service_id', 'start_date', 'end_date'])


def downgrade():
    op.drop_index('ix_reservations_service_window', table_name='reservations')
    op.drop_index('ix_reservations_customer_id', table_name='reservations')
    op.drop_index('ix_reservations_expires_at', table_name='reservations')
    op.drop_index('ix_reservations_status', table_name='reservations')
    op.drop_index('ix_reservations_type', table_name='reservations')
    op.drop_index('ix_reservations_end_date', table_name='reservations')
    op.drop_index('ix_reservations_start_date', table_name='reservations')
    op.drop_index('ix_reservations_service_id', table_name='reservations')
    op.drop_table('reservations')
    op.drop_table('service_capacities')
    RESERVATION_STATUS.drop(op.get_bind(), checkfirst=True)
    RESERVATION_TYPE.drop(op.get_bind(), checkfirst=True)
