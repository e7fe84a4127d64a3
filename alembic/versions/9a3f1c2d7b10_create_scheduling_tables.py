"""create scheduling tables

Revision ID: 9a3f1c2d7b10
Revises:
Create Date: 2026-10-16 09:12:41.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '9a3f1c2d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLES = ('CLIENT', 'BUSINESS', 'ADMIN')
APPOINTMENT_STATUSES = ('BOOKED', 'CANCELED')


def upgrade() -> None:
    """Upgrade schema."""
    is_postgres = op.get_bind().dialect.name == 'postgresql'

    # 1. Users
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.Enum(*USER_ROLES, name='userrole'), nullable=False),
        sa.Column('timezone_offset_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # 2. Weekly working hours (one row per enabled weekday)
    op.create_table(
        'business_working_hours',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.UniqueConstraint('business_id', 'day_of_week', name='uq_working_hours_business_day'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_working_hours_day'),
        sa.CheckConstraint(
            'start_minute >= 0 AND end_minute <= 1439 AND end_minute > start_minute',
            name='ck_working_hours_range',
        ),
    )
    op.create_index('ix_business_working_hours_business_id', 'business_working_hours', ['business_id'])

    # 3. Breaks
    op.create_table(
        'business_breaks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_breaks_day'),
        sa.CheckConstraint('end_minute > start_minute', name='ck_breaks_range'),
    )
    op.create_index('ix_business_breaks_business_day', 'business_breaks', ['business_id', 'day_of_week'])

    # 4. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum(*APPOINTMENT_STATUSES, name='appointmentstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'duration_minutes >= 15 AND duration_minutes <= 240',
            name='ck_appointments_duration',
        ),
    )
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_business_start', 'appointments', ['business_id', 'start_at'])

    if is_postgres:
        # Two BOOKED rows of one business may never overlap, even if the
        # application lock is bypassed.
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE appointments
            ADD CONSTRAINT ex_appointments_no_overlap
            EXCLUDE USING gist (
                business_id WITH =,
                tstzrange(start_at, end_at, '[)') WITH &&
            )
            WHERE (status = 'BOOKED')
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    is_postgres = op.get_bind().dialect.name == 'postgresql'

    if is_postgres:
        op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_no_overlap")

    op.drop_index('ix_appointments_business_start', table_name='appointments')
    op.drop_index('ix_appointments_client_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_business_breaks_business_day', table_name='business_breaks')
    op.drop_table('business_breaks')

    op.drop_index('ix_business_working_hours_business_id', table_name='business_working_hours')
    op.drop_table('business_working_hours')

    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    if is_postgres:
        op.execute("DROP TYPE IF EXISTS appointmentstatus")
        op.execute("DROP TYPE IF EXISTS userrole")
