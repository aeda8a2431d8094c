"""Initial schema: buildings, apartments, residents, users, passes, rules, scan_events

Revision ID: 5c1e7a2d9f40
Revises:
Create Date: 2026-10-16 10:12:41.218337

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e7a2d9f40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Таблицы в порядке зависимостей по foreign keys

    # 1. Buildings
    op.create_table(
        'buildings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # 2. Apartments (зависит от buildings)
    op.create_table(
        'apartments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('building_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Text(), nullable=False),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('building_id', 'number', name='uq_apartment_building_number')
    )
    op.create_index(op.f('ix_apartments_building_id'), 'apartments', ['building_id'], unique=False)

    # 3. Residents (зависит от apartments)
    op.create_table(
        'residents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('apartment_id', sa.Integer(), nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False),
        sa.Column('chat_id', sa.BigInteger(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['apartment_id'], ['apartments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_residents_apartment_id'), 'residents', ['apartment_id'], unique=False)
    op.create_index(op.f('ix_residents_telegram_id'), 'residents', ['telegram_id'], unique=True)

    # 4. Users (зависит от buildings)
    op.create_table(
        'users',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('building_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # 5. Rules (одна строка на здание)
    op.create_table(
        'rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('building_id', sa.Integer(), nullable=False),
        sa.Column('quiet_hours_start', sa.Text(), nullable=True),
        sa.Column('quiet_hours_end', sa.Text(), nullable=True),
        sa.Column('daily_pass_limit', sa.Integer(), nullable=False),
        sa.Column('max_pass_duration_hours', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('building_id')
    )

    # 6. Passes (зависит от apartments и residents)
    op.create_table(
        'passes',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('apartment_id', sa.Integer(), nullable=False),
        sa.Column('resident_id', sa.Integer(), nullable=True),
        sa.Column('car_plate', sa.Text(), nullable=True),
        sa.Column('guest_name', sa.Text(), nullable=True),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_to', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_by', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['apartment_id'], ['apartments.id']),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_passes_apartment_id'), 'passes', ['apartment_id'], unique=False)
    op.create_index(op.f('ix_passes_resident_id'), 'passes', ['resident_id'], unique=False)
    op.create_index('idx_passes_status', 'passes', ['status'], unique=False)
    op.create_index('idx_passes_car_plate', 'passes', ['car_plate'], unique=False)
    op.create_index('idx_passes_resident_created', 'passes', ['resident_id', 'created_at'], unique=False)

    # 7. Scan events (pass_id без FK)
    op.create_table(
        'scan_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pass_id', sa.Text(), nullable=True),
        sa.Column('guard_user_id', sa.Text(), nullable=True),
        sa.Column('scanned_at', sa.DateTime(), nullable=False),
        sa.Column('result', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scan_events_pass_id'), 'scan_events', ['pass_id'], unique=False)
    op.create_index(op.f('ix_scan_events_guard_user_id'), 'scan_events', ['guard_user_id'], unique=False)
    op.create_index('idx_scan_events_scanned_at', 'scan_events', ['scanned_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_scan_events_scanned_at', table_name='scan_events')
    op.drop_index(op.f('ix_scan_events_guard_user_id'), table_name='scan_events')
    op.drop_index(op.f('ix_scan_events_pass_id'), table_name='scan_events')
    op.drop_table('scan_events')

    op.drop_index('idx_passes_resident_created', table_name='passes')
    op.drop_index('idx_passes_car_plate', table_name='passes')
    op.drop_index('idx_passes_status', table_name='passes')
    op.drop_index(op.f('ix_passes_resident_id'), table_name='passes')
    op.drop_index(op.f('ix_passes_apartment_id'), table_name='passes')
    op.drop_table('passes')

    op.drop_table('rules')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')

    op.drop_index(op.f('ix_residents_telegram_id'), table_name='residents')
    op.drop_index(op.f('ix_residents_apartment_id'), table_name='residents')
    op.drop_table('residents')

    op.drop_index(op.f('ix_apartments_building_id'), table_name='apartments')
    op.drop_table('apartments')

    op.drop_table('buildings')
