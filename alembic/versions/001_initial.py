"""Initial schema: accounts, drivers, vehicles, groups and their associations

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

The partial unique indexes are what enforce "one active FLEET association per
driver/vehicle" when two requests race past the service-level check.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ASSOCIATION_TYPES = ('FLEET', 'AGGREGATED', 'THIRD_PARTY', 'OUTSOURCED', 'LEASED')
DRIVER_STATUSES = ('ACTIVE', 'INACTIVE', 'ON_LEAVE', 'VACATION')


def _timestamps():
    return [
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updatedAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('companyName', sa.String(255), nullable=False),
        sa.Column('isActive', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'drivers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('cpf', sa.String(11), nullable=False, unique=True),
        sa.Column('fullName', sa.String(255), nullable=False),
        sa.Column('dateOfBirth', sa.Date()),
        sa.Column('phone', sa.String(20)),
        sa.Column('email', sa.String(255)),
        sa.Column('cnhNumber', sa.String(11)),
        sa.Column('cnhCategory', sa.String(5)),
        sa.Column('cnhExpiration', sa.Date()),
        sa.Column('status', sa.Enum(*DRIVER_STATUSES, name='driverstatus'), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'vehicles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('plate', sa.String(7), nullable=False, unique=True),
        sa.Column('brand', sa.String(100)),
        sa.Column('model', sa.String(100)),
        sa.Column('year', sa.Integer()),
        sa.Column('trackerDeviceId', sa.String(100)),
        sa.Column('trackerType', sa.String(50)),
        *_timestamps(),
    )

    op.create_table(
        'vehicle_groups',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('accountId', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'driver_account_associations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('driverId', sa.String(36), sa.ForeignKey('drivers.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('accountId', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('associationType', sa.Enum(*ASSOCIATION_TYPES, name='associationtype'), nullable=False),
        sa.Column('isActive', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('startDate', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('endDate', sa.TIMESTAMP(timezone=True)),
        *_timestamps(),
    )
    op.create_index(
        'ux_driver_assoc_one_active_fleet', 'driver_account_associations', ['driverId'], unique=True,
        postgresql_where=sa.text("\"associationType\" = 'FLEET' AND \"isActive\""),
        sqlite_where=sa.text("\"associationType\" = 'FLEET' AND \"isActive\" = 1"),
    )
    op.create_index(
        'ux_driver_assoc_one_active_per_account', 'driver_account_associations',
        ['driverId', 'accountId'], unique=True,
        postgresql_where=sa.text("\"isActive\""),
        sqlite_where=sa.text("\"isActive\" = 1"),
    )

    op.create_table(
        'vehicle_account_associations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vehicleId', sa.String(36), sa.ForeignKey('vehicles.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('accountId', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('groupId', sa.String(36), sa.ForeignKey('vehicle_groups.id', ondelete='SET NULL')),
        sa.Column('associationType', sa.Enum(*ASSOCIATION_TYPES, name='associationtype',
                                             create_type=False), nullable=False),
        sa.Column('isActive', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('startDate', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('endDate', sa.TIMESTAMP(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint('vehicleId', 'accountId', name='uq_vehicle_assoc_vehicle_account'),
    )
    op.create_index(
        'ux_vehicle_assoc_one_active_fleet', 'vehicle_account_associations', ['vehicleId'], unique=True,
        postgresql_where=sa.text("\"associationType\" = 'FLEET' AND \"isActive\""),
        sqlite_where=sa.text("\"associationType\" = 'FLEET' AND \"isActive\" = 1"),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('accountId', sa.String(36), index=True),
        sa.Column('actorId', sa.String(36)),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entityType', sa.String(100), nullable=False),
        sa.Column('entityId', sa.String(36)),
        sa.Column('description', sa.Text()),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_index('ux_vehicle_assoc_one_active_fleet', table_name='vehicle_account_associations')
    op.drop_table('vehicle_account_associations')
    op.drop_index('ux_driver_assoc_one_active_per_account', table_name='driver_account_associations')
    op.drop_index('ux_driver_assoc_one_active_fleet', table_name='driver_account_associations')
    op.drop_table('driver_account_associations')
    op.drop_table('vehicle_groups')
    op.drop_table('vehicles')
    op.drop_table('drivers')
    op.drop_table('accounts')
    sa.Enum(name='associationtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='driverstatus').drop(op.get_bind(), checkfirst=True)
