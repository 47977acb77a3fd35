"""initial_onboarding_schema

Revision ID: 5b1e0c2f7a91
Revises:
Create Date: 2026-10-19 09:12:44.318201

Creates organizations, admin users, employees and the append-only
employee status history.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c2f7a91'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the onboarding schema."""
    # organizations.super_admin_id is linked to users once both tables exist
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(10), nullable=False),
        sa.Column('street_address', sa.String(255), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('province', sa.String(100), nullable=False),
        sa.Column('postal_code', sa.String(20), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('industry', sa.String(100), nullable=False),
        sa.Column('practice_areas', sa.JSON(), nullable=False),
        sa.Column('super_admin_id', sa.String(36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
        sa.UniqueConstraint('name', name='uq_organizations_name'),
        sa.UniqueConstraint('email', name='uq_organizations_email'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(10), nullable=True),
        sa.Column('role', sa.String(8), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_users_organization_id_organizations'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    with op.batch_alter_table('organizations') as batch_op:
        batch_op.create_foreign_key(
            'fk_organizations_super_admin_id_users', 'users', ['super_admin_id'], ['id']
        )

    op.create_table(
        'employees',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('invited_by_id', sa.String(36), nullable=False),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(10), nullable=True),
        sa.Column('address', sa.String(200), nullable=True),
        sa.Column('gender', sa.String(17), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('national_id', sa.String(12), nullable=True),
        sa.Column('employee_type', sa.String(8), nullable=True),
        sa.Column('advocate_license_number', sa.String(100), nullable=True),
        sa.Column('intern_year', sa.Integer(), nullable=True),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('emergency_contact_name', sa.String(100), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(10), nullable=True),
        sa.Column('emergency_contact_relation', sa.String(50), nullable=True),
        sa.Column('salary', sa.Numeric(12, 2), nullable=False, server_default='0.00'),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('invitation_status', sa.String(9), nullable=False),
        sa.Column('invitation_token', sa.String(128), nullable=True),
        sa.Column('invitation_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('employment_status', sa.String(8), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('archived_by_id', sa.String(36), nullable=True),
        sa.Column('archive_reason', sa.String(200), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_employees_organization_id_organizations'),
        sa.ForeignKeyConstraint(['invited_by_id'], ['users.id'], name='fk_employees_invited_by_id_users'),
        sa.ForeignKeyConstraint(['archived_by_id'], ['users.id'], name='fk_employees_archived_by_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_employees'),
        sa.UniqueConstraint('email', name='uq_employees_email'),
        sa.UniqueConstraint('national_id', name='uq_employees_national_id'),
        sa.UniqueConstraint('invitation_token', name='uq_employees_invitation_token'),
    )
    op.create_index('ix_employees_organization_id', 'employees', ['organization_id'])
    op.create_index('ix_employees_invitation_status', 'employees', ['invitation_status'])
    op.create_index('ix_employees_status', 'employees', ['status'])
    op.create_index('ix_employees_employment_status', 'employees', ['employment_status'])
    op.create_index('ix_employees_is_deleted', 'employees', ['is_deleted'])
    op.create_index('ix_employees_organization_email', 'employees', ['organization_id', 'email'])

    op.create_table(
        'employee_status_history',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('employee_id', sa.String(36), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('from_status', sa.String(10), nullable=True),
        sa.Column('to_status', sa.String(10), nullable=False),
        sa.Column('changed_by_id', sa.String(36), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(200), nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_employee_status_history_employee_id_employees'),
        sa.ForeignKeyConstraint(['changed_by_id'], ['users.id'], name='fk_employee_status_history_changed_by_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_employee_status_history'),
    )
    op.create_index('ix_employee_status_history_employee_id', 'employee_status_history', ['employee_id'])
    op.create_index(
        'ix_employee_status_history_employee_sequence',
        'employee_status_history',
        ['employee_id', 'sequence'],
        unique=True,
    )


def downgrade() -> None:
    """Drop the onboarding schema."""
    op.drop_index('ix_employee_status_history_employee_sequence', table_name='employee_status_history')
    op.drop_index('ix_employee_status_history_employee_id', table_name='employee_status_history')
    op.drop_table('employee_status_history')

    op.drop_index('ix_employees_organization_email', table_name='employees')
    op.drop_index('ix_employees_is_deleted', table_name='employees')
    op.drop_index('ix_employees_employment_status', table_name='employees')
    op.drop_index('ix_employees_status', table_name='employees')
    op.drop_index('ix_employees_invitation_status', table_name='employees')
    op.drop_index('ix_employees_organization_id', table_name='employees')
    op.drop_table('employees')

    with op.batch_alter_table('organizations') as batch_op:
        batch_op.drop_constraint('fk_organizations_super_admin_id_users', type_='foreignkey')

    op.drop_index('ix_users_organization_id', table_name='users')
    op.drop_table('users')
    op.drop_table('organizations')
