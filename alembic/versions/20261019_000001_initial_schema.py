"""Initial schema: organizations, preferences, texts, users, roles

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _organization_id() -> sa.Column:
    return sa.Column('organization_id', postgresql.UUID(as_uuid=True),
                     sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    # === ORGANIZATIONS ===
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('shortname', sa.String(length=10), nullable=False),
        sa.Column('longname', sa.String(length=50), nullable=False),
        sa.Column('homepage', sa.String(length=255), nullable=False, server_default=''),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shortname')
    )

    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('language', sa.String(length=5), nullable=False, server_default='en'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # === PREFERENCES ===
    op.create_table(
        'preferences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        _organization_id(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('value', sa.Text(), nullable=False, server_default=''),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_preferences_org_name')
    )
    op.create_index('ix_preferences_organization_id', 'preferences', ['organization_id'])

    # === TEXTS ===
    op.create_table(
        'texts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        _organization_id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('text', sa.Text(), nullable=False, server_default=''),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_texts_org_name')
    )
    op.create_index('ix_texts_organization_id', 'texts', ['organization_id'])

    # === AUTO LOGINS ===
    op.create_table(
        'auto_logins',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        _organization_id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token')
    )
    op.create_index('ix_auto_logins_organization_id', 'auto_logins', ['organization_id'])
    op.create_index('ix_auto_logins_user_id', 'auto_logins', ['user_id'])

    # === CATEGORIES ===
    op.create_table(
        'categories',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        _organization_id(),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categories_organization_id', 'categories', ['organization_id'])

    # === ROLES ===
    op.create_table(
        'roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        _organization_id(),
        sa.Column('category_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_administrator', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_roles_organization_id', 'roles', ['organization_id'])

    # === MEMBERSHIPS ===
    op.create_table(
        'memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False, server_default=sa.text('CURRENT_DATE')),
        sa.Column('end_date', sa.Date(), nullable=False, server_default='9999-12-31'),
        sa.Column('is_leader', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id', 'user_id', name='uq_memberships_role_user')
    )
    op.create_index('ix_memberships_role_id', 'memberships', ['role_id'])
    op.create_index('ix_memberships_user_id', 'memberships', ['user_id'])


def downgrade() -> None:
    op.drop_table('memberships')
    op.drop_table('roles')
    op.drop_table('categories')
    op.drop_table('auto_logins')
    op.drop_table('texts')
    op.drop_table('preferences')
    op.drop_table('users')
    op.drop_table('organizations')
