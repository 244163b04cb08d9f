"""init collaboration schema

Revision ID: 4b7e2c9d1a30
Revises:
Create Date: 2026-10-19 09:12:40.113902

"""
from typing import Sequence, Union

from alembic import op  # type: ignore
import sqlalchemy as sa  # type: ignore
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b7e2c9d1a30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, *args, **kw) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), *args, **kw)


def _fk(name: str, target: str, nullable: bool = False) -> sa.Column:
    return _uuid(name, sa.ForeignKey(f'public.{target}.id', ondelete='CASCADE'), nullable=nullable)


def _ts(name: str, nullable: bool = False, default: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=sa.text('now()') if default else None,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        _uuid('id', nullable=False),
        sa.Column('display_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('theme_mode', sa.Text(), nullable=False, server_default='system'),
        sa.Column('theme_color', sa.Text(), nullable=False, server_default='theme-zinc'),
        _ts('created_at'),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        schema='public',
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], schema='public')

    op.create_table(
        'dashboards',
        _uuid('id', nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        _fk('owner_id', 'profiles'),
        sa.Column('invite_code', sa.Text(), nullable=False),
        sa.Column('one_time_password', sa.Text(), nullable=False),
        sa.Column('max_users', sa.Integer(), nullable=False, server_default='4'),
        _ts('created_at'),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invite_code', name='uq_dashboards_invite_code'),
        schema='public',
    )

    op.create_table(
        'dashboard_members',
        _uuid('id', nullable=False),
        _fk('dashboard_id', 'dashboards'),
        _fk('user_id', 'profiles'),
        sa.Column('role', sa.Text(), nullable=False, server_default='member'),
        _ts('joined_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dashboard_id', 'user_id', name='uq_dashboard_members_dashboard_user'),
        sa.CheckConstraint("role IN ('owner', 'member')", name='ck_dashboard_members_role'),
        schema='public',
    )
    op.create_index('ix_dashboard_members_user_id', 'dashboard_members', ['user_id'], schema='public')

    op.create_table(
        'widgets',
        _uuid('id', nullable=False),
        _fk('dashboard_id', 'dashboards'),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        schema='public',
    )
    op.create_index('ix_widgets_dashboard_position', 'widgets', ['dashboard_id', 'position'], schema='public')

    op.create_table(
        'dashboard_invites',
        _uuid('id', nullable=False),
        _fk('dashboard_id', 'dashboards'),
        sa.Column('email', sa.Text(), nullable=False),
        _fk('invited_by', 'profiles'),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        _ts('created_at'),
        _ts('expires_at', default=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dashboard_id', 'email', name='uq_dashboard_invites_dashboard_email'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired')",
            name='ck_dashboard_invites_status',
        ),
        schema='public',
    )
    op.create_index(
        'ix_dashboard_invites_email_status', 'dashboard_invites', ['email', 'status'], schema='public'
    )

    op.create_table(
        'timer_states',
        _uuid('id', nullable=False),
        _fk('widget_id', 'widgets'),
        _fk('user_id', 'profiles'),
        sa.Column('status', sa.Text(), nullable=False, server_default='idle'),
        sa.Column('current_seconds', sa.Integer(), nullable=False, server_default='0'),
        _ts('started_at', nullable=True, default=False),
        _ts('last_updated'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('widget_id', 'user_id', name='uq_timer_states_widget_user'),
        sa.CheckConstraint("status IN ('idle', 'running', 'paused')", name='ck_timer_states_status'),
        schema='public',
    )
    op.create_index('ix_timer_states_user_status', 'timer_states', ['user_id', 'status'], schema='public')

    op.create_table(
        'timer_sessions',
        _uuid('id', nullable=False),
        _fk('widget_id', 'widgets'),
        _fk('user_id', 'profiles'),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('session_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('note', sa.Text(), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('widget_id', 'user_id', 'date', name='uq_timer_sessions_widget_user_date'),
        schema='public',
    )
    op.create_index('ix_timer_sessions_widget_date', 'timer_sessions', ['widget_id', 'date'], schema='public')

    op.create_table(
        'chat_messages',
        _uuid('id', nullable=False),
        _fk('dashboard_id', 'dashboards'),
        _fk('user_id', 'profiles'),
        sa.Column('message', sa.Text(), nullable=False),
        _ts('created_at'),
        _ts('updated_at', nullable=True, default=False),
        _ts('deleted_at', nullable=True, default=False),
        sa.PrimaryKeyConstraint('id'),
        schema='public',
    )
    op.create_index(
        'ix_chat_messages_dashboard_created', 'chat_messages', ['dashboard_id', 'created_at'], schema='public'
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_chat_messages_dashboard_created', table_name='chat_messages', schema='public')
    op.drop_table('chat_messages', schema='public')
    op.drop_index('ix_timer_sessions_widget_date', table_name='timer_sessions', schema='public')
    op.drop_table('timer_sessions', schema='public')
    op.drop_index('ix_timer_states_user_status', table_name='timer_states', schema='public')
    op.drop_table('timer_states', schema='public')
    op.drop_index('ix_dashboard_invites_email_status', table_name='dashboard_invites', schema='public')
    op.drop_table('dashboard_invites', schema='public')
    op.drop_index('ix_widgets_dashboard_position', table_name='widgets', schema='public')
    op.drop_table('widgets', schema='public')
    op.drop_index('ix_dashboard_members_user_id', table_name='dashboard_members', schema='public')
    op.drop_table('dashboard_members', schema='public')
    op.drop_table('dashboards', schema='public')
    op.drop_index('ix_profiles_email', table_name='profiles', schema='public')
    op.drop_table('profiles', schema='public')
