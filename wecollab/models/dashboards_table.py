# wecollab/models/dashboards_table.py
# Dashboards, their memberships and timer widgets

import uuid

from sqlalchemy import (
    Table, Column, Text, Integer, Boolean, TIMESTAMP, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.dialects.postgresql import UUID

from wecollab.db.base import metadata


dashboards = Table(
    'dashboards',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('name', Text, nullable=False),
    Column('owner_id', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('invite_code', Text, nullable=False),
    Column('one_time_password', Text, nullable=False),
    Column('max_users', Integer, nullable=False, server_default='4'),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Column('updated_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint('invite_code', name='uq_dashboards_invite_code'),
    schema='public',
)


dashboard_members = Table(
    'dashboard_members',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('dashboard_id', UUID(as_uuid=True), ForeignKey('public.dashboards.id', ondelete='CASCADE'), nullable=False),
    Column('user_id', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('role', Text, nullable=False, server_default='member'),
    Column('joined_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint('dashboard_id', 'user_id', name='uq_dashboard_members_dashboard_user'),
    CheckConstraint("role IN ('owner', 'member')", name='ck_dashboard_members_role'),
    Index('ix_dashboard_members_user_id', 'user_id'),
    schema='public',
)


widgets = Table(
    'widgets',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('dashboard_id', UUID(as_uuid=True), ForeignKey('public.dashboards.id', ondelete='CASCADE'), nullable=False),
    Column('title', Text, nullable=False),
    Column('position', Integer, nullable=False),
    Column('is_default', Boolean, nullable=False, server_default='false'),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Index('ix_widgets_dashboard_position', 'dashboard_id', 'position'),
    schema='public',
)
