# wecollab/models/invites_table.py
# Email-targeted invitations to a dashboard

import uuid

from sqlalchemy import (
    Table, Column, Text, TIMESTAMP, ForeignKey, UniqueConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.dialects.postgresql import UUID

from wecollab.db.base import metadata


dashboard_invites = Table(
    'dashboard_invites',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('dashboard_id', UUID(as_uuid=True), ForeignKey('public.dashboards.id', ondelete='CASCADE'), nullable=False),
    Column('email', Text, nullable=False),
    Column('invited_by', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('status', Text, nullable=False, server_default='pending'),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Column('expires_at', TIMESTAMP(timezone=True), nullable=False),
    UniqueConstraint('dashboard_id', 'email', name='uq_dashboard_invites_dashboard_email'),
    CheckConstraint(
        "status IN ('pending', 'accepted', 'declined', 'expired')",
        name='ck_dashboard_invites_status',
    ),
    Index('ix_dashboard_invites_email_status', 'email', 'status'),
    schema='public',
)
