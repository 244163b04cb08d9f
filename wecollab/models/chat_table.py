# wecollab/models/chat_table.py

import uuid

from sqlalchemy import Table, Column, Text, TIMESTAMP, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID

from wecollab.db.base import metadata


chat_messages = Table(
    'chat_messages',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('dashboard_id', UUID(as_uuid=True), ForeignKey('public.dashboards.id', ondelete='CASCADE'), nullable=False),
    Column('user_id', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('message', Text, nullable=False),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Column('updated_at', TIMESTAMP(timezone=True), nullable=True),
    Column('deleted_at', TIMESTAMP(timezone=True), nullable=True),  # soft delete
    Index('ix_chat_messages_dashboard_created', 'dashboard_id', 'created_at'),
    schema='public',
)
