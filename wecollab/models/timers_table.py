# wecollab/models/timers_table.py
# Live timer state per (widget, user) and the durable daily aggregate

import uuid

from sqlalchemy import (
    Table, Column, Text, Integer, Date, TIMESTAMP, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.dialects.postgresql import UUID

from wecollab.db.base import metadata


timer_states = Table(
    'timer_states',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('widget_id', UUID(as_uuid=True), ForeignKey('public.widgets.id', ondelete='CASCADE'), nullable=False),
    Column('user_id', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('status', Text, nullable=False, server_default='idle'),
    Column('current_seconds', Integer, nullable=False, server_default='0'),
    Column('started_at', TIMESTAMP(timezone=True), nullable=True),
    Column('last_updated', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint('widget_id', 'user_id', name='uq_timer_states_widget_user'),
    CheckConstraint("status IN ('idle', 'running', 'paused')", name='ck_timer_states_status'),
    Index('ix_timer_states_user_status', 'user_id', 'status'),
    schema='public',
)


timer_sessions = Table(
    'timer_sessions',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column('widget_id', UUID(as_uuid=True), ForeignKey('public.widgets.id', ondelete='CASCADE'), nullable=False),
    Column('user_id', UUID(as_uuid=True), ForeignKey('public.profiles.id', ondelete='CASCADE'), nullable=False),
    Column('date', Date, nullable=False),
    Column('total_seconds', Integer, nullable=False, server_default='0'),
    Column('session_count', Integer, nullable=False, server_default='0'),
    Column('note', Text, nullable=True),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Column('updated_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint('widget_id', 'user_id', 'date', name='uq_timer_sessions_widget_user_date'),
    Index('ix_timer_sessions_widget_date', 'widget_id', 'date'),
    schema='public',
)
