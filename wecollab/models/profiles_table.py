# wecollab/models/profiles_table.py
# User profiles; id equals the identity provider's user id

from sqlalchemy import Table, Column, Text, TIMESTAMP, Index, func
from sqlalchemy.dialects.postgresql import UUID

from wecollab.db.base import metadata


profiles = Table(
    'profiles',
    metadata,
    Column('id', UUID(as_uuid=True), primary_key=True),
    Column('display_name', Text, nullable=False),
    Column('email', Text, nullable=True),
    Column('avatar_url', Text, nullable=True),
    Column('phone', Text, nullable=True),
    Column('theme_mode', Text, nullable=False, server_default='system'),
    Column('theme_color', Text, nullable=False, server_default='theme-zinc'),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Column('updated_at', TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
    Index('ix_profiles_email', 'email'),
    schema='public',
)
