"""create analytics_events table

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the append-only usage event table."""
    is_postgres = op.get_bind().dialect.name == 'postgresql'

    if is_postgres:
        op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')
        id_default = sa.text('gen_random_uuid()')
        payload_type = postgresql.JSONB(astext_type=sa.Text())
        payload_default = sa.text("'{}'::jsonb")
    else:
        id_default = None
        payload_type = sa.JSON()
        payload_default = sa.text("'{}'")

    op.create_table(
        'analytics_events',
        sa.Column('id', sa.Uuid(), server_default=id_default, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('event_type', sa.String(length=32), nullable=False),
        sa.Column('session_id', sa.Text(), nullable=False),
        sa.Column('payload', payload_type, server_default=payload_default, nullable=False),
        sa.Column('ip_hash', sa.Text(), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "event_type IN ('page_visit', 'qr_generated', 'qr_downloaded')",
            name='analytics_events_event_type_check',
        ),
    )

    op.create_index(
        'analytics_events_created_at_idx',
        'analytics_events',
        [sa.text('created_at DESC')],
    )
    op.create_index('analytics_events_event_type_idx', 'analytics_events', ['event_type'])


def downgrade() -> None:
    """Drop analytics_events table."""
    op.drop_index('analytics_events_event_type_idx', table_name='analytics_events')
    op.drop_index('analytics_events_created_at_idx', table_name='analytics_events')
    op.drop_table('analytics_events')
