"""Usage Event SQLAlchemy Model

One row per tracked user action. Rows are written by the ingestion endpoint
and never updated or deleted.
"""

import uuid
from enum import Enum

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB

from quickqr.lib.database import Base


class EventKind(str, Enum):
    """Closed set of tracked actions."""

    PAGE_VISIT = 'page_visit'
    QR_GENERATED = 'qr_generated'
    QR_DOWNLOADED = 'qr_downloaded'


EVENT_KINDS = tuple(kind.value for kind in EventKind)


class UsageEvent(Base):
    """Anonymous usage event.

    Table: analytics_events

    Columns:
        id: UUID primary key, generated at write time
        created_at: Server-assigned creation time
        event_type: One of EVENT_KINDS (check constraint)
        session_id: Client-generated session key (not authenticated)
        payload: Kind-specific JSON map (destination URL, format, ...)
        ip_hash: One-way digest of the caller address, never the raw address
        user_agent: User-Agent header, verbatim
        referrer: Referer header, verbatim
    """

    __tablename__ = 'analytics_events'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    event_type = Column(String(32), nullable=False)
    session_id = Column(Text, nullable=False)
    payload = Column(JSON().with_variant(JSONB(), 'postgresql'), nullable=False, default=dict)
    ip_hash = Column(Text, nullable=False)
    user_agent = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            'event_type IN (' + ', '.join(f"'{kind}'" for kind in EVENT_KINDS) + ')',
            name='analytics_events_event_type_check',
        ),
        Index('analytics_events_created_at_idx', created_at.desc()),
        Index('analytics_events_event_type_idx', 'event_type'),
    )

    def __repr__(self) -> str:
        return f"<UsageEvent(id={self.id}, event_type='{self.event_type}', session_id='{self.session_id}')>"

    def to_dict(self) -> dict:
        """Convert model to dictionary (ip_hash excluded)."""
        return {
            'id': str(self.id) if self.id else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'event_type': self.event_type,
            'session_id': self.session_id,
            'payload': self.payload or {},
            'user_agent': self.user_agent,
            'referrer': self.referrer,
        }
