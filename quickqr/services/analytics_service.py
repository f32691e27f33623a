"""Analytics ingestion service.

Validated submissions become one ``analytics_events`` row each. The caller's
network address is reduced to a one-way digest before it leaves this module.
"""

import hashlib
import hmac
import os
from datetime import datetime
from typing import Mapping

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quickqr.lib.structured_logger import StructuredLogger, log_event
from quickqr.models.event_payloads import AnalyticsEventIn
from quickqr.models.usage_event import EventKind, UsageEvent

logger = StructuredLogger(__name__)

UNKNOWN_ADDRESS = 'unknown'


def read_ip_address(headers: Mapping[str, str]) -> str:
    """Derive the caller address from X-Forwarded-For.

    Args:
        headers: Request headers (case-insensitive mapping)

    Returns:
        First comma-separated value of X-Forwarded-For, or 'unknown'
    """
    forwarded_for = headers.get('x-forwarded-for')
    if forwarded_for:
        first = forwarded_for.split(',')[0].strip()
        return first or UNKNOWN_ADDRESS
    return UNKNOWN_ADDRESS


def hash_ip_address(ip: str, salt: str | None = None) -> str:
    """One-way, deterministic digest of a network address.

    Plain SHA-256 hex digest by default; HMAC-SHA256 keyed with the salt when
    one is given (ANALYTICS_IP_SALT), which stops dictionary lookups of the
    small IPv4 space.

    Args:
        ip: Address string (or 'unknown')
        salt: Optional secret key

    Returns:
        64-character hex digest
    """
    data = ip.encode('utf-8')
    if salt:
        return hmac.new(salt.encode('utf-8'), data, hashlib.sha256).hexdigest()
    return hashlib.sha256(data).hexdigest()


class AnalyticsService:
    """Writes and counts usage events.

    Rows are insert-only: there is no update or delete path.
    """

    def __init__(self, db: Session):
        """Initialize analytics service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def record_event(
        self,
        event: AnalyticsEventIn,
        ip_address: str,
        user_agent: str | None = None,
        referrer: str | None = None,
    ) -> UsageEvent:
        """Store one usage event.

        Args:
            event: Validated submission
            ip_address: Caller address as read from the request (hashed here)
            user_agent: User-Agent header, stored verbatim
            referrer: Referer header, stored verbatim

        Returns:
            The persisted UsageEvent

        Raises:
            SQLAlchemyError: If the insert fails (the session is rolled back)
        """
        row = UsageEvent(
            event_type=event.kind.value,
            session_id=event.session_id,
            payload=event.payload.to_json(),
            ip_hash=hash_ip_address(ip_address, os.getenv('ANALYTICS_IP_SALT') or None),
            user_agent=user_agent,
            referrer=referrer,
        )

        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log_event('analytics.store_failed', level='ERROR', context={
                'kind': event.kind.value,
                'error_type': type(e).__name__,
                'error_message': str(e),
            })
            raise

        log_event('analytics.stored', context={
            'kind': event.kind.value,
            'event_id': str(row.id),
        })
        return row

    def count_by_kind(self, kind: EventKind, since: datetime) -> int:
        """Exact number of events of one kind created at or after ``since``."""
        stmt = (
            select(func.count())
            .select_from(UsageEvent)
            .where(UsageEvent.event_type == kind.value)
            .where(UsageEvent.created_at >= since)
        )
        return int(self.db.execute(stmt).scalar_one())

    def recent_events(self, limit: int) -> list[UsageEvent]:
        """Most recent events, newest first."""
        stmt = (
            select(UsageEvent)
            .order_by(UsageEvent.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

