"""Admin dashboard aggregation.

Computed on every request, nothing is cached:

- exact per-kind counts over the trailing 14-day window (one COUNT query per
  kind);
- everything else (unique sessions, top destination domains, daily trend,
  recent activity) from the newest ``RECENT_EVENTS_LIMIT`` rows only.

The two can disagree once more than RECENT_EVENTS_LIMIT events fall inside
the window; the page labels the page-derived panels accordingly.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable, Iterable, Sequence

from sqlalchemy.orm import Session, sessionmaker

from quickqr.lib.links import read_hostname
from quickqr.lib.structured_logger import StructuredLogger
from quickqr.models.usage_event import EventKind, UsageEvent
from quickqr.services.analytics_service import AnalyticsService

logger = StructuredLogger(__name__)

RECENT_EVENTS_LIMIT = 120
RECENT_ACTIVITY_LIMIT = 20
TREND_DAYS = 14
TOP_DOMAINS_LIMIT = 5
SESSION_PREFIX_LENGTH = 8


@dataclass(frozen=True)
class EventRow:
    """Detached, read-only view of one stored event."""

    created_at: datetime
    event_type: str
    session_id: str
    payload: dict[str, Any]
    user_agent: str | None = None
    referrer: str | None = None

    @classmethod
    def from_model(cls, event: UsageEvent) -> 'EventRow':
        created_at = event.created_at
        if created_at.tzinfo is None:
            # SQLite hands back naive UTC values
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            created_at=created_at,
            event_type=event.event_type,
            session_id=event.session_id,
            payload=event.payload if isinstance(event.payload, dict) else {},
            user_agent=event.user_agent,
            referrer=event.referrer,
        )

    @property
    def destination_domain(self) -> str | None:
        return read_hostname(self.payload.get('destinationUrl'))


@dataclass(frozen=True)
class TrendPoint:
    day: date
    count: int


@dataclass(frozen=True)
class ActivityItem:
    created_at: datetime
    event_type: str
    session_prefix: str
    domain: str | None


@dataclass
class DashboardSummary:
    """Everything the dashboard page shows."""

    generated_at: datetime
    window_start: datetime
    events_loaded: int
    unique_sessions: int
    counts: dict[str, int]
    trend: list[TrendPoint]
    trend_max: int
    top_domains: list[tuple[str, int]]
    recent: list[ActivityItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        return {
            'generatedAt': self.generated_at.isoformat(),
            'windowStart': self.window_start.isoformat(),
            'eventsLoaded': self.events_loaded,
            'uniqueSessions': self.unique_sessions,
            'counts14d': dict(self.counts),
            'trend': [{'day': p.day.isoformat(), 'count': p.count} for p in self.trend],
            'trendMax': self.trend_max,
            'topDomains': [{'domain': d, 'count': c} for d, c in self.top_domains],
            'recent': [
                {
                    'createdAt': item.created_at.isoformat(),
                    'eventType': item.event_type,
                    'session': item.session_prefix,
                    'domain': item.domain,
                }
                for item in self.recent
            ],
        }


def window_start(now: datetime, days: int = TREND_DAYS, tz: tzinfo | None = None) -> datetime:
    """Local midnight of the first day of the window.

    The window is ``days`` calendar days long and includes today. Days are
    taken in ``tz``, or in the system time zone when ``tz`` is None; either
    way the offset is the one in force at that midnight, not today's.
    """
    first_day = now.astimezone(tz).date() - timedelta(days=days - 1)
    midnight = datetime.combine(first_day, time.min)
    if tz is None:
        return midnight.astimezone()
    return midnight.replace(tzinfo=tz)


def top_domains(rows: Iterable[EventRow], limit: int = TOP_DOMAINS_LIMIT) -> list[tuple[str, int]]:
    """Rank destination hostnames of qr_generated rows by frequency.

    Rows without a parseable destination URL are skipped. Ties keep the order
    in which the hostname was first seen in ``rows``.
    """
    tally: dict[str, int] = {}
    for row in rows:
        if row.event_type != EventKind.QR_GENERATED.value:
            continue
        domain = row.destination_domain
        if not domain:
            continue
        tally[domain] = tally.get(domain, 0) + 1

    ranked = sorted(tally.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def daily_trend(
    rows: Iterable[EventRow],
    now: datetime,
    days: int = TREND_DAYS,
    tz: tzinfo | None = None,
) -> list[TrendPoint]:
    """Zero-filled per-day event counts for the trailing window.

    Each row is assigned to its calendar day in ``tz`` (the system time zone
    when None); rows outside the window are ignored.
    """
    first_day = now.astimezone(tz).date() - timedelta(days=days - 1)
    buckets = {first_day + timedelta(days=offset): 0 for offset in range(days)}

    for row in rows:
        day = row.created_at.astimezone(tz).date()
        if day in buckets:
            buckets[day] += 1

    return [TrendPoint(day=day, count=count) for day, count in buckets.items()]


def trend_scale(points: Sequence[TrendPoint]) -> int:
    """Vertical scale of the trend chart (never below 1)."""
    return max([p.count for p in points] + [1])


def recent_activity(rows: Sequence[EventRow], limit: int = RECENT_ACTIVITY_LIMIT) -> list[ActivityItem]:
    """First ``limit`` rows as display items (session keys truncated)."""
    return [
        ActivityItem(
            created_at=row.created_at,
            event_type=row.event_type,
            session_prefix=row.session_id[:SESSION_PREFIX_LENGTH],
            domain=row.destination_domain,
        )
        for row in rows[:limit]
    ]


def unique_sessions(rows: Iterable[EventRow]) -> int:
    return len({row.session_id for row in rows})


def server_now() -> datetime:
    """Current time in the server's local time zone."""
    return datetime.now().astimezone()


class DashboardService:
    """Builds the dashboard summary from the analytics store.

    Each query runs in its own worker thread with its own session, so the
    recent-rows page and the per-kind counts are fetched concurrently.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = server_now,
        recent_limit: int = RECENT_EVENTS_LIMIT,
        tz: tzinfo | None = None,
    ):
        """Initialize dashboard service.

        Args:
            session_factory: Factory producing independent sessions
            clock: Returns the current, time-zone aware, server time
            recent_limit: Size of the recent-rows page
            tz: Zone whose calendar days the window and trend use
                (None for the system time zone)
        """
        self.session_factory = session_factory
        self.clock = clock
        self.recent_limit = recent_limit
        self.tz = tz

    def _load_recent(self) -> list[EventRow]:
        with self.session_factory() as session:
            return [EventRow.from_model(e) for e in AnalyticsService(session).recent_events(self.recent_limit)]

    def _count(self, kind: EventKind, since: datetime) -> int:
        with self.session_factory() as session:
            return AnalyticsService(session).count_by_kind(kind, since)

    async def build(self) -> DashboardSummary:
        """Run all queries concurrently and aggregate the results.

        Raises:
            SQLAlchemyError: If any query fails (no partial summary is built)
        """
        now = self.clock()
        start = window_start(now, tz=self.tz)
        # Stored timestamps are compared in UTC
        since = start.astimezone(timezone.utc)
        kinds = list(EventKind)

        rows, *counts = await asyncio.gather(
            asyncio.to_thread(self._load_recent),
            *(asyncio.to_thread(self._count, kind, since) for kind in kinds),
        )

        trend = daily_trend(rows, now, tz=self.tz)
        summary = DashboardSummary(
            generated_at=now,
            window_start=start,
            events_loaded=len(rows),
            unique_sessions=unique_sessions(rows),
            counts={kind.value: count for kind, count in zip(kinds, counts)},
            trend=trend,
            trend_max=trend_scale(trend),
            top_domains=top_domains(rows),
            recent=recent_activity(rows),
        )

        logger.info(
            'Dashboard summary built',
            events_loaded=summary.events_loaded,
            unique_sessions=summary.unique_sessions,
        )
        return summary
