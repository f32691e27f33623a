"""Unit tests for analytics ingestion service."""

import hashlib
import hmac
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from quickqr.models.event_payloads import AnalyticsEventIn
from quickqr.models.usage_event import EventKind, UsageEvent
from quickqr.services.analytics_service import (
    AnalyticsService,
    hash_ip_address,
    read_ip_address,
)


def _event(kind='qr_generated', session_id='session-abc', payload=None):
    return AnalyticsEventIn.model_validate({
        'kind': kind,
        'sessionId': session_id,
        'payload': payload if payload is not None else {'destinationUrl': 'https://example.com/'},
    })


class TestReadIpAddress:
    """Caller address extraction."""

    def test_first_forwarded_value(self):
        assert read_ip_address({'x-forwarded-for': ' 203.0.113.7 , 10.0.0.1'}) == '203.0.113.7'

    def test_missing_header(self):
        assert read_ip_address({}) == 'unknown'

    def test_blank_first_value(self):
        assert read_ip_address({'x-forwarded-for': ' , 10.0.0.1'}) == 'unknown'


class TestHashIpAddress:
    """One-way address digests."""

    def test_plain_sha256(self):
        assert hash_ip_address('203.0.113.7') == hashlib.sha256(b'203.0.113.7').hexdigest()

    def test_salted_hmac(self):
        expected = hmac.new(b'pepper', b'203.0.113.7', hashlib.sha256).hexdigest()
        assert hash_ip_address('203.0.113.7', salt='pepper') == expected

    def test_deterministic_and_not_reversible(self):
        digest = hash_ip_address('203.0.113.7')
        assert digest == hash_ip_address('203.0.113.7')
        assert '203.0.113.7' not in digest
        assert len(digest) == 64


class TestRecordEvent:
    """Writes against the in-memory store."""

    def test_writes_one_row(self, analytics_db):
        with analytics_db() as session:
            AnalyticsService(session).record_event(
                _event(), '203.0.113.7', user_agent='pytest-agent', referrer='https://ref.example/'
            )

        with analytics_db() as session:
            rows = session.execute(select(UsageEvent)).scalars().all()

        assert len(rows) == 1
        row = rows[0]
        assert row.event_type == 'qr_generated'
        assert row.session_id == 'session-abc'
        assert row.payload == {'destinationUrl': 'https://example.com/'}
        assert row.ip_hash == hashlib.sha256(b'203.0.113.7').hexdigest()
        assert row.user_agent == 'pytest-agent'
        assert row.referrer == 'https://ref.example/'
        assert row.created_at is not None

    def test_uses_salt_from_environment(self, analytics_db, monkeypatch):
        monkeypatch.setenv('ANALYTICS_IP_SALT', 'pepper')

        with analytics_db() as session:
            row = AnalyticsService(session).record_event(_event(), '203.0.113.7')
            ip_hash = row.ip_hash

        assert ip_hash == hmac.new(b'pepper', b'203.0.113.7', hashlib.sha256).hexdigest()

    def test_failure_rolls_back_and_reraises(self, caplog):
        db = MagicMock()
        db.commit.side_effect = OperationalError('INSERT', {}, Exception('connection lost'))

        with caplog.at_level(logging.ERROR, logger='quickqr.events'):
            with pytest.raises(OperationalError):
                AnalyticsService(db).record_event(_event(), '203.0.113.7')

        db.rollback.assert_called_once()
        assert any(r.getMessage() == 'analytics.store_failed' for r in caplog.records)

    def test_raw_address_never_logged(self, analytics_db, caplog):
        with caplog.at_level(logging.DEBUG):
            with analytics_db() as session:
                AnalyticsService(session).record_event(_event(), '198.51.100.23')

        assert '198.51.100.23' not in caplog.text


class TestQueries:
    """Counting and listing."""

    def test_count_by_kind_respects_window(self, insert_event, analytics_db):
        now = datetime.now(timezone.utc)
        insert_event('qr_generated', created_at=now - timedelta(days=1))
        insert_event('qr_generated', created_at=now - timedelta(days=2))
        insert_event('qr_generated', created_at=now - timedelta(days=30))
        insert_event('page_visit', created_at=now - timedelta(days=1))

        with analytics_db() as session:
            service = AnalyticsService(session)
            since = now - timedelta(days=14)
            assert service.count_by_kind(EventKind.QR_GENERATED, since) == 2
            assert service.count_by_kind(EventKind.PAGE_VISIT, since) == 1
            assert service.count_by_kind(EventKind.QR_DOWNLOADED, since) == 0

    def test_recent_events_newest_first(self, insert_event, analytics_db):
        now = datetime.now(timezone.utc)
        for hours in (5, 1, 3):
            insert_event('page_visit', session_id=f'h{hours}', created_at=now - timedelta(hours=hours))

        with analytics_db() as session:
            recent = AnalyticsService(session).recent_events(limit=2)

        assert [e.session_id for e in recent] == ['h1', 'h3']
