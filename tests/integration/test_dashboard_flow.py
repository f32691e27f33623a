"""End-to-end: events submitted through the API show up on the dashboard."""

from collections import Counter

import pytest

pytestmark = pytest.mark.integration


def test_page_session_flow(client, analytics_db, admin_key):
    session_id = 'e2e-session-0001'
    generated = client.post('/api/qr', json={'url': 'docs.example.org/start'}).json()

    submissions = [
        {'kind': 'page_visit', 'sessionId': session_id, 'payload': {}},
        {
            'kind': 'qr_generated',
            'sessionId': session_id,
            'payload': {'destinationUrl': generated['normalizedUrl'], 'purpose': None, 'size': 320, 'margin': 2},
        },
        {'kind': 'qr_downloaded', 'sessionId': session_id, 'payload': {'destinationUrl': generated['normalizedUrl'], 'format': 'png'}},
        {'kind': 'qr_downloaded', 'sessionId': session_id, 'payload': {'destinationUrl': generated['normalizedUrl'], 'format': 'svg'}},
        {'kind': 'page_visit', 'sessionId': 'e2e-session-0002'},
    ]
    for body in submissions:
        response = client.post('/api/analytics', json=body, headers={'X-Forwarded-For': '192.0.2.10'})
        assert response.json() == {'ok': True, 'stored': True}

    summary = client.get('/api/admin/summary', params={'key': admin_key}).json()

    assert summary['counts14d'] == {'page_visit': 2, 'qr_generated': 1, 'qr_downloaded': 2}
    assert summary['eventsLoaded'] == 5
    assert summary['uniqueSessions'] == 2
    assert summary['topDomains'] == [{'domain': 'docs.example.org', 'count': 1}]
    assert sum(point['count'] for point in summary['trend']) == 5
    assert Counter(item['eventType'] for item in summary['recent']) == Counter(
        {'page_visit': 2, 'qr_downloaded': 2, 'qr_generated': 1}
    )

    page = client.get('/admin', params={'key': admin_key})
    assert page.status_code == 200
    assert 'docs.example.org' in page.text
    assert '192.0.2.10' not in page.text


def test_dashboard_stays_up_without_backend(client):
    assert client.post('/api/analytics', json={'kind': 'page_visit', 'sessionId': 's'}).json() == {
        'ok': True,
        'stored': False,
    }
    assert client.get('/admin').status_code == 200
    assert client.post('/api/qr', json={'url': 'example.com'}).status_code == 200
