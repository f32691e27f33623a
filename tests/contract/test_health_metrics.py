"""Contract tests for health, metrics and correlation IDs."""

import re

UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$',
    re.IGNORECASE,
)


class TestHealth:

    def test_root_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'healthy'}

    def test_api_health_reports_analytics_mode(self, client, analytics_db):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'healthy', 'analytics': True}


class TestMetrics:

    def test_open_without_configured_key(self, client):
        client.post('/api/analytics', json={'kind': 'page_visit', 'sessionId': 's1'})

        response = client.get('/metrics')

        assert response.status_code == 200
        assert 'analytics_events_total' in response.text
        assert 'qr_renders_total' in response.text

    def test_gated_by_admin_key(self, client, admin_key):
        assert client.get('/metrics').status_code == 403
        assert client.get('/metrics', params={'key': admin_key}).status_code == 200


class TestCorrelationId:

    def test_generated_when_missing(self, client):
        response = client.get('/api/health')

        assert UUID_PATTERN.match(response.headers['X-Correlation-ID'])

    def test_preserves_client_value(self, client):
        response = client.get('/api/health', headers={'X-Correlation-ID': 'trace-42'})

        assert response.headers['X-Correlation-ID'] == 'trace-42'

    def test_present_on_error_responses(self, client):
        response = client.post('/api/analytics', json={})

        assert response.status_code == 400
        assert 'X-Correlation-ID' in response.headers
