"""Contract tests for the QR endpoints."""

import base64

import pytest

INVALID_LINK = {'error': 'Enter a valid link. Example: https://example.com'}


class TestGenerateQR:

    def test_generates_both_renditions(self, client):
        response = client.post('/api/qr', json={'url': '  Example.com/path '})

        assert response.status_code == 200
        data = response.json()
        assert data['normalizedUrl'] == 'https://example.com/path'
        assert data['png'].startswith('data:image/png;base64,')
        assert base64.b64decode(data['png'].split(',', 1)[1])[:8] == b'\x89PNG\r\n\x1a\n'
        assert '<svg' in data['svg']
        assert data['size'] == 320
        assert data['margin'] == 2

    @pytest.mark.parametrize('url', ['javascript:alert(1)', '   ', 'mailto:a@example.com'])
    def test_invalid_link_returns_400(self, client, url):
        response = client.post('/api/qr', json={'url': url})

        assert response.status_code == 400
        assert response.json() == INVALID_LINK

    def test_render_failure_returns_generic_500(self, client):
        response = client.post('/api/qr', json={'url': 'https://example.com/' + 'a' * 3000})

        assert response.status_code == 500
        assert response.json() == {'error': 'Could not generate QR code. Try a different URL.'}

    def test_missing_url_uses_default_validation(self, client):
        response = client.post('/api/qr', json={})

        assert response.status_code == 422


class TestDownloadQR:

    def test_png_attachment(self, client):
        response = client.get('/api/qr/download', params={'url': 'example.com', 'format': 'png'})

        assert response.status_code == 200
        assert response.headers['content-type'] == 'image/png'
        assert response.headers['content-disposition'] == 'attachment; filename="quickqr.png"'
        assert response.content.startswith(b'\x89PNG')

    def test_svg_attachment(self, client):
        response = client.get('/api/qr/download', params={'url': 'example.com', 'format': 'svg'})

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('image/svg+xml')
        assert response.headers['content-disposition'] == 'attachment; filename="quickqr.svg"'
        assert b'<svg' in response.content

    def test_invalid_link_returns_400(self, client):
        response = client.get('/api/qr/download', params={'url': 'file:///etc/passwd'})

        assert response.status_code == 400
        assert response.json() == INVALID_LINK


def test_index_page(client):
    response = client.get('/')

    assert response.status_code == 200
    assert 'QuickQR' in response.text
    assert 'quickqr_session_id' in response.text
    assert '/api/analytics' in response.text
