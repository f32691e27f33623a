"""Unit tests for QR rendering."""

import base64
import io

import pytest
from PIL import Image

from quickqr.lib.errors import QRRenderError
from quickqr.services.qr_service import QR_MARGIN, QR_SIZE, QRRenderer

URL = 'https://example.com/'


@pytest.fixture
def renderer():
    return QRRenderer()


def test_png_is_square_at_fixed_size(renderer):
    png = renderer.render_png_bytes(URL)

    image = Image.open(io.BytesIO(png))
    assert image.format == 'PNG'
    assert image.size == (QR_SIZE, QR_SIZE)


def test_png_data_url(renderer):
    data_url = renderer.render_png_data_url(URL)

    assert data_url.startswith('data:image/png;base64,')
    assert base64.b64decode(data_url.split(',', 1)[1]) == renderer.render_png_bytes(URL)


def test_svg_markup(renderer):
    svg = renderer.render_svg(URL)

    assert '<svg' in svg
    assert '<path' in svg


@pytest.mark.asyncio
async def test_render_returns_both_renditions(renderer):
    rendered = await renderer.render(URL)

    assert rendered.url == URL
    assert rendered.png_data_url.startswith('data:image/png;base64,')
    assert rendered.png_bytes
    assert '<svg' in rendered.svg
    assert rendered.size == QR_SIZE
    assert rendered.margin == QR_MARGIN


@pytest.mark.asyncio
async def test_render_is_deterministic(renderer):
    first = await renderer.render(URL)
    second = await renderer.render(URL)

    assert first.png_data_url == second.png_data_url
    assert first.svg == second.svg


@pytest.mark.asyncio
async def test_different_urls_give_different_codes(renderer):
    first = await renderer.render('https://example.com/a')
    second = await renderer.render('https://example.com/b')

    assert first.png_data_url != second.png_data_url


@pytest.mark.asyncio
async def test_oversized_input_raises_generic_error(renderer):
    # Beyond QR version 40 capacity at error correction level M
    too_long = 'https://example.com/' + 'a' * 5000

    with pytest.raises(QRRenderError) as exc_info:
        await renderer.render(too_long)

    assert str(exc_info.value) == 'Could not generate QR code. Try a different URL.'
    assert exc_info.value.__cause__ is not None


def test_invalid_parameters():
    with pytest.raises(ValueError):
        QRRenderer(size=0)
    with pytest.raises(ValueError):
        QRRenderer(margin=-1)
