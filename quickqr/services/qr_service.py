"""QR rendering service.

Encodes a normalized URL as a QR code and returns both an embeddable PNG
(data URL) and SVG markup. Encoding is done by the ``qrcode`` library; the
PNG goes through Pillow so it can be scaled to an exact pixel width.
"""

import asyncio
import base64
import io
import time
from dataclasses import dataclass

import qrcode
import qrcode.constants
from PIL import Image
from qrcode.image.svg import SvgPathImage

from quickqr.lib.errors import QRRenderError
from quickqr.lib.metrics import record_qr_render
from quickqr.lib.structured_logger import StructuredLogger

logger = StructuredLogger(__name__)

QR_SIZE = 320
QR_MARGIN = 2
PNG_MIME_TYPE = 'image/png'
SVG_MIME_TYPE = 'image/svg+xml'


@dataclass(frozen=True)
class RenderedQR:
    """Both renditions of one QR code."""

    url: str
    png_data_url: str
    svg: str
    size: int
    margin: int

    @property
    def png_bytes(self) -> bytes:
        """Raw PNG bytes decoded from the data URL."""
        _, _, encoded = self.png_data_url.partition(',')
        return base64.b64decode(encoded)


class QRRenderer:
    """Renders QR codes with fixed size and quiet-zone margin.

    Output is deterministic: the same URL always produces byte-identical
    PNG and SVG output for a given renderer configuration.
    """

    def __init__(self, size: int = QR_SIZE, margin: int = QR_MARGIN):
        """Initialize renderer.

        Args:
            size: Width and height of the PNG in pixels
            margin: Quiet zone around the code, in modules
        """
        if size <= 0:
            raise ValueError('size must be positive')
        if margin < 0:
            raise ValueError('margin must not be negative')
        self.size = size
        self.margin = margin

    def _build(self, url: str) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=self.margin,
        )
        qr.add_data(url)
        qr.make(fit=True)
        return qr

    def render_png_bytes(self, url: str) -> bytes:
        """Render the code as a square PNG exactly ``size`` pixels wide."""
        qr = self._build(url)
        modules = qr.modules_count + 2 * self.margin
        qr.box_size = max(1, self.size // modules)

        img = qr.make_image(fill_color='black', back_color='white').get_image()
        img = img.convert('1')
        if img.size != (self.size, self.size):
            img = img.resize((self.size, self.size), Image.NEAREST)

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    def render_png_data_url(self, url: str) -> str:
        """Render the code as a ``data:image/png;base64,...`` URL."""
        encoded = base64.b64encode(self.render_png_bytes(url)).decode('ascii')
        return f'data:{PNG_MIME_TYPE};base64,{encoded}'

    def render_svg(self, url: str) -> str:
        """Render the code as standalone SVG markup."""
        qr = self._build(url)
        img = qr.make_image(image_factory=SvgPathImage)
        return img.to_string(encoding='unicode')

    async def render(self, url: str) -> RenderedQR:
        """Render PNG and SVG output concurrently.

        Both renditions are produced in worker threads; the call returns only
        when both are done. Any library failure is reported as QRRenderError
        so callers never see a partial result.

        Args:
            url: Normalized URL to encode

        Returns:
            RenderedQR with both renditions

        Raises:
            QRRenderError: If either rendition fails
        """
        start = time.perf_counter()
        try:
            png_data_url, svg = await asyncio.gather(
                asyncio.to_thread(self.render_png_data_url, url),
                asyncio.to_thread(self.render_svg, url),
            )
        except Exception as e:
            record_qr_render('failure')
            logger.warning(
                'QR render failed',
                exc_info=True,
                error_type=type(e).__name__,
                url_length=len(url),
            )
            raise QRRenderError() from e

        duration = time.perf_counter() - start
        record_qr_render('success', duration)
        logger.debug('QR rendered', duration_ms=round(duration * 1000, 2), url_length=len(url))

        return RenderedQR(
            url=url,
            png_data_url=png_data_url,
            svg=svg,
            size=self.size,
            margin=self.margin,
        )
