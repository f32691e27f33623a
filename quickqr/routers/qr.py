"""QR code API: render a link as PNG + SVG, or download one rendition."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from quickqr.lib.errors import InvalidLinkError, QRRenderError
from quickqr.lib.links import require_url
from quickqr.lib.structured_logger import StructuredLogger
from quickqr.services.qr_service import PNG_MIME_TYPE, SVG_MIME_TYPE, QRRenderer

router = APIRouter()
logger = StructuredLogger(__name__)

DOWNLOAD_BASENAME = 'quickqr'

_renderer = QRRenderer()


def get_renderer() -> QRRenderer:
  """Dependency returning the shared renderer (fixed size and margin)."""
  return _renderer


class GenerateQRRequest(BaseModel):
  """Request body for QR generation."""
  url: str = Field(..., max_length=4096, description='Link as typed by the user')


class GenerateQRResponse(BaseModel):
  """Both renditions of the generated code."""
  normalizedUrl: str
  png: str = Field(..., description='PNG data URL')
  svg: str = Field(..., description='SVG markup')
  size: int
  margin: int


def _error(status_code: int, message: str) -> JSONResponse:
  return JSONResponse(status_code=status_code, content={'error': message})


@router.post('/qr', response_model=GenerateQRResponse)
async def generate_qr(body: GenerateQRRequest, renderer: QRRenderer = Depends(get_renderer)):
  """Normalize the link and render it.

  Raises:
      400: The input is not an http(s) link
      500: The QR library could not encode the link
  """
  try:
    normalized = require_url(body.url)
  except InvalidLinkError as e:
    return _error(400, str(e))

  try:
    rendered = await renderer.render(normalized)
  except QRRenderError as e:
    return _error(500, str(e))

  return GenerateQRResponse(
    normalizedUrl=rendered.url,
    png=rendered.png_data_url,
    svg=rendered.svg,
    size=rendered.size,
    margin=rendered.margin,
  )


@router.get('/qr/download')
async def download_qr(
  url: str = Query(..., max_length=4096),
  format: Literal['png', 'svg'] = Query('png'),
  renderer: QRRenderer = Depends(get_renderer),
):
  """Return one rendition as a file attachment (quickqr.png / quickqr.svg)."""
  try:
    normalized = require_url(url)
  except InvalidLinkError as e:
    return _error(400, str(e))

  try:
    rendered = await renderer.render(normalized)
  except QRRenderError as e:
    return _error(500, str(e))

  if format == 'svg':
    content, media_type = rendered.svg.encode('utf-8'), SVG_MIME_TYPE
  else:
    content, media_type = rendered.png_bytes, PNG_MIME_TYPE

  return Response(
    content=content,
    media_type=media_type,
    headers={'Content-Disposition': f'attachment; filename="{DOWNLOAD_BASENAME}.{format}"'},
  )
