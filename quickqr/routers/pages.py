"""Single-page UI."""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from quickqr.lib.templates import templates
from quickqr.services.qr_service import QR_MARGIN, QR_SIZE

router = APIRouter()


@router.get('/', response_class=HTMLResponse, include_in_schema=False)
async def index(request: Request):
  """Link form, preview and download buttons. Analytics run client-side."""
  return templates.TemplateResponse(
    request,
    'index.html',
    {'qr_size': QR_SIZE, 'qr_margin': QR_MARGIN},
  )
