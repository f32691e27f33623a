"""Analytics ingestion endpoint.

Invalid bodies are turned into 400 responses by the application's
RequestValidationError handler (see quickqr.app).
"""

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quickqr.lib.database import get_optional_db_session
from quickqr.lib.metrics import record_analytics_event
from quickqr.lib.structured_logger import StructuredLogger, log_event
from quickqr.models.event_payloads import AnalyticsEventAck, AnalyticsEventIn
from quickqr.services.analytics_service import AnalyticsService, read_ip_address

router = APIRouter()
logger = StructuredLogger(__name__)

ANALYTICS_ROUTE = '/analytics'
INVALID_PAYLOAD_MESSAGE = 'Invalid analytics payload.'
STORE_FAILED_MESSAGE = 'Failed to store analytics.'


@router.post(ANALYTICS_ROUTE, response_model=AnalyticsEventAck)
async def submit_event(
  event: AnalyticsEventIn,
  request: Request,
  db: Session | None = Depends(get_optional_db_session),
):
  """Record one usage event.

  Returns:
      {"ok": true, "stored": true} when written,
      {"ok": true, "stored": false} when no analytics database is configured

  Raises:
      400: Missing kind or session key, unknown kind, malformed payload
      500: Database write failed
  """
  kind = event.kind.value

  if db is None:
    record_analytics_event(kind, 'skipped')
    log_event('analytics.skipped', level='DEBUG', context={
      'kind': kind,
      'reason': 'database_not_configured',
    })
    return AnalyticsEventAck(stored=False)

  service = AnalyticsService(db)
  try:
    await asyncio.to_thread(
      service.record_event,
      event,
      read_ip_address(request.headers),
      request.headers.get('user-agent'),
      request.headers.get('referer'),
    )
  except SQLAlchemyError:
    record_analytics_event(kind, 'failed')
    logger.error('Failed to store analytics event', exc_info=True, kind=kind)
    return JSONResponse(status_code=500, content={'error': STORE_FAILED_MESSAGE})

  record_analytics_event(kind, 'stored')
  return AnalyticsEventAck(stored=True)
