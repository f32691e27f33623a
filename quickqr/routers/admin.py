"""Admin dashboard: HTML report and its JSON counterpart."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError

from quickqr.lib.auth import is_admin_authorized, require_admin_key
from quickqr.lib.database import get_session_factory, is_database_configured
from quickqr.lib.metrics import record_dashboard_view
from quickqr.lib.structured_logger import StructuredLogger
from quickqr.lib.templates import templates
from quickqr.services.dashboard_service import (
  RECENT_ACTIVITY_LIMIT,
  RECENT_EVENTS_LIMIT,
  TREND_DAYS,
  DashboardService,
)

router = APIRouter()
logger = StructuredLogger(__name__)


def get_dashboard_service() -> DashboardService:
  """Dependency building the dashboard service on the global session factory.

  Raises:
      HTTPException: 503 if the analytics database is not configured
  """
  if not is_database_configured():
    record_dashboard_view('unconfigured')
    raise HTTPException(status_code=503, detail={
      'error_code': 'ANALYTICS_NOT_CONFIGURED',
      'message': 'Analytics database is not configured. Set ANALYTICS_DATABASE_URL.',
    })
  return DashboardService(get_session_factory())


def _render(request: Request, status_code: int, **context) -> HTMLResponse:
  return templates.TemplateResponse(
    request,
    'dashboard.html',
    {
      'recent_events_limit': RECENT_EVENTS_LIMIT,
      'recent_activity_limit': RECENT_ACTIVITY_LIMIT,
      'trend_days': TREND_DAYS,
      **context,
    },
    status_code=status_code,
  )


@router.get('/admin', response_class=HTMLResponse, include_in_schema=False)
async def admin_dashboard(request: Request, key: str | None = Query(None)):
  """Render the usage dashboard.

  Access is checked before anything touches the database.
  """
  if not is_admin_authorized(key):
    record_dashboard_view('denied')
    return _render(request, 403, state='denied')

  if not is_database_configured():
    record_dashboard_view('unconfigured')
    return _render(request, 200, state='unconfigured')

  try:
    summary = await get_dashboard_service().build()
  except SQLAlchemyError as e:
    record_dashboard_view('error')
    logger.error('Could not load analytics data', exc_info=True)
    return _render(request, 500, state='error', error_type=type(e).__name__)

  record_dashboard_view('rendered')
  return _render(request, 200, state='ok', summary=summary)


@router.get('/api/admin/summary', dependencies=[Depends(require_admin_key)])
async def admin_summary(service: DashboardService = Depends(get_dashboard_service)):
  """Dashboard figures as JSON.

  Raises:
      403: Dashboard key configured and not supplied
      503: Analytics database not configured
      500: Query failure
  """
  try:
    summary = await service.build()
  except SQLAlchemyError:
    record_dashboard_view('error')
    logger.error('Could not load analytics data', exc_info=True)
    raise HTTPException(status_code=500, detail={
      'error_code': 'ANALYTICS_QUERY_FAILED',
      'message': 'Could not load analytics data.',
    })

  record_dashboard_view('rendered')
  return summary.to_dict()
