"""Shared-secret access control for the admin dashboard.

The dashboard (and /metrics) are gated by ADMIN_DASHBOARD_KEY, passed as the
``key`` query parameter. With no key configured they are open to anyone who
can reach them.
"""

import hmac
import os

from fastapi import HTTPException, Request

from quickqr.lib.structured_logger import StructuredLogger

logger = StructuredLogger(__name__)

ADMIN_KEY_PARAM = 'key'


def get_admin_key() -> str | None:
  """Configured dashboard secret, or None when the dashboard is open."""
  key = os.getenv('ADMIN_DASHBOARD_KEY', '')
  return key or None


def is_admin_authorized(provided_key: str | None) -> bool:
  """Check a supplied key against ADMIN_DASHBOARD_KEY.

  Args:
      provided_key: Value of the ``key`` query parameter (may be None)

  Returns:
      True if no key is configured or the supplied key matches
  """
  expected = get_admin_key()
  if expected is None:
    return True
  if not provided_key:
    return False
  return hmac.compare_digest(provided_key.encode('utf-8'), expected.encode('utf-8'))


async def require_admin_key(request: Request) -> None:
  """FastAPI dependency rejecting requests without the dashboard key.

  Raises:
      HTTPException: 403 if a key is configured and not supplied correctly
  """
  if not is_admin_authorized(request.query_params.get(ADMIN_KEY_PARAM)):
    logger.warning('Admin access denied', endpoint=request.url.path)
    raise HTTPException(
      status_code=403,
      detail={
        'error_code': 'ADMIN_KEY_REQUIRED',
        'message': f'Add ?{ADMIN_KEY_PARAM}=YOUR_ADMIN_DASHBOARD_KEY to open this page.',
      },
    )
