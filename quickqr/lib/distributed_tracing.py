"""Correlation IDs for request-scoped logging.

Every HTTP request handled by QuickQR gets a correlation ID (taken from the
X-Correlation-ID header or freshly generated). It lives in a context variable
so that log lines written from worker threads spawned with asyncio.to_thread
carry the same ID as the request that spawned them.
"""

import contextvars
from uuid import uuid4

NO_CORRELATION_ID = 'no-request-id'

correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
  'correlation_id', default=NO_CORRELATION_ID
)


def get_correlation_id() -> str:
  """Return the correlation ID of the current request context."""
  return correlation_id.get()


def set_correlation_id(request_id: str) -> None:
  """Bind a correlation ID to the current request context."""
  correlation_id.set(request_id)


def resolve_correlation_id(header_value: str | None) -> str:
  """Pick the inbound header value when usable, otherwise mint a new UUID.

  Args:
      header_value: Raw X-Correlation-ID header (may be None or blank)

  Returns:
      Correlation ID to use for this request
  """
  if header_value and header_value.strip():
    return header_value.strip()[:128]
  return str(uuid4())


def reset_correlation_id() -> None:
  """Reset to the default value (used by tests and after request handling)."""
  correlation_id.set(NO_CORRELATION_ID)
