"""FastAPI application for QuickQR."""

import os
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from quickqr.lib.auth import is_admin_authorized
from quickqr.lib.database import is_database_configured, reset_engine
from quickqr.lib.distributed_tracing import (
  reset_correlation_id,
  resolve_correlation_id,
  set_correlation_id,
)
from quickqr.lib.metrics import record_request_duration
from quickqr.lib.structured_logger import StructuredLogger, log_request
from quickqr.routers import api_router, page_router
from quickqr.routers.analytics import ANALYTICS_ROUTE, INVALID_PAYLOAD_MESSAGE

logger = StructuredLogger(__name__)

# Paths excluded from request metrics and request logs
UNTRACKED_PATHS = frozenset({'/health', '/api/health', '/metrics'})


# Load environment variables from .env / .env.local if present
def load_env_file(filepath: str) -> None:
  """Load environment variables from a file.

  Values already present in the environment win.
  """
  if Path(filepath).exists():
    with open(filepath) as f:
      for line in f:
        line = line.strip()
        if line and not line.startswith('#'):
          key, _, value = line.partition('=')
          key, value = key.strip(), value.strip().strip('"').strip("'")
          if key and value:
            os.environ.setdefault(key, value)


load_env_file('.env')
load_env_file('.env.local')


def get_cors_origins() -> list[str]:
  raw = os.getenv('CORS_ALLOW_ORIGINS', '')
  return [origin.strip() for origin in raw.split(',') if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
  """Log the analytics mode on startup and dispose the engine on shutdown."""
  logger.info(
    'QuickQR starting',
    analytics_enabled=is_database_configured(),
    dashboard_protected=bool(os.getenv('ADMIN_DASHBOARD_KEY')),
  )
  yield
  reset_engine()


app = FastAPI(
  title='QuickQR',
  description='Turn a link into a QR code (PNG + SVG) with anonymous usage analytics',
  version='0.1.0',
  lifespan=lifespan,
)

app.add_middleware(
  CORSMiddleware,
  allow_origins=get_cors_origins(),
  allow_credentials=False,
  allow_methods=['GET', 'POST'],
  allow_headers=['*'],
)


@app.middleware('http')
async def add_correlation_id(request: Request, call_next):
  """Bind a correlation ID to the request and time it.

  - Reuses the X-Correlation-ID header or generates a new UUID
  - Echoes X-Correlation-ID on the response
  - Records request duration and writes a request log line
  """
  correlation_id = resolve_correlation_id(request.headers.get('X-Correlation-ID'))
  set_correlation_id(correlation_id)
  request.state.correlation_id = correlation_id

  start_time = time.time()
  try:
    response = await call_next(request)

    duration_seconds = time.time() - start_time
    response.headers['X-Correlation-ID'] = correlation_id

    if request.url.path not in UNTRACKED_PATHS:
      record_request_duration(
        endpoint=request.url.path,
        method=request.method,
        status=response.status_code,
        duration_seconds=duration_seconds,
      )
      log_request(
        endpoint=request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration_ms=duration_seconds * 1000,
      )
    return response
  finally:
    reset_correlation_id()


@app.get('/health')
async def health_root():
  """Health check endpoint at root level (for load balancers)."""
  return {'status': 'healthy'}


@app.get('/api/health')
async def health_api():
  """Health check endpoint under /api prefix."""
  return {'status': 'healthy', 'analytics': is_database_configured()}


@app.get('/metrics', include_in_schema=False)
async def metrics_root(key: str | None = Query(None)):
  """Prometheus metrics endpoint.

  Gated by ADMIN_DASHBOARD_KEY (``?key=``) when one is configured.
  """
  if not is_admin_authorized(key):
    return JSONResponse(status_code=403, content={'error': 'Forbidden'})
  return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
  """Map invalid analytics bodies to 400 with the public error message.

  Other routes keep FastAPI's default 422 response.
  """
  if request.url.path == '/api' + ANALYTICS_ROUTE:
    logger.debug('Rejected analytics payload', error_count=len(exc.errors()))
    return JSONResponse(status_code=400, content={'error': INVALID_PAYLOAD_MESSAGE})

  return JSONResponse(status_code=422, content={'detail': jsonable_encoder(exc.errors())})


# Include routers
app.include_router(api_router, prefix='/api', tags=['api'])
app.include_router(page_router)
