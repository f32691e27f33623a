"""Prometheus-compatible metrics for QR rendering and analytics ingestion."""

from prometheus_client import Counter, Histogram


# Ingestion metrics
analytics_events_total = Counter(
    'analytics_events_total',
    'Analytics events received by the ingestion endpoint',
    ['kind', 'outcome']
)

# Rendering metrics
qr_renders_total = Counter(
    'qr_renders_total',
    'QR code render attempts',
    ['status']
)

qr_render_duration_seconds = Histogram(
    'qr_render_duration_seconds',
    'Time spent rendering PNG and SVG output for one URL',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Dashboard metrics
dashboard_views_total = Counter(
    'dashboard_views_total',
    'Admin dashboard requests',
    ['outcome']
)

# Performance metrics
request_duration_seconds = Histogram(
    'request_duration_seconds',
    'Request duration in seconds',
    ['endpoint', 'method', 'status'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0]
)


def record_analytics_event(kind: str, outcome: str):
    """Record the outcome of one ingestion request.

    Args:
        kind: Event kind ('page_visit', 'qr_generated', 'qr_downloaded')
        outcome: 'stored', 'skipped' (backend not configured) or 'failed'
    """
    analytics_events_total.labels(kind=kind, outcome=outcome).inc()


def record_qr_render(status: str, duration_seconds: float | None = None):
    """Record a render attempt ('success' or 'failure')."""
    qr_renders_total.labels(status=status).inc()
    if duration_seconds is not None:
        qr_render_duration_seconds.observe(duration_seconds)


def record_dashboard_view(outcome: str):
    """Record a dashboard request ('rendered', 'denied', 'unconfigured', 'error')."""
    dashboard_views_total.labels(outcome=outcome).inc()


def record_request_duration(endpoint: str, method: str, status: int, duration_seconds: float):
    """Record overall request duration.

    Args:
        endpoint: Request path
        method: HTTP method (GET, POST, etc.)
        status: HTTP status code
        duration_seconds: Request duration in seconds
    """
    request_duration_seconds.labels(
        endpoint=endpoint,
        method=method,
        status=str(status)
    ).observe(duration_seconds)
