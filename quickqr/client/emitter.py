"""Fire-and-forget analytics emitter.

Delivery guarantee: at most once, best effort. ``emit`` schedules the POST
on the running event loop and returns immediately. Failures (connection
errors, timeouts, non-2xx responses) are logged at debug level and dropped;
nothing is retried or queued, and nothing is raised into the caller.
"""

import asyncio
from typing import Any, Mapping

import httpx

from quickqr.lib.structured_logger import StructuredLogger
from quickqr.models.usage_event import EventKind

logger = StructuredLogger(__name__)

ANALYTICS_PATH = '/api/analytics'
DEFAULT_TIMEOUT_SECONDS = 5.0


class EventEmitter:
    """Sends usage events to the ingestion endpoint without blocking callers.

    Usage:
        emitter = EventEmitter('https://quickqr.example.com')
        emitter.emit(EventKind.PAGE_VISIT, session_id, {})
        ...
        await emitter.aclose()  # at shutdown only
    """

    def __init__(
        self,
        base_url: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize emitter.

        Args:
            base_url: Server base URL; None or empty disables sending
            client: Optional shared client (owned by the caller)
            timeout: Request timeout for an owned client
        """
        self.endpoint = f'{base_url.rstrip("/")}{ANALYTICS_PATH}' if base_url else None
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._pending: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return self.endpoint is not None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def emit(
        self,
        kind: EventKind,
        session_id: str,
        payload: Mapping[str, Any] | None = None,
    ) -> asyncio.Task | None:
        """Schedule one event submission and return without waiting.

        Must be called from a running event loop. Returns the background task
        (for tests and shutdown draining), or None when sending is disabled or
        impossible.
        """
        if not self.enabled or not session_id:
            return None

        body = {
            'kind': kind.value,
            'sessionId': session_id,
            'payload': dict(payload or {}),
        }

        try:
            task = asyncio.get_running_loop().create_task(self._send(body))
        except RuntimeError:
            logger.debug('Analytics event dropped: no running event loop', kind=kind.value)
            return None

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, body: dict[str, Any]) -> None:
        try:
            response = await self._get_client().post(self.endpoint, json=body)
            if response.status_code >= 400:
                logger.debug(
                    'Analytics event rejected',
                    kind=body['kind'],
                    status_code=response.status_code,
                )
        except Exception as e:
            # Failures never reach the caller
            logger.debug('Analytics event dropped', kind=body['kind'], error_type=type(e).__name__)

    async def flush(self) -> None:
        """Wait for events already in flight. Only for shutdown paths."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Flush, then close the HTTP client if this emitter created it."""
        await self.flush()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
