"""Structured Logger with JSON Formatting.

Provides structured logging with JSON output for machine-readable logs.
Every line carries the correlation ID of the request that produced it.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from quickqr.lib.distributed_tracing import get_correlation_id

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__.keys()
) | {'message', 'asctime'}

# Never written to logs, whatever the caller passes in.
SENSITIVE_KEYS = frozenset({
    'ip',
    'ip_address',
    'password',
    'key',
    'admin_key',
    'token',
    'database_password',
})


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _scrub(context: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in context.items() if k not in SENSITIVE_KEYS}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            'timestamp': _utc_timestamp(),
            'level': record.levelname,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'request_id': get_correlation_id(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith('_')
        }
        log_data.update(_scrub(extra))

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Structured logger with JSON formatting.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("QR rendered", destination_host="example.com", duration_ms=12)
        logger.error("Insert failed", exc_info=True)
    """

    def __init__(self, name: str):
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
        """
        self.logger = logging.getLogger(name)

        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.logger.setLevel(getattr(logging, log_level, logging.INFO))

        if not any(isinstance(h.formatter, JSONFormatter) for h in self.logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def info(self, message: str, **extra: Any) -> None:
        """Log INFO level message.

        Args:
            message: Log message
            **extra: Additional context (endpoint, duration_ms, etc.)
        """
        self.logger.info(message, extra=extra)

    def warning(self, message: str, exc_info: bool = False, **extra: Any) -> None:
        """Log WARNING level message."""
        self.logger.warning(message, exc_info=exc_info, extra=extra)

    def error(self, message: str, exc_info: bool = False, **extra: Any) -> None:
        """Log ERROR level message.

        Args:
            message: Log message
            exc_info: Include exception traceback
            **extra: Additional context
        """
        self.logger.error(message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **extra: Any) -> None:
        self.logger.debug(message, extra=extra)


_event_logger = StructuredLogger('quickqr.events')


def log_event(event: str, level: str = 'INFO', context: Optional[Dict[str, Any]] = None) -> None:
    """Log a named event without creating a logger instance.

    Sensitive keys (raw addresses, credentials) are dropped before writing.

    Args:
        event: Event name (e.g., "analytics.stored", "qr.render_failed")
        level: Log level (INFO, WARNING, ERROR, DEBUG)
        context: Additional context dictionary

    Example:
        log_event("analytics.skipped", context={"reason": "database_not_configured"})
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    _event_logger.logger.log(
        numeric_level,
        event,
        extra={'event': event, **_scrub(context or {})},
    )


def log_request(endpoint: str, method: str, status_code: int, duration_ms: float) -> None:
    """Log API request with performance metrics.

    Args:
        endpoint: Request path
        method: HTTP method
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    _event_logger.info(
        f'{method} {endpoint}',
        endpoint=endpoint,
        method=method,
        status_code=status_code,
        duration_ms=round(duration_ms, 2),
    )
