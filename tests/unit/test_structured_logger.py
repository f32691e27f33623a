"""Unit tests for structured JSON logging."""

import json
import logging

from quickqr.lib.distributed_tracing import (
    NO_CORRELATION_ID,
    get_correlation_id,
    reset_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from quickqr.lib.structured_logger import JSONFormatter


def _record(msg='hello', **extra):
    record = logging.LogRecord('quickqr.test', logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_json_with_correlation_id():
    set_correlation_id('req-123')
    try:
        data = json.loads(JSONFormatter().format(_record(kind='page_visit')))
    finally:
        reset_correlation_id()

    assert data['message'] == 'hello'
    assert data['level'] == 'INFO'
    assert data['request_id'] == 'req-123'
    assert data['kind'] == 'page_visit'


def test_sensitive_fields_dropped():
    data = json.loads(JSONFormatter().format(_record(ip_address='203.0.113.7', password='secret', key='k')))

    assert 'ip_address' not in data
    assert 'password' not in data
    assert 'key' not in data


def test_correlation_id_resolution():
    assert resolve_correlation_id('  abc  ') == 'abc'
    assert len(resolve_correlation_id('x' * 500)) == 128
    assert resolve_correlation_id(None) != resolve_correlation_id(None)
    reset_correlation_id()
    assert get_correlation_id() == NO_CORRELATION_ID
