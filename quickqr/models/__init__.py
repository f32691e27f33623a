"""Models package for the usage event table and request payloads."""

from quickqr.models.event_payloads import (
    AnalyticsEventAck,
    AnalyticsEventIn,
    PageVisitPayload,
    QrDownloadedPayload,
    QrGeneratedPayload,
    payload_model_for,
)
from quickqr.models.usage_event import EVENT_KINDS, EventKind, UsageEvent

__all__ = [
    'EventKind',
    'EVENT_KINDS',
    'UsageEvent',
    'AnalyticsEventIn',
    'AnalyticsEventAck',
    'PageVisitPayload',
    'QrGeneratedPayload',
    'QrDownloadedPayload',
    'payload_model_for',
]
