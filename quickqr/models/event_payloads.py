"""Pydantic models for analytics submissions.

The payload of an event is a tagged union keyed by its kind. Every variant
declares the optional fields it knows about and keeps any extra keys. The
declared fields are a typed view only: the mapping the client sent is kept
alongside and is what gets stored, unchanged.
"""

from typing import Any, Optional, Type

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    model_validator,
)

from quickqr.lib.structured_logger import StructuredLogger
from quickqr.models.usage_event import EventKind

logger = StructuredLogger(__name__)


class EventPayload(BaseModel):
    """Common base for all payload variants."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    _supplied: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @classmethod
    def from_supplied(cls, raw: dict[str, Any]) -> 'EventPayload':
        """Build the variant view of a client payload, remembering the original.

        A payload whose known fields do not fit the variant is still accepted
        as a plain payload; only its typed view is lost.
        """
        try:
            payload = cls.model_validate(raw)
        except ValidationError as e:
            logger.debug(
                'Payload kept without variant view',
                variant=cls.__name__,
                field_errors=e.error_count(),
            )
            payload = EventPayload.model_validate(raw)
        payload._supplied = dict(raw)
        return payload

    def to_json(self) -> dict[str, Any]:
        """Return the payload to store.

        That is the mapping the client supplied when there is one, otherwise
        the set fields under their wire (camelCase) names.
        """
        if self._supplied is not None:
            return dict(self._supplied)
        return self.model_dump(by_alias=True, exclude_unset=True)


class PageVisitPayload(EventPayload):
    """Payload of a page_visit event (no known fields)."""


class QrGeneratedPayload(EventPayload):
    """Payload of a qr_generated event."""

    destination_url: Optional[str] = Field(None, alias='destinationUrl')
    purpose: Optional[str] = None
    size: Optional[int] = None
    margin: Optional[int] = None


class QrDownloadedPayload(EventPayload):
    """Payload of a qr_downloaded event."""

    destination_url: Optional[str] = Field(None, alias='destinationUrl')
    # 'png' or 'svg' from the page; other values are stored as sent
    format: Optional[str] = None


PAYLOAD_MODELS: dict[EventKind, Type[EventPayload]] = {
    EventKind.PAGE_VISIT: PageVisitPayload,
    EventKind.QR_GENERATED: QrGeneratedPayload,
    EventKind.QR_DOWNLOADED: QrDownloadedPayload,
}


def payload_model_for(kind: EventKind) -> Type[EventPayload]:
    """Return the payload variant declared for an event kind."""
    return PAYLOAD_MODELS[kind]


class AnalyticsEventIn(BaseModel):
    """Request body of POST /api/analytics.

    Accepts both the documented field names (kind, sessionId) and the
    names used by older page builds (eventType, session_id). The payload
    only has to be an object.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: EventKind = Field(
        ..., validation_alias=AliasChoices('kind', 'eventType', 'event_type')
    )
    session_id: str = Field(
        ...,
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices('sessionId', 'session_id'),
    )
    # Variants arrive as instances from bind_payload_variant
    payload: EventPayload = Field(default_factory=PageVisitPayload)

    @model_validator(mode='before')
    @classmethod
    def bind_payload_variant(cls, data: Any) -> Any:
        """Attach the variant view of the payload for the submitted kind."""
        if not isinstance(data, dict):
            return data

        raw_kind = data.get('kind', data.get('eventType', data.get('event_type')))
        try:
            kind = EventKind(raw_kind)
        except ValueError:
            # Left for field validation to report
            return data

        raw_payload = data.get('payload')
        if isinstance(raw_payload, EventPayload):
            return data
        if raw_payload is None:
            raw_payload = {}
        if not isinstance(raw_payload, dict):
            raise ValueError('payload must be an object')

        return {**data, 'payload': payload_model_for(kind).from_supplied(raw_payload)}


class AnalyticsEventAck(BaseModel):
    """Response body of a successful submission."""

    ok: bool = True
    stored: bool
