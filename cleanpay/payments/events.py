"""
Événements Stripe reconnus, modélisés comme une union fermée (un type de payload par tag).
Le décodage a lieu une seule fois, juste après la vérification de signature.
"""
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from cleanpay.exceptions import EventPayloadError

SESSION_COMPLETED = "checkout.session.completed"
SESSION_EXPIRED = "checkout.session.expired"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class CheckoutSessionPayload(_Payload):
    id: str
    customer_email: Optional[str] = None
    customer_details: Optional[Dict[str, Any]] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    payment_status: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def email(self) -> Optional[str]:
        return self.customer_email or (self.customer_details or {}).get("email") or None


class PaymentIntentPayload(_Payload):
    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    last_payment_error: Optional[Dict[str, Any]] = None

    @property
    def failure_message(self) -> Optional[str]:
        return (self.last_payment_error or {}).get("message")


class _Event(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    created: Optional[int] = None
    livemode: bool = False


class SessionCompletedEvent(_Event):
    type: Literal["checkout.session.completed"]
    object: CheckoutSessionPayload


class SessionExpiredEvent(_Event):
    type: Literal["checkout.session.expired"]
    object: CheckoutSessionPayload


class PaymentIntentSucceededEvent(_Event):
    type: Literal["payment_intent.succeeded"]
    object: PaymentIntentPayload


class PaymentIntentFailedEvent(_Event):
    type: Literal["payment_intent.payment_failed"]
    object: PaymentIntentPayload


class UnrecognizedEvent(_Event):
    type: str
    object: Dict[str, Any] = Field(default_factory=dict)


PaymentEvent = Union[
    SessionCompletedEvent,
    SessionExpiredEvent,
    PaymentIntentSucceededEvent,
    PaymentIntentFailedEvent,
    UnrecognizedEvent,
]

EVENT_MODELS = {
    SESSION_COMPLETED: SessionCompletedEvent,
    SESSION_EXPIRED: SessionExpiredEvent,
    PAYMENT_INTENT_SUCCEEDED: PaymentIntentSucceededEvent,
    PAYMENT_INTENT_FAILED: PaymentIntentFailedEvent,
}


def decode_event(raw: Mapping[str, Any]) -> PaymentEvent:
    """
    Transforme l'événement JSON Stripe ({id, type, data: {object}}) en modèle typé.
    - Type inconnu => UnrecognizedEvent (pas d'erreur).
    - Payload incohérent pour un type connu => EventPayloadError (400).
    """
    if not isinstance(raw, Mapping):
        raise EventPayloadError()
    kind = str(raw.get("type") or "")
    data = raw.get("data") if isinstance(raw.get("data"), Mapping) else {}
    model = EVENT_MODELS.get(kind, UnrecognizedEvent)
    try:
        return model.model_validate({
            "id": raw.get("id"),
            "type": kind,
            "created": raw.get("created"),
            "livemode": bool(raw.get("livemode") or False),
            "object": data.get("object") or {},
        })
    except PydanticValidationError as e:
        raise EventPayloadError(f"Invalid event payload ({kind or 'unknown'})") from e
