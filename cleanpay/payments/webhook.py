"""
Vérification des webhooks Stripe (en-tête Stripe-Signature).
- Recalcule la signature HMAC-SHA256 sur "<timestamp>.<body>" avec le secret partagé
  (comparaison à temps constant, via stripe.WebhookSignature).
- Rejette les horodatages hors tolérance (protection anti-rejeu).
"""
import json
import logging
from typing import Optional

import stripe

from cleanpay.exceptions import (
    EventPayloadError,
    MissingSecretError,
    MissingSignatureError,
    SignatureInvalidError,
)
from cleanpay.payments.events import PaymentEvent, UnrecognizedEvent, decode_event

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "stripe-signature"
DEFAULT_TOLERANCE_SECONDS = 300


# module cleanpay.payments.webhook
def verify(
    raw_body: bytes,
    signature_header: Optional[str],
    signing_secret: Optional[str],
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> PaymentEvent:
    """
    Authentifie puis décode un événement entrant.
    Ordre des contrôles:
      1) en-tête absent -> MissingSignatureError (400)
      2) secret absent côté serveur -> MissingSecretError (500, erreur de configuration)
      3) signature ou horodatage invalide -> SignatureInvalidError (400)
      4) corps signé mais pas un objet JSON -> EventPayloadError (400)
    Un événement authentifié dont le payload ne correspond pas à son type
    est journalisé puis traité comme UnrecognizedEvent (acquitté, sans effet).
    """
    if not signature_header:
        raise MissingSignatureError()
    if not signing_secret:
        logger.error("payments.webhook STRIPE_WEBHOOK_SECRET is not set")
        raise MissingSecretError()

    try:
        payload = raw_body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureInvalidError() from e

    try:
        stripe.WebhookSignature.verify_header(payload, signature_header, signing_secret, tolerance)
    except stripe.SignatureVerificationError as e:
        logger.warning("payments.webhook signature verification failed: %s", e)
        raise SignatureInvalidError() from e

    try:
        raw_event = json.loads(payload)
    except ValueError as e:
        raise EventPayloadError() from e
    if not isinstance(raw_event, dict):
        raise EventPayloadError()

    try:
        return decode_event(raw_event)
    except EventPayloadError as e:
        logger.warning("payments.webhook undecodable event id=%s type=%s: %s",
                       raw_event.get("id"), raw_event.get("type"), e.__cause__ or e)
        return UnrecognizedEvent(id=str(raw_event.get("id") or ""), type=str(raw_event.get("type") or ""))
