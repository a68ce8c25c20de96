"""
Module 'payments': checkout Stripe, métadonnées de commande, webhook et dé-duplication.
Le service (payments.service) et les vues s'importent explicitement.
"""

from .metadata import OrderContext, encode_metadata, decode_metadata, format_amount, to_minor_units
from .events import PaymentEvent, decode_event
from .webhook import verify, SIGNATURE_HEADER
from .stripe_client import CheckoutSession, CheckoutSessionGateway
from .idempotency import ProcessedEventRegistry

__all__ = [
    "OrderContext",
    "encode_metadata",
    "decode_metadata",
    "format_amount",
    "to_minor_units",
    "PaymentEvent",
    "decode_event",
    "verify",
    "SIGNATURE_HEADER",
    "CheckoutSession",
    "CheckoutSessionGateway",
    "ProcessedEventRegistry",
]
