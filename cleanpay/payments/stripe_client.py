"""
Adaptateur Stripe: centralise les appels Checkout (création, lecture de session).
Le client Stripe est construit à partir de Settings (pas de stripe.api_key global)
et les appels bloquants du SDK passent par le threadpool de Starlette.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from cleanpay.catalog import ServiceDescriptor
from cleanpay.config import Settings
from cleanpay.exceptions import SessionNotReadyError, UpstreamGatewayError
from cleanpay.payments import metadata as meta

logger = logging.getLogger(__name__)

CUSTOM_QUOTE_PREFIX = "Custom Quote - "
CUSTOM_QUOTE_DESCRIPTION = "Personalized cleaning service quote based on your property details"


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    amount_total: Optional[int] = None
    currency: Optional[str] = None

    @classmethod
    def from_stripe(cls, obj: Any) -> "CheckoutSession":
        get = obj.get if hasattr(obj, "get") else (lambda k, d=None: getattr(obj, k, d))
        return cls(
            id=str(get("id") or ""),
            url=get("url") or None,
            metadata={str(k): str(v) for k, v in dict(get("metadata") or {}).items()},
            amount_total=get("amount_total"),
            currency=get("currency"),
        )


def product_for(service: ServiceDescriptor, price_minor_units: Optional[int]) -> Dict[str, Any]:
    """
    Nom, description et montant affichés sur la page Stripe.
    - Prix personnalisé présent: nom préfixé "Custom Quote - " (distingue les devis dans le dashboard).
    - Sinon: libellé et prix du catalogue.
    """
    if price_minor_units is not None:
        return {
            "name": f"{CUSTOM_QUOTE_PREFIX}{service.name}",
            "description": CUSTOM_QUOTE_DESCRIPTION,
            "unit_amount": int(price_minor_units),
        }
    return {"name": service.name, "description": service.description, "unit_amount": service.base_price}


def build_line_items(service: ServiceDescriptor, price_minor_units: Optional[int]) -> List[Dict[str, Any]]:
    product = product_for(service, price_minor_units)
    return [
        {
            "price_data": {
                "currency": service.currency,
                "product_data": {"name": product["name"], "description": product["description"]},
                "unit_amount": product["unit_amount"],
            },
            "quantity": 1,
        }
    ]


# module cleanpay.payments.stripe_client
class CheckoutSessionGateway:
    """
    Passerelle vers l'API Checkout Sessions.
    - create(): une session facturable par appel (non idempotent, pas de retry local).
    - retrieve_redirect_url(): URL de la page hébergée, SessionNotReadyError si absente.
    Toute erreur SDK (réseau, authentification, requête) devient UpstreamGatewayError.
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = stripe.StripeClient(self._settings.require("STRIPE_SECRET_KEY"))
        return self._client

    async def create(
        self,
        *,
        service: ServiceDescriptor,
        price_minor_units: Optional[int],
        customer_email: Optional[str],
        customer_name: Optional[str],
        quote: Optional[Mapping[str, Any]],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": build_line_items(service, price_minor_units),
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": meta.encode_metadata(
                service_id=service.id,
                customer_name=customer_name,
                custom_price=price_minor_units,
                quote=quote,
            ),
        }
        if customer_email:
            params["customer_email"] = customer_email

        client = self.client
        try:
            session = await run_in_threadpool(client.checkout.sessions.create, params=params)
        except stripe.StripeError as e:
            logger.exception("payments.stripe create_session failed service_id=%s", service.id)
            raise UpstreamGatewayError(f"Error interno del servidor: {e.user_message or type(e).__name__}", cause=e) from e

        result = CheckoutSession.from_stripe(session)
        logger.info(
            "payments.stripe session created id=%s service_id=%s amount=%s",
            result.id, service.id, meta.format_amount(price_minor_units if price_minor_units is not None else service.base_price),
        )
        return result

    async def retrieve(self, session_id: str) -> CheckoutSession:
        client = self.client
        try:
            session = await run_in_threadpool(client.checkout.sessions.retrieve, session_id)
        except stripe.StripeError as e:
            logger.exception("payments.stripe retrieve_session failed session_id=%s", session_id)
            raise UpstreamGatewayError(cause=e) from e
        return CheckoutSession.from_stripe(session)

    async def retrieve_redirect_url(self, session_id: str) -> str:
        session = await self.retrieve(session_id)
        if not session.url:
            raise SessionNotReadyError(session_id)
        return session.url
