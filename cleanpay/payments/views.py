import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from cleanpay.app_setup.components import get_dispatcher, get_event_registry, get_gateway
from cleanpay.config import Settings, get_settings
from cleanpay.exceptions import CleanPayError, UpstreamGatewayError
from cleanpay.payments import service as payments_service
from cleanpay.payments.dispatcher import PaymentEventDispatcher
from cleanpay.payments.idempotency import ProcessedEventRegistry
from cleanpay.payments.stripe_client import CheckoutSessionGateway
from cleanpay.payments.webhook import SIGNATURE_HEADER
from cleanpay.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments API"])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    service_id: str = Field(alias="serviceId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    custom_price: Optional[float] = Field(default=None, alias="customPrice")
    quote_data: Optional[Dict[str, Any]] = Field(default=None, alias="quoteData")


# module cleanpay.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(
    payload: CheckoutRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    gateway: CheckoutSessionGateway = Depends(get_gateway),
):
    """
    Crée une session Checkout Stripe pour un service du catalogue (ou un devis personnalisé).
    - Entrée JSON: { serviceId, customerEmail, customerName, customPrice?, quoteData? }
    - Rate limit: 10 req / 60s
    - Réponses: 200 {sessionId}; 400 {error} service inconnu; 500 {error} Stripe/configuration
    """
    try:
        session = await payments_service.create_checkout(
            gateway,
            settings,
            service_id=payload.service_id,
            customer_email=payload.customer_email,
            customer_name=payload.customer_name,
            custom_price=payload.custom_price,
            quote=payload.quote_data,
            origin=str(request.base_url),
        )
    except CleanPayError:
        raise
    except Exception as e:
        logger.exception("Erreur create_checkout_session")
        raise UpstreamGatewayError(cause=e) from e
    return JSONResponse({"sessionId": session.id})


@router.get("/checkout-session/{session_id}")
async def get_checkout_session(session_id: str, gateway: CheckoutSessionGateway = Depends(get_gateway)):
    """
    Relit une session pour obtenir l'URL de la page de paiement hébergée.
    - 404 {error} si la session n'a pas (ou plus) d'URL
    """
    url = await gateway.retrieve_redirect_url(session_id)
    return JSONResponse({"url": url})


@router.post("/webhooks/payments", include_in_schema=False)
@router.post("/webhooks/stripe", include_in_schema=False)
async def payments_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    dispatcher: PaymentEventDispatcher = Depends(get_dispatcher),
    registry: ProcessedEventRegistry = Depends(get_event_registry),
):
    """
    Webhook Stripe: vérifie la signature sur le corps brut puis traite l'événement.
    - 200 {received: true} dès que la signature est valide (notifications best-effort)
    - 400 {error} signature absente/invalide ou payload illisible
    - 500 {error} secret webhook non configuré
    """
    raw_body = await request.body()
    result = await payments_service.handle_payment_webhook(
        raw_body=raw_body,
        signature=request.headers.get(SIGNATURE_HEADER),
        settings=settings,
        dispatcher=dispatcher,
        registry=registry,
    )
    return JSONResponse(result)
