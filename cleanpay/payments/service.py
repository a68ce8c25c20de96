"""
Cas d'usage 'payments': orchestre catalogue, calcul de prix, passerelle Stripe et webhook.
"""
import logging
from decimal import InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from cleanpay import catalog, pricing
from cleanpay.config import Settings
from cleanpay.exceptions import QuoteValidationError
from cleanpay.payments import metadata as meta
from cleanpay.payments import webhook
from cleanpay.payments.dispatcher import PaymentEventDispatcher
from cleanpay.payments.idempotency import ProcessedEventRegistry
from cleanpay.payments.stripe_client import CheckoutSession, CheckoutSessionGateway

logger = logging.getLogger(__name__)


def _server_quote_price(quote: Mapping[str, Any]) -> Optional[int]:
    """
    Recalcule le devis côté serveur.
    - None si le devis n'est pas recalculable (pas de propertySize, ou pourboire
      "other" sans customTip: le formulaire ne transmet pas ce pourcentage).
    - QuoteValidationError (400) si quoteData est mal formé.
    """
    if not quote.get("propertySize"):
        return None
    try:
        attrs = pricing.QuoteAttributes.model_validate(dict(quote))
    except PydanticValidationError as e:
        raise QuoteValidationError(f"quoteData invalide: {e.error_count()} erreur(s)") from e
    if str(quote.get("tipPercentage") or "").strip() == "other" and quote.get("customTip") in (None, ""):
        return None
    return pricing.compute(attrs).amount_minor_units


def resolve_price(custom_price: Optional[Any], quote: Optional[Mapping[str, Any]]) -> Optional[int]:
    """
    Détermine le prix personnalisé en centimes (None => prix catalogue).
    - customPrice (unités monétaires, ex: 135) fait foi: c'est le montant affiché au client.
    - quoteData recalculable: contrôle croisé journalisé; sert de prix si customPrice est absent.
    """
    client_price: Optional[int] = None
    if custom_price not in (None, "", 0):
        try:
            client_price = meta.to_minor_units(custom_price)
        except (InvalidOperation, ValueError) as e:
            raise QuoteValidationError("customPrice invalide") from e
        if client_price < 0:
            raise QuoteValidationError("customPrice invalide")

    computed = _server_quote_price(quote) if quote else None
    if client_price is None:
        return computed
    if computed is not None and computed != client_price:
        logger.warning(
            "payments.checkout customPrice client=%s différent du calcul serveur=%s",
            meta.format_amount(client_price), meta.format_amount(computed),
        )
    return client_price


def checkout_urls(origin: str, settings: Settings) -> Tuple[str, str]:
    """URLs de retour Stripe construites sur l'origine de la requête (ou BASE_URL si défini)."""
    base = (settings.BASE_URL or origin).rstrip("/")
    success_path = settings.CHECKOUT_SUCCESS_PATH
    sep = "&" if "?" in success_path else "?"
    success_url = f"{base}{success_path}{sep}session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}{settings.CHECKOUT_CANCEL_PATH}"
    return success_url, cancel_url


async def create_checkout(
    gateway: CheckoutSessionGateway,
    settings: Settings,
    *,
    service_id: str,
    customer_email: Optional[str],
    customer_name: Optional[str],
    custom_price: Optional[Any],
    quote: Optional[Mapping[str, Any]],
    origin: str,
) -> CheckoutSession:
    """
    Prépare la session Stripe pour un service du catalogue.
    - ServiceNotFoundError (400) avant tout appel Stripe si serviceId est inconnu.
    """
    service = catalog.require_service(service_id)
    price = resolve_price(custom_price, quote)
    success_url, cancel_url = checkout_urls(origin, settings)
    return await gateway.create(
        service=service,
        price_minor_units=price,
        customer_email=customer_email,
        customer_name=customer_name,
        quote=quote,
        success_url=success_url,
        cancel_url=cancel_url,
    )


async def handle_payment_webhook(
    *,
    raw_body: bytes,
    signature: Optional[str],
    settings: Settings,
    dispatcher: PaymentEventDispatcher,
    registry: ProcessedEventRegistry,
) -> Dict[str, Any]:
    """
    Vérifie puis traite un webhook. La réponse vaut {"received": true} dès que la
    signature est valide, quel que soit le résultat des notifications.
    Une relivraison d'un id déjà traité est acquittée sans nouvel effet.
    """
    event = webhook.verify(raw_body, signature, settings.STRIPE_WEBHOOK_SECRET, settings.WEBHOOK_TOLERANCE_SECONDS)

    # Un événement sans id (payload non décodable) ne peut pas être dé-dupliqué
    claimed = bool(event.id)
    if claimed and not await registry.claim(event.id):
        logger.info("payments.webhook duplicate event ignored id=%s type=%s", event.id, event.type)
        return {"received": True, "duplicate": True}

    try:
        result = await dispatcher.dispatch(event)
    except Exception:
        if claimed:
            await registry.release(event.id)
        raise
    logger.info("payments.webhook handled id=%s type=%s notifications=%s",
                result.event_id, result.event_type, result.notifications)
    return {"received": True}
