"""
Sérialisation/désérialisation des métadonnées Stripe (serviceId, customerName, customPrice, quoteData).
Sans base de données, ces métadonnées sont le seul support du contexte de commande:
elles sont écrites à la création de la session et relues à la réception de l'événement.
"""
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Limite Stripe par valeur de métadonnée
METADATA_VALUE_MAX = 500

# Champs libres supprimés en premier si quoteData dépasse la limite
_DROPPABLE_QUOTE_KEYS = ("comments", "address", "timeSlot", "serviceDate", "zipCode")


@dataclass(frozen=True)
class OrderContext:
    service_id: str = ""
    customer_name: str = ""
    custom_price: Optional[int] = None  # centimes
    quote: Dict[str, Any] = field(default_factory=dict)


# module cleanpay.payments.metadata
def _encode_quote(quote: Optional[Mapping[str, Any]]) -> str:
    data = dict(quote or {})
    encoded = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    for key in _DROPPABLE_QUOTE_KEYS:
        if len(encoded) <= METADATA_VALUE_MAX:
            break
        if key in data:
            data.pop(key)
            encoded = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    if len(encoded) > METADATA_VALUE_MAX:
        logger.warning("payments.metadata quoteData trop long (%s chars), remplacé par {}", len(encoded))
        encoded = "{}"
    return encoded


def encode_metadata(
    *,
    service_id: str,
    customer_name: Optional[str],
    custom_price: Optional[int],
    quote: Optional[Mapping[str, Any]],
) -> Dict[str, str]:
    """
    Construit le dict metadata de la session Stripe (clés et valeurs str).
    - custom_price: montant en centimes, "" si prix catalogue.
    - quoteData: JSON de l'objet devis d'origine, borné à 500 caractères (champs libres retirés d'abord).
    """
    return {
        "serviceId": str(service_id or ""),
        "customerName": str(customer_name or "")[:METADATA_VALUE_MAX],
        "customPrice": str(int(custom_price)) if custom_price is not None else "",
        "quoteData": _encode_quote(quote),
    }


def decode_metadata(metadata: Optional[Mapping[str, Any]]) -> OrderContext:
    """
    Relit les métadonnées d'une session (webhook ou lecture directe).
    - Tolérant aux erreurs: customPrice illisible => None, quoteData illisible => {}.
    """
    meta = metadata or {}
    raw_price = str(meta.get("customPrice") or "").strip()
    try:
        custom_price = int(raw_price) if raw_price else None
    except ValueError:
        custom_price = None

    raw_quote = meta.get("quoteData")
    try:
        quote = json.loads(raw_quote) if raw_quote else {}
    except (TypeError, ValueError):
        quote = {}
    if not isinstance(quote, dict):
        quote = {}

    return OrderContext(
        service_id=str(meta.get("serviceId") or ""),
        customer_name=str(meta.get("customerName") or ""),
        custom_price=custom_price,
        quote=quote,
    )


def to_minor_units(amount: Any) -> int:
    """Convertit un montant en unités monétaires (ex: 135 ou "135.5") en centimes, arrondi demi-supérieur."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(minor_units: Optional[int]) -> str:
    """
    Affichage d'un montant stocké en centimes: division par 100, deux décimales.
    Utilisé par tous les consommateurs (e-mails, logs, API).
    """
    if minor_units is None:
        return "N/A"
    return f"{Decimal(int(minor_units)) / 100:.2f}"
