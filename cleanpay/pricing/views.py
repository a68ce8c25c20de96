from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from cleanpay import catalog
from cleanpay.pricing.calculator import compute
from cleanpay.pricing.models import QuoteAttributes

router = APIRouter(tags=["Pricing API"])


@router.post("/quote")
async def quote_price(attrs: QuoteAttributes):
    """
    Calcule le prix d'un devis côté serveur (même calcul que le checkout).
    - Réponse: {amountMinorUnits, amount, currency, serviceId}
    """
    price = compute(attrs)
    body: Dict[str, Any] = price.to_public()
    body["serviceId"] = catalog.service_id_for(attrs.service_type)
    return JSONResponse(body)
