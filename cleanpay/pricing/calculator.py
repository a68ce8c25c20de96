"""
Calcul de prix pur (pas de Stripe, pas d'I/O).
Toutes les grandeurs intermédiaires sont en unités monétaires (Decimal);
seul le résultat final est converti en centimes.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

from .models import ComputedPrice, QuoteAttributes

STANDARD_CLEAN = "Standard Clean"

# Prix au pied carré par type de service
RATE_PER_SQFT: Dict[str, Decimal] = {
    STANDARD_CLEAN: Decimal("0.12"),
    "Deep Cleaning": Decimal("0.20"),
    "Move-in Clean": Decimal("0.18"),
    "Move-out Clean": Decimal("0.18"),
    "Post-Construction": Decimal("0.25"),
    "One-Time Clean": Decimal("0.15"),
}

BEDROOM_SURCHARGE = Decimal(8)
BATHROOM_SURCHARGE = Decimal(12)

# Multiplicateur de fréquence (Standard Clean uniquement)
FREQUENCY_MULTIPLIER: Dict[str, Decimal] = {
    "weekly": Decimal("0.9"),
    "bi-weekly": Decimal("1.0"),
    "monthly": Decimal("1.1"),
}

EXTRA_PRICES: Dict[str, Decimal] = {
    "interior_windows": Decimal(25),
    "blinds_cleaning": Decimal(30),
    "dishes": Decimal(15),
    "inside_oven": Decimal(35),
    "inside_fridge": Decimal(30),
    "pet_hair_removal": Decimal(20),
    "heavy_duty": Decimal(50),
    "garage_cleaning": Decimal(40),
}

# Taxe Floride: 6% état + 1% local
TAX_RATE = Decimal("0.07")
MINIMUM_CHARGE = Decimal(75)
CURRENCY = "usd"


# module cleanpay.pricing.calculator
def base_price(attrs: QuoteAttributes) -> Decimal:
    """
    Composante de base (avant extras, pourboire et taxe):
    surface * tarif + chambres * 8 + salles de bain * 12, puis fréquence si Standard Clean.
    Les quantités négatives sont ramenées à 0.
    """
    rate = RATE_PER_SQFT.get(attrs.service_type, RATE_PER_SQFT[STANDARD_CLEAN])
    base = max(attrs.property_size, 0) * rate
    base += max(attrs.bedrooms, 0) * BEDROOM_SURCHARGE + max(attrs.bathrooms, 0) * BATHROOM_SURCHARGE
    if attrs.service_type == STANDARD_CLEAN:
        base *= FREQUENCY_MULTIPLIER.get(attrs.frequency or "", Decimal("1.0"))
    return base


def extras_total(attrs: QuoteAttributes) -> Decimal:
    return sum((EXTRA_PRICES.get(extra, Decimal(0)) for extra in attrs.extras), Decimal(0))


def tip_fraction(attrs: QuoteAttributes) -> Decimal:
    return Decimal(max(attrs.tip.value, 0)) / 100


def compute(attrs: QuoteAttributes) -> ComputedPrice:
    """
    Calcule le total TTC d'un devis.
    Ordre: base -> extras -> pourboire sur (base + extras) -> taxe 7% -> arrondi
    demi-supérieur à l'unité -> plancher de 75.
    Retour: ComputedPrice en centimes (ex: 135 USD => 13500).
    """
    base = base_price(attrs)
    extras = extras_total(attrs)
    tip = (base + extras) * tip_fraction(attrs)
    subtotal = base + extras + tip
    tax = subtotal * TAX_RATE
    total = (subtotal + tax).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    total = max(total, MINIMUM_CHARGE)
    return ComputedPrice(amount_minor_units=int(total) * 100, currency=CURRENCY)
