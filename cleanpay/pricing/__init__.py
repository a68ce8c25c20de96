"""
Module 'pricing': calcul déterministe du prix d'un devis de nettoyage.
"""

from .models import QuoteAttributes, TipSpec, ComputedPrice, parse_int
from .calculator import compute, base_price, MINIMUM_CHARGE

__all__ = [
    "QuoteAttributes",
    "TipSpec",
    "ComputedPrice",
    "parse_int",
    "compute",
    "base_price",
    "MINIMUM_CHARGE",
]
