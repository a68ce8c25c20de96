"""
CleanPay: devis de nettoyage et paiement Stripe Checkout (FastAPI).
"""

__version__ = "0.1.0"
