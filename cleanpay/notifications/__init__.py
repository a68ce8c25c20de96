"""
Module 'notifications': composition (Jinja2) et envoi (Resend) des e-mails de paiement.
"""

from .composer import EmailMessage, NotificationComposer, PaymentSummary
from .sender import ResendEmailSender

__all__ = [
    "EmailMessage",
    "NotificationComposer",
    "PaymentSummary",
    "ResendEmailSender",
]
