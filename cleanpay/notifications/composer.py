"""
Composition des e-mails de confirmation (gabarits Jinja2 dans notifications/templates).
Le contenu HTML est une donnée de présentation: ce module ne fait que préparer le contexte.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from cleanpay.exceptions import NotificationCompositionError
from cleanpay.payments.metadata import OrderContext, format_amount

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


@dataclass(frozen=True)
class PaymentSummary:
    session_id: str
    customer_email: Optional[str]
    amount_minor_units: Optional[int]
    order: OrderContext

    @property
    def amount_display(self) -> str:
        return format_amount(self.amount_minor_units)


class NotificationComposer:
    def __init__(self, company_name: str = "Integrity Clean Solutions", templates_dir: Path = TEMPLATES_DIR):
        self.company_name = company_name
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            return self._env.get_template(template_name).render(**context)
        except TemplateError as e:
            raise NotificationCompositionError(f"Gabarit {template_name} invalide: {e}") from e

    def _context(self, summary: PaymentSummary) -> Dict[str, Any]:
        quote = summary.order.quote or {}
        extras = quote.get("extras") or []
        if not isinstance(extras, list):
            extras = [str(extras)]
        return {
            "company_name": self.company_name,
            "customer_name": summary.order.customer_name or "Cliente",
            "customer_email": summary.customer_email or "N/A",
            "session_id": summary.session_id,
            "amount": summary.amount_display,
            "service_id": summary.order.service_id or "N/A",
            "quote": quote,
            "extras": extras,
            "paid_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        }

    def customer_confirmation(self, summary: PaymentSummary) -> EmailMessage:
        if not summary.customer_email:
            raise NotificationCompositionError("Email client absent de la session")
        return EmailMessage(
            to=summary.customer_email,
            subject=f"Pago Confirmado - {self.company_name}",
            html=self._render("customer_confirmation.html", self._context(summary)),
        )

    def operator_notification(self, summary: PaymentSummary, operator_email: str) -> EmailMessage:
        return EmailMessage(
            to=operator_email,
            subject=f"Nuevo Pago Recibido - {self.company_name}",
            html=self._render("operator_notification.html", self._context(summary)),
        )
