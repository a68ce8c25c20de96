"""
Routage des événements Stripe vérifiés vers leurs effets.
Seul checkout.session.completed déclenche des notifications (client puis opérateur);
les autres types sont simplement journalisés. Aucun état n'est conservé entre événements.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from cleanpay.config import Settings
from cleanpay.notifications.composer import EmailMessage, NotificationComposer, PaymentSummary
from cleanpay.payments import metadata as meta
from cleanpay.payments.events import (
    PaymentEvent,
    PaymentIntentFailedEvent,
    PaymentIntentSucceededEvent,
    SessionCompletedEvent,
    SessionExpiredEvent,
)

logger = logging.getLogger(__name__)

SENT = "sent"
FAILED = "failed"
SKIPPED = "skipped"


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> Optional[str]: ...


@dataclass(frozen=True)
class DispatchResult:
    event_id: str
    event_type: str
    notifications: Dict[str, str]


# module cleanpay.payments.dispatcher
class PaymentEventDispatcher:
    def __init__(self, settings: Settings, composer: NotificationComposer, sender: EmailSender):
        self._settings = settings
        self._composer = composer
        self._sender = sender

    async def dispatch(self, event: PaymentEvent) -> DispatchResult:
        """
        Traite un événement déjà authentifié. Chaque branche est terminale.
        Ne lève jamais à cause d'une notification: l'accusé de réception reste 200.
        """
        if isinstance(event, SessionCompletedEvent):
            notifications = await self._on_session_completed(event)
        elif isinstance(event, PaymentIntentSucceededEvent):
            logger.info("payments.webhook payment_intent succeeded id=%s amount=%s",
                        event.object.id, meta.format_amount(event.object.amount))
            notifications = {}
        elif isinstance(event, PaymentIntentFailedEvent):
            logger.warning("payments.webhook payment_intent failed id=%s reason=%s",
                           event.object.id, event.object.failure_message)
            notifications = {}
        elif isinstance(event, SessionExpiredEvent):
            logger.info("payments.webhook checkout session expired id=%s", event.object.id)
            notifications = {}
        else:
            logger.info("payments.webhook unhandled event type=%s id=%s", event.type, event.id)
            notifications = {}
        return DispatchResult(event_id=event.id, event_type=event.type, notifications=notifications)

    async def _on_session_completed(self, event: SessionCompletedEvent) -> Dict[str, str]:
        session = event.object
        order = meta.decode_metadata(session.metadata)
        amount = order.custom_price if order.custom_price is not None else session.amount_total
        summary = PaymentSummary(
            session_id=session.id,
            customer_email=session.email,
            amount_minor_units=amount,
            order=order,
        )
        logger.info("payments.webhook payment successful session_id=%s service_id=%s amount=%s",
                    session.id, order.service_id, summary.amount_display)

        results: Dict[str, str] = {}
        if summary.customer_email:
            results["customer"] = await self._attempt(
                "customer", lambda: self._composer.customer_confirmation(summary)
            )
        else:
            logger.warning("payments.webhook no customer email on session_id=%s", session.id)
            results["customer"] = SKIPPED

        results["operator"] = await self._attempt(
            "operator",
            lambda: self._composer.operator_notification(summary, self._settings.require("TO_EMAIL")),
        )
        return results

    async def _attempt(self, label: str, compose: Callable[[], EmailMessage]) -> str:
        """
        Frontière d'échec isolée: composition + envoi d'un message.
        Toute exception est journalisée puis absorbée.
        """
        try:
            message = compose()
            await self._sender.send(message)
        except Exception:
            logger.exception("payments.webhook %s notification failed", label)
            return FAILED
        return SENT
