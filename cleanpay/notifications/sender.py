"""
Envoi des e-mails via l'API HTTP Resend (httpx asynchrone).
Une seule tentative par message: aucun retry local.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from cleanpay.config import Settings
from cleanpay.exceptions import NotificationDeliveryError
from cleanpay.notifications.composer import EmailMessage

logger = logging.getLogger(__name__)


class ResendEmailSender:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def send(self, message: EmailMessage) -> Optional[str]:
        """
        Envoie un message et retourne l'identifiant Resend.
        - RESEND_API_KEY / FROM_EMAIL manquants -> MissingConfigurationError
        - Erreur réseau ou statut non 2xx -> NotificationDeliveryError
        """
        api_key = self._settings.require("RESEND_API_KEY")
        sender = self._settings.require("FROM_EMAIL")
        payload: Dict[str, Any] = {
            "from": sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._settings.NOTIFICATION_TIMEOUT_SECONDS,
            ) as client:
                resp = await client.post(
                    self._settings.RESEND_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {api_key}"},
                )
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Resend injoignable: {e}") from e

        if resp.status_code >= 300:
            raise NotificationDeliveryError(f"Resend status={resp.status_code} body={resp.text[:200]}")
        try:
            message_id = (resp.json() or {}).get("id")
        except ValueError:
            message_id = None
        logger.info("notifications.sent to=%s id=%s", message.to, message_id)
        return message_id
