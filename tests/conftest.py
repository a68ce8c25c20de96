import hashlib
import hmac
import json
import os
import time
from types import SimpleNamespace
from typing import Any, Dict, Generator, Optional

# Pas de Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
import stripe
from fastapi.testclient import TestClient

from cleanpay.app import create_app
from cleanpay.config import Settings
from cleanpay.exceptions import NotificationDeliveryError
from cleanpay.notifications import NotificationComposer
from cleanpay.payments.dispatcher import PaymentEventDispatcher
from cleanpay.payments.stripe_client import CheckoutSessionGateway

WEBHOOK_SECRET = "whsec_test_secret"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeCheckoutSessions:
    """Remplace client.checkout.sessions du SDK Stripe (aucun appel réseau)."""

    def __init__(self):
        self.created = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.error: Optional[Exception] = None

    def create(self, params=None, options=None):
        if self.error:
            raise self.error
        self.created.append(params)
        sid = f"cs_test_{len(self.created)}"
        session = {
            "id": sid,
            "url": f"https://checkout.stripe.test/c/pay/{sid}",
            "metadata": params.get("metadata") or {},
            "amount_total": params["line_items"][0]["price_data"]["unit_amount"],
            "currency": "usd",
        }
        self.sessions[sid] = session
        return session

    def retrieve(self, session_id, params=None, options=None):
        if self.error:
            raise self.error
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(f"No such checkout.session: '{session_id}'", "id")
        return self.sessions[session_id]


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    async def send(self, message):
        if message.to in self.fail_for:
            raise NotificationDeliveryError(f"boom {message.to}")
        self.sent.append(message)
        return f"msg_{len(self.sent)}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
        RESEND_API_KEY="re_test_123",
        FROM_EMAIL="pagos@example.com",
        TO_EMAIL="ops@example.com",
    )


@pytest.fixture
def stripe_sessions() -> FakeCheckoutSessions:
    return FakeCheckoutSessions()


@pytest.fixture
def stripe_client(stripe_sessions):
    return SimpleNamespace(checkout=SimpleNamespace(sessions=stripe_sessions))


@pytest.fixture
def sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def app(settings, stripe_client, sender):
    application = create_app(settings)
    application.state.gateway = CheckoutSessionGateway(settings, client=stripe_client)
    application.state.dispatcher = PaymentEventDispatcher(
        settings, NotificationComposer(company_name=settings.COMPANY_NAME), sender
    )
    return application


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature calculé comme Stripe: HMAC-SHA256 de "<t>.<body>"."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def make_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> bytes:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": obj},
    }).encode("utf-8")


@pytest.fixture
def signed_event():
    """Fabrique (body, headers) pour un événement signé avec le secret de test."""
    def _make(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1", secret: str = WEBHOOK_SECRET):
        body = make_event(event_type, obj, event_id)
        return body, {"Stripe-Signature": sign_payload(body, secret), "Content-Type": "application/json"}
    return _make


@pytest.fixture
def completed_session() -> Dict[str, Any]:
    return {
        "id": "cs_test_abc123456789012345678901",
        "object": "checkout.session",
        "customer_email": "cliente@example.com",
        "amount_total": 13500,
        "currency": "usd",
        "payment_status": "paid",
        "metadata": {
            "serviceId": "regular-cleaning",
            "customerName": "Ana Pérez",
            "customPrice": "13500",
            "quoteData": json.dumps({
                "serviceType": "Standard Clean",
                "frequency": "bi-weekly",
                "propertySize": "750",
                "bedrooms": "1",
                "bathrooms": "1",
                "extras": ["dishes"],
                "address": "1 Ocean Dr",
            }),
        },
    }


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def event_body():
    return make_event
