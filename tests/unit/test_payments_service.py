import asyncio
import logging
from dataclasses import replace

import pytest

from cleanpay.exceptions import QuoteValidationError, ServiceNotFoundError
from cleanpay.payments import service as payments_service
from cleanpay.payments.dispatcher import DispatchResult
from cleanpay.payments.idempotency import ProcessedEventRegistry
from cleanpay.payments.stripe_client import CheckoutSessionGateway

QUOTE = {
    "serviceType": "Standard Clean",
    "frequency": "bi-weekly",
    "propertySize": "750",
    "bedrooms": "1",
    "bathrooms": "1",
    "extras": [],
    "tipPercentage": "15",
}


def test_resolve_price_custom_price_in_currency_units():
    assert payments_service.resolve_price(135, None) == 13500
    assert payments_service.resolve_price("99.99", None) == 9999


def test_resolve_price_none_means_catalog():
    assert payments_service.resolve_price(None, None) is None
    assert payments_service.resolve_price(0, {}) is None


def test_resolve_price_client_price_wins_mismatch_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="cleanpay.payments.service"):
        assert payments_service.resolve_price(140, QUOTE) == 14000
    assert "différent du calcul serveur" in caplog.text


def test_resolve_price_other_tip_keeps_client_amount(caplog):
    # Le formulaire n'envoie pas customTip dans quoteData: le total client fait foi
    quote = dict(QUOTE, tipPercentage="other")
    with caplog.at_level(logging.WARNING, logger="cleanpay.payments.service"):
        assert payments_service.resolve_price(141, quote) == 14100
    assert caplog.text == ""


def test_resolve_price_quote_only_is_computed():
    assert payments_service.resolve_price(None, QUOTE) == 13500


@pytest.mark.parametrize("quote", [
    dict(QUOTE, tip={"mode": "bogus", "value": 10}),
    dict(QUOTE, tip="lots"),
])
def test_resolve_price_malformed_quote_is_validation_error(quote):
    with pytest.raises(QuoteValidationError) as exc:
        payments_service.resolve_price(135, quote)
    assert exc.value.status_code == 400


def test_resolve_price_matching_quote_no_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="cleanpay.payments.service"):
        assert payments_service.resolve_price(135, QUOTE) == 13500
    assert caplog.text == ""


@pytest.mark.parametrize("bad", ["abc", -10])
def test_resolve_price_rejects_bad_custom_price(bad):
    with pytest.raises(QuoteValidationError):
        payments_service.resolve_price(bad, None)


def test_checkout_urls_from_origin(settings):
    success, cancel = payments_service.checkout_urls("http://testserver/", settings)
    assert success == "http://testserver/success?session_id={CHECKOUT_SESSION_ID}"
    assert cancel == "http://testserver/quote"


def test_checkout_urls_prefer_base_url(settings):
    success, cancel = payments_service.checkout_urls(
        "http://internal:8000/", replace(settings, BASE_URL="https://clean.example.com")
    )
    assert success.startswith("https://clean.example.com/success?")
    assert cancel == "https://clean.example.com/quote"


def test_unknown_service_never_reaches_stripe(settings, stripe_client, stripe_sessions):
    gateway = CheckoutSessionGateway(settings, client=stripe_client)
    with pytest.raises(ServiceNotFoundError):
        asyncio.run(payments_service.create_checkout(
            gateway, settings,
            service_id="window-washing", customer_email=None, customer_name=None,
            custom_price=None, quote=None, origin="http://testserver/",
        ))
    assert stripe_sessions.created == []


class _ExplodingDispatcher:
    async def dispatch(self, event):
        raise RuntimeError("unexpected")


def test_unexpected_dispatch_failure_releases_claim(settings, sign, event_body):
    body = event_body("customer.created", {"id": "cus_1"}, "evt_release")

    async def _run():
        registry = ProcessedEventRegistry()
        with pytest.raises(RuntimeError):
            await payments_service.handle_payment_webhook(
                raw_body=body,
                signature=sign(body, settings.STRIPE_WEBHOOK_SECRET),
                settings=settings,
                dispatcher=_ExplodingDispatcher(),
                registry=registry,
            )
        return registry

    assert "evt_release" not in asyncio.run(_run())


class _RecordingDispatcher:
    def __init__(self):
        self.events = []

    async def dispatch(self, event):
        self.events.append(event)
        return DispatchResult(event_id=event.id, event_type=event.type, notifications={})


def test_event_without_id_is_acknowledged_each_time(settings, sign):
    body = b'{"type": "checkout.session.completed", "data": {"object": {}}}'

    async def _run():
        registry = ProcessedEventRegistry()
        dispatcher = _RecordingDispatcher()
        results = []
        for _ in range(2):
            results.append(await payments_service.handle_payment_webhook(
                raw_body=body,
                signature=sign(body, settings.STRIPE_WEBHOOK_SECRET),
                settings=settings,
                dispatcher=dispatcher,
                registry=registry,
            ))
        return results, dispatcher, registry

    results, dispatcher, registry = asyncio.run(_run())
    assert results == [{"received": True}, {"received": True}]
    assert len(dispatcher.events) == 2
    assert len(registry) == 0
