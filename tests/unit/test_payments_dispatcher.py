import asyncio
from dataclasses import replace
from unittest.mock import MagicMock

from cleanpay.exceptions import NotificationCompositionError
from cleanpay.notifications import NotificationComposer
from cleanpay.payments.dispatcher import FAILED, SENT, SKIPPED, PaymentEventDispatcher
from cleanpay.payments.events import decode_event


def _completed(obj, event_id="evt_1"):
    return decode_event({"id": event_id, "type": "checkout.session.completed", "data": {"object": obj}})


def _dispatcher(settings, sender, composer=None):
    return PaymentEventDispatcher(settings, composer or NotificationComposer(), sender)


def test_completed_session_sends_both_emails(settings, sender, completed_session):
    result = asyncio.run(_dispatcher(settings, sender).dispatch(_completed(completed_session)))
    assert result.notifications == {"customer": SENT, "operator": SENT}
    assert [m.to for m in sender.sent] == ["cliente@example.com", "ops@example.com"]
    customer, operator = sender.sent
    assert customer.subject == "Pago Confirmado - Integrity Clean Solutions"
    assert "135.00" in customer.html
    assert "Ana Pérez" in customer.html
    assert operator.subject == "Nuevo Pago Recibido - Integrity Clean Solutions"
    assert "cliente@example.com" in operator.html


def test_catalog_purchase_amount_falls_back_to_amount_total(settings, sender, completed_session):
    completed_session["metadata"]["customPrice"] = ""
    completed_session["amount_total"] = 30000
    asyncio.run(_dispatcher(settings, sender).dispatch(_completed(completed_session)))
    assert all("300.00" in m.html for m in sender.sent)


def test_customer_failure_does_not_block_operator(settings, sender, completed_session):
    sender.fail_for.add("cliente@example.com")
    result = asyncio.run(_dispatcher(settings, sender).dispatch(_completed(completed_session)))
    assert result.notifications == {"customer": FAILED, "operator": SENT}
    assert [m.to for m in sender.sent] == ["ops@example.com"]


def test_composer_exception_is_contained(settings, sender, completed_session):
    composer = MagicMock(spec=NotificationComposer)
    composer.customer_confirmation.side_effect = NotificationCompositionError("template cassé")
    composer.operator_notification.side_effect = RuntimeError("boom")
    result = asyncio.run(_dispatcher(settings, sender, composer).dispatch(_completed(completed_session)))
    assert result.notifications == {"customer": FAILED, "operator": FAILED}
    assert sender.sent == []


def test_no_customer_email_skips_confirmation(settings, sender, completed_session):
    completed_session["customer_email"] = None
    result = asyncio.run(_dispatcher(settings, sender).dispatch(_completed(completed_session)))
    assert result.notifications == {"customer": SKIPPED, "operator": SENT}


def test_missing_operator_address_is_contained(settings, sender, completed_session):
    dispatcher = _dispatcher(replace(settings, TO_EMAIL=""), sender)
    result = asyncio.run(dispatcher.dispatch(_completed(completed_session)))
    assert result.notifications == {"customer": SENT, "operator": FAILED}


def test_other_events_only_logged(settings, sender):
    for event_type, obj in [
        ("payment_intent.succeeded", {"id": "pi_1", "amount": 1000}),
        ("payment_intent.payment_failed", {"id": "pi_2"}),
        ("checkout.session.expired", {"id": "cs_1"}),
        ("invoice.paid", {"id": "in_1"}),
    ]:
        event = decode_event({"id": f"evt_{event_type}", "type": event_type, "data": {"object": obj}})
        result = asyncio.run(_dispatcher(settings, sender).dispatch(event))
        assert result.notifications == {}
        assert result.event_type == event_type
    assert sender.sent == []
