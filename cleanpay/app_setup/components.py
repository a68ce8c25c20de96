"""
Composants partagés de l'application, construits une fois par create_app() à partir de Settings
et exposés aux vues par des dépendances FastAPI (surchargeables en test via app.state).
"""
from fastapi import FastAPI, Request

from cleanpay.config import Settings
from cleanpay.notifications import NotificationComposer, ResendEmailSender
from cleanpay.payments.dispatcher import PaymentEventDispatcher
from cleanpay.payments.idempotency import ProcessedEventRegistry
from cleanpay.payments.stripe_client import CheckoutSessionGateway


def register_components(app: FastAPI, settings: Settings) -> None:
    app.state.settings = settings
    app.state.gateway = CheckoutSessionGateway(settings)
    app.state.dispatcher = PaymentEventDispatcher(
        settings,
        NotificationComposer(company_name=settings.COMPANY_NAME),
        ResendEmailSender(settings),
    )
    app.state.processed_events = ProcessedEventRegistry(settings.PROCESSED_EVENTS_MAX)


def get_gateway(request: Request) -> CheckoutSessionGateway:
    return request.app.state.gateway


def get_dispatcher(request: Request) -> PaymentEventDispatcher:
    return request.app.state.dispatcher


def get_event_registry(request: Request) -> ProcessedEventRegistry:
    return request.app.state.processed_events
