# module cleanpay.app
from typing import Optional

from fastapi import FastAPI

from cleanpay.app_setup.components import register_components
from cleanpay.app_setup.exception_handlers import register_exception_handlers
from cleanpay.app_setup.lifespan import lifespan
from cleanpay.app_setup.middlewares import register_basic_middlewares, register_security_middleware
from cleanpay.app_setup.routers import register_routers
from cleanpay.config import Settings, load_settings


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Crée et configure l'instance FastAPI de l'application.
    Étapes et ordre:
      1) register_components: Settings, passerelle Stripe, dispatcher, registre des événements (app.state).
      2) register_basic_middlewares: CORS, TrustedHost, ProxyHeaders.
      3) register_security_middleware: en-têtes de sécurité + CSP.
      4) register_exception_handlers: {"error": ...} pour les erreurs métier.
      5) register_routers: catalogue, devis, paiements, webhook, health.
    Paramètres:
      - settings: configuration explicite (tests); à défaut lue depuis l'environnement/.env.
    """
    settings = settings or load_settings()
    app = FastAPI(title="CleanPay API", lifespan=lifespan)
    register_components(app, settings)
    register_basic_middlewares(app, settings)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
