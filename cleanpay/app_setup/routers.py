"""
Registre central des routers (API publique, webhook, health).
"""
from fastapi import FastAPI

from cleanpay.catalog import views as catalog_views
from cleanpay.health.router import router as health_router
from cleanpay.payments import views as payments_views
from cleanpay.pricing import views as pricing_views


def register_routers(app: FastAPI) -> None:
    app.include_router(catalog_views.router)
    app.include_router(pricing_views.router)
    app.include_router(payments_views.router)
    app.include_router(health_router)
