from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cleanpay.config import Settings, get_settings
from cleanpay.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/config")
def health_config(settings: Settings = Depends(get_settings)):
    """Présence des réglages obligatoires (booléens uniquement, jamais les valeurs)."""
    return JSONResponse(settings.presence())


@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return JSONResponse(rate_limit_health_info(request))
