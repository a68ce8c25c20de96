"""
Gestionnaires d'exceptions.
- CleanPayError (et sous-classes): {"error": <message public>} avec le code porté par l'exception.
- Erreurs de validation de requête (pydantic): 400 {"error": ...}.
- HTTPException: corps FastAPI standard {"detail": ...} (ex: 429 du rate limit).
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cleanpay.exceptions import CleanPayError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CleanPayError)
    async def cleanpay_error(request: Request, exc: CleanPayError):
        if exc.status_code >= 500:
            logger.error("http.error path=%s type=%s detail=%s", request.url.path, type(exc).__name__, exc.message)
        else:
            logger.info("http.rejected path=%s type=%s detail=%s", request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.to_public()})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        details = [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"error": "Requête invalide", "details": jsonable_encoder(details)},
        )
