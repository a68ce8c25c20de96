"""
Limitation de débit optionnelle des endpoints publics (clé: IP client + chemin).
- fastapi-limiter (Redis) quand le lifespan a pu l'initialiser
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (dev)
- sinon, aucune limitation (jamais de 500 à cause du limiteur)
"""
import logging
import os
import time
from typing import Any, Dict
from urllib.parse import urlparse

from fastapi import HTTPException, Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    ip = forwarded or (request.client.host if request.client else "local")
    return f"ip:{ip}:{request.url.path}"


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request):
        # Forcer le fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            path_store = store.setdefault(request.url.path, {})
            # Purge des clients inactifs sur ce chemin
            for idle in [k for k, ts in path_store.items() if not ts or now - ts[-1] >= seconds]:
                del path_store[idle]
            hits = path_store.get(key, [])
            hits = [t for t in hits if now - t < seconds]
            if len(hits) >= times:
                path_store[key] = hits
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            path_store[key] = hits
            request.app.state._rl_store = store
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return client_key(req)

        limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)
        try:
            await limiter(request, Response())
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible en cours de route: on laisse passer
            logger.warning("rate_limit.unavailable path=%s error=%s", request.url.path, e)
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if limiter_ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
