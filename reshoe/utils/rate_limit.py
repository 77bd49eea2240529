"""
Limitation de débit des routes sensibles (création de charge, commande, soumission d'annonce, modération).

optional_rate_limit(times, seconds) renvoie une dépendance FastAPI:
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (dev, tests)
- app.state.rate_limit_enabled is False: aucune limite
- sinon fastapi-limiter (Redis); un limiter non initialisé ne bloque jamais
La clé combine l'appelant (jeton Bearer haché, sinon IP) et le chemin.
"""
from typing import Any, Dict, List
from urllib.parse import urlparse
import hashlib
import os
import time

from fastapi import HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from reshoe.utils.security import bearer_token


def caller_key(request: Request) -> str:
    token = bearer_token(request)
    if token:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{digest}:{request.url.path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{request.url.path}"


def _local_hit(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    key = caller_key(request)
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", None) or {}
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Trop de requêtes, réessayez plus tard")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store


async def _redis_identifier(request: Request) -> str:
    return caller_key(request)


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return
        if FastAPILimiter.redis is None:
            return
        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_redis_identifier)(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible en cours de route: on laisse passer plutôt que de bloquer l'achat
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = getattr(FastAPILimiter, "redis", None) is not None
    info: Dict[str, Any] = {
        "enabled": bool(enabled) if enabled is not None else None,
        "ready": ready,
        "backend": "redis" if ready else None,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
