"""
Middlewares HTTP de l'API ReShoe (JSON uniquement, authentification Bearer).
- register_basic_middlewares: CORS, hôtes autorisés, en-têtes X-Forwarded-* du proxy.
- register_security_middleware: en-têtes de sécurité communs à toutes les réponses.
- register_no_cache_middleware: pas de cache pour ce qui dépend de l'appelant
  (panier, commandes, ledger, admin).
- register_force_https_middleware: redirection 301 vers https derrière un proxy TLS.
Le middleware HTTPS est ajouté en dernier: il s'exécute donc en premier.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from reshoe.config import ALLOWED_HOSTS, CORS_ORIGINS, FORCE_HTTPS

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}
HSTS_HEADER = "max-age=63072000; includeSubDomains"
API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOC_PATHS = ("/docs", "/redoc", "/openapi.json")

# Lectures propres à l'appelant, même sans en-tête Authorization (ex: proxy qui le retire des logs)
PRIVATE_PREFIXES = ("/admin", "/api/v1/cart", "/api/v1/orders", "/api/v1/transactions", "/health/settlement")
NO_STORE = {
    "Cache-Control": "no-store, max-age=0",
    "Pragma": "no-cache",
}


def register_basic_middlewares(app: FastAPI) -> None:
    # Credentials interdits avec l'origine joker (refusé par les navigateurs)
    wildcard = "*" in CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"] if wildcard else ALLOWED_HOSTS)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])


def register_security_middleware(app: FastAPI) -> None:
    """HSTS seulement si FORCE_HTTPS; la CSP n'est pas posée sur la documentation Swagger."""
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if FORCE_HTTPS:
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)
        if not request.url.path.startswith(DOC_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP
        return response


def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_private(request: Request, call_next):
        response = await call_next(request)
        private = request.url.path.startswith(PRIVATE_PREFIXES) or bool(request.headers.get("Authorization"))
        if request.method == "GET" and private:
            response.headers.update(NO_STORE)
        return response


def register_force_https_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def force_https(request: Request, call_next):
        if FORCE_HTTPS and request.headers.get("x-forwarded-proto") == "http":
            return RedirectResponse(str(request.url.replace(scheme="https")), status_code=301)
        return await call_next(request)
