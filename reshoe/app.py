# module reshoe.app
from fastapi import FastAPI

from reshoe.app_setup.lifespan import lifespan
from reshoe.app_setup.middlewares import (
    register_basic_middlewares,
    register_force_https_middleware,
    register_no_cache_middleware,
    register_security_middleware,
)
from reshoe.app_setup.exception_handlers import register_exception_handlers
from reshoe.app_setup.routers import register_routers


def create_app() -> FastAPI:
    """
    Crée et configure l’instance FastAPI de l’application.
    Étapes et ordre (important pour la sécurité et le comportement):
      1) register_basic_middlewares: CORS, TrustedHost, ProxyHeaders.
      2) register_security_middleware: en-têtes de sécurité + CSP.
      3) register_no_cache_middleware: pas de cache pour /admin et les requêtes authentifiées.
      4) register_exception_handlers: erreurs métier -> JSON {"detail": ...}.
      5) register_routers: API v1, admin, health.
      6) register_force_https_middleware: ajouté en dernier pour s’exécuter en premier.
    """
    app = FastAPI(title="ReShoe API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    register_force_https_middleware(app)
    return app


# App globale
app = create_app()
