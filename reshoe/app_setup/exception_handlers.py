"""
Gestionnaires d’exceptions.
- ReShoeError 4xx: {"detail": <raison>} tel quel pour le client.
- ReShoeError 5xx: message générique; le détail (et l’état de réconciliation d’un règlement partiel)
  reste dans les logs serveur.
- HTTPException (auth, rate limit): réponse JSON FastAPI standard.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from reshoe.errors import PartialSettlementError, ReShoeError

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Erreur interne, veuillez réessayer plus tard"

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReShoeError)
    async def reshoe_error_handler(request: Request, exc: ReShoeError):
        if exc.status_code < 500:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        if isinstance(exc, PartialSettlementError):
            logger.error(
                "partial settlement %s %s reconciliation=%s",
                request.method, request.url.path, exc.reconciliation_info(),
            )
        else:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content={"detail": GENERIC_SERVER_ERROR})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
