"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn avec uvicorn workers) importe `reshoe.asgi:app`.
- Toute la configuration FastAPI est centralisée dans reshoe.app; ce fichier ne fait qu’exposer l’instance.
"""

from reshoe.app import app

__all__ = ["app"]
