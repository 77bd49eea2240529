"""
Lance l'API ReShoe avec uvicorn.

Usage:
    python -m reshoe

Variables d'environnement:
- HOST / PORT: adresse d'écoute (0.0.0.0:8000 par défaut)
- UVICORN_RELOAD: reload auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau de logs uvicorn ("info", "debug"...)
- FORWARDED_ALLOW_IPS: proxys autorisés à fixer X-Forwarded-* (défaut "*")
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "reshoe.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        forwarded_allow_ips=os.environ.get("FORWARDED_ALLOW_IPS", "*"),
    )


if __name__ == "__main__":
    main()
