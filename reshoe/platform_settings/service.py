from typing import Any, Dict
import logging

from reshoe.errors import ForbiddenError, ValidationError
from reshoe.platform_settings import repository
from reshoe.platform_settings.models import PlatformSettingsUpdate
from reshoe.utils.security import AuthUser

logger = logging.getLogger(__name__)


def get_settings() -> Dict[str, Any]:
    return repository.get_or_create_settings()


def commission_rate_snapshot() -> float:
    """Taux en vigueur, lu au moment du règlement (défaut 10 si le singleton est créé à l'instant)."""
    return float(get_settings().get("commission_rate"))


def update_settings(admin: AuthUser, payload: PlatformSettingsUpdate) -> Dict[str, Any]:
    """Les transactions existantes gardent le taux figé au moment de la vente."""
    if not admin.is_admin:
        raise ForbiddenError()
    changes = payload.model_dump(mode="json", exclude_none=True)
    if not changes:
        raise ValidationError("Aucune donnée à mettre à jour")
    repository.get_or_create_settings()
    updated = repository.update_settings(changes)
    logger.info("settings updated by=%s fields=%s", admin.id, sorted(changes))
    return updated
