from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from reshoe.platform_settings import service as settings_service
from reshoe.platform_settings.models import PlatformSettingsUpdate
from reshoe.utils.security import AuthUser, require_admin

router = APIRouter(prefix="/admin/api/settings", tags=["Admin"])


@router.get("")
def admin_get_settings(user: AuthUser = Depends(require_admin)):
    return JSONResponse({"item": settings_service.get_settings()})


@router.put("")
def admin_update_settings(payload: PlatformSettingsUpdate, user: AuthUser = Depends(require_admin)):
    return JSONResponse({"item": settings_service.update_settings(user, payload)})
