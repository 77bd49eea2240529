from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from reshoe.analytics import service as analytics_service
from reshoe.utils.security import AuthUser, require_admin

router = APIRouter(prefix="/admin/api", tags=["Admin"])


# API JSON: tableau de bord (comptages, revenus, top vendeurs, série 30 jours)
@router.get("/analytics")
def admin_analytics(user: AuthUser = Depends(require_admin)):
    return JSONResponse(analytics_service.dashboard())
