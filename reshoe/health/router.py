from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from reshoe.health.service import find_settlement_gaps, health_supabase_info
from reshoe.utils.rate_limit import rate_limit_health_info
from reshoe.utils.security import AuthUser, require_admin

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    return {"ok": True, "rate_limit": rate_limit_health_info(request)}

@router.get("/supabase")
def health_supabase():
    return JSONResponse(health_supabase_info())

@router.get("/settlement")
def health_settlement(user: AuthUser = Depends(require_admin)):
    report = find_settlement_gaps()
    return JSONResponse(report, status_code=200 if report["ok"] else 503)
