# module reshoe.admin.views
"""API JSON d'administration: modération des annonces, utilisateurs, compteurs.
Les réglages (/admin/api/settings) et l'analytics (/admin/api/analytics) ont leurs propres routers.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from reshoe.admin import service as admin_service
from reshoe.listings import service as listings_service
from reshoe.listings.models import ListingReview, ListingStatus
from reshoe.utils.rate_limit import optional_rate_limit
from reshoe.utils.security import AuthUser, Role, require_admin

router = APIRouter(prefix="/admin/api", tags=["Admin"])

# API JSON: stats dashboard (comptes simples)
@router.get("/stats")
def admin_stats(user: AuthUser = Depends(require_admin)):
    return JSONResponse(admin_service.table_counts())

# API JSON: file de modération
@router.get("/listings")
def admin_list_listings(
    status: Optional[ListingStatus] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: AuthUser = Depends(require_admin),
):
    return JSONResponse(listings_service.list_admin_listings(user, status=status, page=page, limit=limit))

@router.post("/listings/{listing_id}/review", dependencies=[Depends(optional_rate_limit(times=60, seconds=60))])
def admin_review_listing(listing_id: str, payload: ListingReview, user: AuthUser = Depends(require_admin)):
    return JSONResponse({"item": listings_service.review_listing(user, listing_id, payload)})

@router.get("/users")
def admin_list_users(
    role: Optional[Role] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    user: AuthUser = Depends(require_admin),
):
    return JSONResponse(admin_service.list_users(role=role, page=page, limit=limit))
