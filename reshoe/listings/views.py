# module reshoe.listings.views

"""Endpoints du catalogue (vendeurs et public).
- GET /api/v1/listings: catalogue public filtré (annonces approuvées uniquement).
- POST /api/v1/listings: soumission par un vendeur (rate-limitée).
- GET /api/v1/listings/mine: annonces du vendeur connecté, tous statuts.
- GET/PUT/DELETE /api/v1/listings/{id}: fiche, modification, suppression.
Les erreurs métier (ReShoeError) sont converties par les gestionnaires globaux.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from reshoe.listings import service as listings_service
from reshoe.listings.models import Category, Condition, ListingCreate, ListingFilters, ListingUpdate
from reshoe.utils.rate_limit import optional_rate_limit
from reshoe.utils.security import AuthUser, require_seller, require_user

router = APIRouter(prefix="/api/v1/listings", tags=["Listings API"])


@router.get("")
def api_browse_listings(
    category: Optional[Category] = None,
    brand: Optional[str] = None,
    condition: Optional[Condition] = None,
    size: Optional[float] = None,
    min_price: Optional[int] = Query(default=None, ge=0),
    max_price: Optional[int] = Query(default=None, ge=0),
    search: Optional[str] = None,
    sort: str = "-created_at",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
):
    filters = ListingFilters(
        category=category,
        brand=brand,
        condition=condition,
        size=size,
        min_price=min_price,
        max_price=max_price,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return JSONResponse(listings_service.browse_listings(filters))


@router.post("", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def api_submit_listing(payload: ListingCreate, user: AuthUser = Depends(require_seller)):
    listing = listings_service.submit_listing(user, payload)
    return JSONResponse({"item": listing}, status_code=201)


@router.get("/mine")
def api_my_listings(user: AuthUser = Depends(require_seller)):
    return JSONResponse({"items": listings_service.list_seller_listings(user)})


@router.get("/{listing_id}")
def api_get_listing(listing_id: str):
    return JSONResponse({"item": listings_service.get_listing(listing_id)})


@router.put("/{listing_id}")
def api_edit_listing(listing_id: str, payload: ListingUpdate, user: AuthUser = Depends(require_user)):
    return JSONResponse({"item": listings_service.edit_listing(user, listing_id, payload)})


@router.delete("/{listing_id}")
def api_delete_listing(listing_id: str, user: AuthUser = Depends(require_user)):
    listings_service.delete_listing(user, listing_id)
    return JSONResponse({"ok": True})
