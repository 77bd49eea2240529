# module reshoe.cart.views
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reshoe.cart import service as cart_service
from reshoe.utils.security import AuthUser, require_user

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class CartAdd(BaseModel):
    listing_id: str


@router.get("")
def api_get_cart(user: AuthUser = Depends(require_user)):
    return JSONResponse(cart_service.get_cart(user))


@router.post("")
def api_add_to_cart(payload: CartAdd, user: AuthUser = Depends(require_user)):
    return JSONResponse(cart_service.add_to_cart(user, payload.listing_id), status_code=201)


@router.delete("/{listing_id}")
def api_remove_from_cart(listing_id: str, user: AuthUser = Depends(require_user)):
    return JSONResponse(cart_service.remove_from_cart(user, listing_id))
