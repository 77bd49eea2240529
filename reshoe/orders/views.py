# module reshoe.orders.views

"""Endpoints des commandes.
- POST /api/v1/orders: preuve de paiement + adresse -> règlement (authentifié, rate-limité).
- GET /api/v1/orders: commandes visibles par l'appelant (achats, ventes ou toutes pour l'admin).
- GET /api/v1/orders/{id}: détail (acheteur, vendeur ou admin).
- PUT /api/v1/orders/{id}: statut (vendeur de la commande ou admin).
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from reshoe.orders import service as orders_service
from reshoe.orders.models import OrderCreate, OrderStatus, OrderStatusUpdate
from reshoe.utils.rate_limit import optional_rate_limit
from reshoe.utils.security import AuthUser, require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_create_order(payload: OrderCreate, user: AuthUser = Depends(require_user)):
    order = orders_service.place_order(user, payload)
    return JSONResponse({"item": order}, status_code=201)


@router.get("")
def api_list_orders(
    status: Optional[OrderStatus] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: AuthUser = Depends(require_user),
):
    return JSONResponse(orders_service.list_orders(user, status=status, page=page, limit=limit))


@router.get("/{order_id}")
def api_get_order(order_id: str, user: AuthUser = Depends(require_user)):
    return JSONResponse({"item": orders_service.get_order(user, order_id)})


@router.put("/{order_id}")
def api_update_order_status(order_id: str, payload: OrderStatusUpdate, user: AuthUser = Depends(require_user)):
    return JSONResponse(orders_service.update_order_status(user, order_id, payload.status))
