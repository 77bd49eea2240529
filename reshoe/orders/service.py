"""Couche service des commandes.
Rôles:
- Créer une commande: vérifier la preuve de paiement puis régler l'achat (settlement).
- Lister/consulter les commandes selon le rôle (acheteur, vendeur, admin).
- Mettre à jour le statut (vendeur de la commande ou admin). Aucune table de transitions
  n'est imposée; un retour en arrière est accepté mais journalisé et signalé (anomaly=True).
"""
from typing import Any, Dict, List, Optional
import logging

from reshoe.errors import ForbiddenError, NotFoundError
from reshoe.listings import repository as listings_repository
from reshoe.orders import repository
from reshoe.orders.models import OrderCreate, OrderStatus, is_backward_move
from reshoe.orders.settlement import settle_purchase, validate_shipping_address
from reshoe.payments import service as payments_service
from reshoe.users import repository as users_repository
from reshoe.utils.pagination import page_window, paginated
from reshoe.utils.security import AuthUser, Role
from reshoe.utils.validators import is_uuid

logger = logging.getLogger(__name__)


def place_order(user: AuthUser, payload: OrderCreate) -> Dict[str, Any]:
    """
    Adresse validée, paiement vérifié et rattaché à cette annonce et cet acheteur, puis règlement.
    L'unicité de la preuve est garantie par le règlement (réclamation du payment_id).
    """
    validate_shipping_address(payload.shipping_address)
    proof = payments_service.confirm_payment(payload.payment, payload.listing_id, user.id)
    return settle_purchase(
        user.id, payload.listing_id, proof["payment_id"], payload.shipping_address, paid_amount=proof["amount"]
    )


def hydrate_orders(rows: List[dict]) -> List[dict]:
    """Joint acheteur, vendeur et annonce à chaque commande (deux lectures groupées)."""
    if not rows:
        return []
    user_ids = [str(r.get("buyer_id")) for r in rows] + [str(r.get("seller_id")) for r in rows]
    users = users_repository.get_users_by_ids(user_ids)
    listings = {
        str(l["id"]): l
        for l in listings_repository.get_listings_by_ids(list({str(r.get("listing_id")) for r in rows}))
    }
    hydrated = []
    for row in rows:
        item = dict(row)
        item["buyer"] = users_repository.public_profile(users.get(str(row.get("buyer_id"))))
        item["seller"] = users_repository.public_profile(users.get(str(row.get("seller_id"))))
        item["listing"] = listings.get(str(row.get("listing_id")))
        hydrated.append(item)
    return hydrated


def _load_order(order_id: str) -> dict:
    if not is_uuid(order_id):
        raise NotFoundError("Commande introuvable")
    order = repository.get_order(order_id)
    if not order:
        raise NotFoundError("Commande introuvable")
    return order


def list_orders(user: AuthUser, status: Optional[OrderStatus] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    filters: Dict[str, Any] = {}
    if user.role is Role.CUSTOMER:
        filters["buyer_id"] = user.id
    elif user.role is Role.SELLER:
        filters["seller_id"] = user.id
    if status:
        filters["status"] = status.value
    offset, limit = page_window(page, limit)
    rows, total = repository.list_orders(filters, offset=offset, limit=limit)
    return paginated(hydrate_orders(rows), total, page, limit)


def get_order(user: AuthUser, order_id: str) -> Dict[str, Any]:
    order = _load_order(order_id)
    if not (user.is_admin or user.id in (str(order.get("buyer_id")), str(order.get("seller_id")))):
        raise ForbiddenError("Accès à cette commande interdit")
    return hydrate_orders([order])[0]


def update_order_status(user: AuthUser, order_id: str, new_status: OrderStatus) -> Dict[str, Any]:
    order = _load_order(order_id)
    if not (user.is_admin or str(order.get("seller_id")) == user.id):
        raise ForbiddenError("Seul le vendeur de la commande ou un admin peut modifier son statut")

    current = OrderStatus(order.get("status") or OrderStatus.PENDING.value)
    anomaly = is_backward_move(current, new_status)
    if anomaly:
        logger.warning(
            "order status anomaly id=%s %s -> %s by=%s", order_id, current.value, new_status.value, user.id
        )
    updated = repository.update_status(order_id, new_status.value)
    if not updated:
        raise NotFoundError("Commande introuvable")
    logger.info("order status id=%s %s -> %s", order_id, current.value, new_status.value)
    return {"item": hydrate_orders([updated])[0], "anomaly": anomaly}
