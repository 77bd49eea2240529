"""Avis acheteurs: un avis par (utilisateur, annonce), uniquement sur une commande livrée."""
import logging
from typing import Any, Dict

from pydantic import BaseModel, Field

from reshoe.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from reshoe.orders import repository as orders_repository
from reshoe.orders.models import OrderStatus
from reshoe.reviews import repository
from reshoe.utils.security import AuthUser
from reshoe.utils.validators import is_uuid

logger = logging.getLogger(__name__)


class ReviewCreate(BaseModel):
    order_id: str
    listing_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=10)


def create_review(user: AuthUser, payload: ReviewCreate) -> Dict[str, Any]:
    order = orders_repository.get_order(payload.order_id) if is_uuid(payload.order_id) else None
    if not order:
        raise NotFoundError("Commande introuvable")
    if str(order.get("buyer_id")) != user.id:
        raise ForbiddenError("Seul l'acheteur peut laisser un avis")
    if str(order.get("listing_id")) != payload.listing_id:
        raise ValidationError("L'annonce ne correspond pas à la commande")
    if order.get("status") != OrderStatus.DELIVERED.value:
        raise ConflictError("La commande doit être livrée avant de laisser un avis")
    if repository.find_review(user.id, payload.listing_id):
        raise ConflictError("Avis déjà déposé pour cette annonce")

    review = repository.insert_review({
        "user_id": user.id,
        "listing_id": payload.listing_id,
        "order_id": payload.order_id,
        "rating": payload.rating,
        "comment": payload.comment.strip(),
    })
    logger.info("review created listing_id=%s user_id=%s rating=%s", payload.listing_id, user.id, payload.rating)
    return review
