"""Service panier: ajout contrôlé, retrait idempotent, lecture avec filtrage des annonces disparues."""
from typing import Any, Dict
import logging

from reshoe.cart import items as cart_items
from reshoe.cart import repository
from reshoe.errors import ConflictError, DuplicateCartItemError, ForbiddenError, ListingUnavailableError
from reshoe.listings import repository as listings_repository
from reshoe.listings.models import ListingStatus
from reshoe.listings.service import load_listing
from reshoe.utils.security import AuthUser

logger = logging.getLogger(__name__)

# Relectures du panier quand une écriture concurrente est passée entre-temps
CART_WRITE_ATTEMPTS = 5


def _view(cart: Dict[str, Any]) -> Dict[str, Any]:
    raw_items = cart.get("items") or []
    ids = [str(it.get("listing_id")) for it in raw_items]
    listings = {str(l["id"]): l for l in listings_repository.get_listings_by_ids(ids)}
    entries = cart_items.resolve_entries(raw_items, listings)
    return {
        "user_id": cart.get("user_id"),
        "items": entries,
        "total": cart_items.total_price(entries),
    }


def _version(cart: Dict[str, Any]) -> int:
    return int(cart.get("version") or 0)


def get_cart(user: AuthUser) -> Dict[str, Any]:
    return _view(repository.ensure_cart(user.id))


def add_to_cart(user: AuthUser, listing_id: str) -> Dict[str, Any]:
    """Quatre refus distincts: NotFound, ListingUnavailable, Forbidden (propre annonce), DuplicateCartItem."""
    listing = load_listing(listing_id)
    if listing.get("status") != ListingStatus.APPROVED.value:
        raise ListingUnavailableError()
    if str(listing.get("seller_id")) == user.id:
        raise ForbiddenError("Impossible d'ajouter votre propre annonce au panier")

    for _ in range(CART_WRITE_ATTEMPTS):
        cart = repository.ensure_cart(user.id)
        current = cart.get("items") or []
        if cart_items.contains(current, listing_id):
            raise DuplicateCartItemError()
        saved = repository.save_items(user.id, cart_items.append_item(current, listing_id), _version(cart))
        if saved:
            logger.info("cart add user_id=%s listing_id=%s", user.id, listing_id)
            return _view(saved)
    logger.warning("cart add gave up after %s attempts user_id=%s", CART_WRITE_ATTEMPTS, user.id)
    raise ConflictError("Panier modifié en parallèle, réessayez")


def remove_from_cart(user: AuthUser, listing_id: str) -> Dict[str, Any]:
    """Idempotent: retirer une annonce absente laisse le panier inchangé (aucune écriture)."""
    for _ in range(CART_WRITE_ATTEMPTS):
        cart = repository.ensure_cart(user.id)
        current = cart.get("items") or []
        remaining = cart_items.without_item(current, listing_id)
        if len(remaining) == len(current):
            return _view(cart)
        saved = repository.save_items(user.id, remaining, _version(cart))
        if saved:
            return _view(saved)
    logger.warning("cart remove gave up after %s attempts user_id=%s", CART_WRITE_ATTEMPTS, user.id)
    raise ConflictError("Panier modifié en parallèle, réessayez")
