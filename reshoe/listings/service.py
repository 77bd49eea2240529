"""Couche service du catalogue et de la modération.
Rôles:
- Soumission d'une annonce par un vendeur (statut initial pending-approval).
- Décision admin approve/reject, avec motif obligatoire pour un rejet.
- Modification par le vendeur ou l'admin; une annonce rejetée modifiée par son vendeur est resoumise.
- Lectures publiques (fiche, catalogue filtré) et listes vendeur/admin.
Toute écriture de statut passe par ensure_transition puis par une mise à jour conditionnelle
sur le statut attendu: deux décisions concurrentes ne peuvent pas s'appliquer toutes les deux.
Les images envoyées pour une écriture refusée (conflit, erreur de stockage) sont retirées du bucket.
"""
from contextlib import nullcontext
from typing import Any, Dict, List, Optional
import logging

from reshoe.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from reshoe.infra import storage
from reshoe.listings import repository
from reshoe.listings.models import (
    ListingCreate,
    ListingFilters,
    ListingReview,
    ListingStatus,
    ListingUpdate,
    ReviewDecision,
    ensure_transition,
)
from reshoe.reviews import repository as reviews_repository
from reshoe.users import repository as users_repository
from reshoe.utils.pagination import page_window, paginated
from reshoe.utils.security import AuthUser, Role
from reshoe.utils.validators import is_uuid

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {"created_at", "price", "views", "size"}
_SEARCH_STRIP = str.maketrans("", "", ",()%*")


def load_listing(listing_id: str) -> dict:
    """Annonce par id, NotFoundError si absente ou si l'id n'est pas un UUID."""
    if not is_uuid(listing_id):
        raise NotFoundError("Annonce introuvable")
    listing = repository.get_listing(listing_id)
    if not listing:
        raise NotFoundError("Annonce introuvable")
    return listing


def submit_listing(user: AuthUser, payload: ListingCreate) -> dict:
    if user.role is not Role.SELLER:
        raise ForbiddenError("Réservé aux vendeurs")
    data = payload.model_dump(mode="json")
    data["seller_id"] = user.id
    data["status"] = ListingStatus.PENDING_APPROVAL.value
    data["rejection_reason"] = ""
    data["views"] = 0
    with storage.staged_images(payload.images) as images:
        data["images"] = images
        listing = repository.insert_listing(data)
    logger.info("listing submitted id=%s seller_id=%s", listing.get("id"), user.id)
    return listing


def review_listing(admin: AuthUser, listing_id: str, review: ListingReview) -> dict:
    if not admin.is_admin:
        raise ForbiddenError()
    listing = load_listing(listing_id)
    current = listing.get("status")

    if review.action is ReviewDecision.APPROVE:
        target = ListingStatus.APPROVED
        changes = {"status": target.value, "rejection_reason": ""}
    else:
        reason = (review.rejection_reason or "").strip()
        if not reason:
            raise ValidationError("Motif de rejet requis")
        target = ListingStatus.REJECTED
        changes = {"status": target.value, "rejection_reason": reason}

    ensure_transition(current, target)
    updated = repository.update_listing_if_status(listing_id, current, changes)
    if not updated:
        # Statut modifié entre la lecture et l'écriture
        raise ConflictError("Annonce modifiée entre-temps, veuillez recharger")
    logger.info(
        "listing reviewed id=%s admin_id=%s %s -> %s", listing_id, admin.id, current, target.value
    )
    return updated


def edit_listing(user: AuthUser, listing_id: str, payload: ListingUpdate) -> dict:
    listing = load_listing(listing_id)
    is_owner = str(listing.get("seller_id")) == user.id
    if not (is_owner or user.is_admin):
        raise ForbiddenError("Seul le vendeur ou un admin peut modifier cette annonce")
    if listing.get("status") == ListingStatus.SOLD.value:
        raise ConflictError("Annonce déjà vendue")

    changes: Dict[str, Any] = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    staged = storage.staged_images(payload.images) if payload.images is not None else nullcontext()
    with staged as images:
        if images is not None:
            changes["images"] = images
        return _apply_edit(user, listing, changes, is_owner)


def _apply_edit(user: AuthUser, listing: dict, changes: Dict[str, Any], is_owner: bool) -> dict:
    listing_id = str(listing["id"])
    resubmit = listing.get("status") == ListingStatus.REJECTED.value and is_owner and not user.is_admin
    if resubmit:
        ensure_transition(ListingStatus.REJECTED.value, ListingStatus.PENDING_APPROVAL)
        changes["status"] = ListingStatus.PENDING_APPROVAL.value
        changes["rejection_reason"] = ""
        updated = repository.update_listing_if_status(listing_id, ListingStatus.REJECTED.value, changes)
        if not updated:
            raise ConflictError("Annonce modifiée entre-temps, veuillez recharger")
        logger.info("listing resubmitted id=%s seller_id=%s", listing_id, user.id)
        return updated

    if not changes:
        raise ValidationError("Aucune donnée à mettre à jour")
    updated = repository.update_listing_fields(listing_id, changes)
    if not updated:
        raise ConflictError("Annonce déjà vendue")
    return updated


def get_listing(listing_id: str) -> dict:
    """Fiche publique: incrémente le compteur de vues et joint vendeur + avis récents."""
    listing = load_listing(listing_id)
    views = int(listing.get("views") or 0) + 1
    repository.set_views(listing_id, views)
    listing["views"] = views
    listing["seller"] = users_repository.public_profile(
        users_repository.get_user(str(listing.get("seller_id")))
    )
    listing["reviews"] = reviews_repository.list_for_listing(listing_id, limit=10)
    return listing


def _parse_sort(sort: str) -> tuple:
    desc = sort.startswith("-")
    field = sort.lstrip("-+")
    if field not in SORTABLE_FIELDS:
        raise ValidationError(f"Tri non supporté: {sort}")
    return field, desc


def browse_listings(filters: ListingFilters) -> Dict[str, Any]:
    """Catalogue public: uniquement les annonces approuvées."""
    if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
        raise ValidationError("min_price doit être inférieur ou égal à max_price")
    order_by, desc = _parse_sort(filters.sort)

    eq_filters: Dict[str, Any] = {"status": ListingStatus.APPROVED.value}
    if filters.category:
        eq_filters["category"] = filters.category.value
    if filters.condition:
        eq_filters["condition"] = filters.condition.value
    if filters.brand:
        eq_filters["brand"] = filters.brand.strip()
    if filters.size is not None:
        eq_filters["size"] = filters.size

    search = (filters.search or "").translate(_SEARCH_STRIP).strip() or None
    offset, limit = page_window(filters.page, filters.limit)
    rows, total = repository.search_listings(
        eq_filters,
        search=search,
        min_price=filters.min_price,
        max_price=filters.max_price,
        order_by=order_by,
        desc=desc,
        offset=offset,
        limit=limit,
    )
    return paginated(rows, total, filters.page, limit)


def list_seller_listings(user: AuthUser) -> List[dict]:
    if user.role is not Role.SELLER:
        raise ForbiddenError("Réservé aux vendeurs")
    return repository.list_by_seller(user.id)


def list_admin_listings(admin: AuthUser, status: Optional[ListingStatus] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    if not admin.is_admin:
        raise ForbiddenError()
    offset, limit = page_window(page, limit)
    eq_filters = {"status": status.value} if status else {}
    rows, total = repository.search_listings(eq_filters, offset=offset, limit=limit)
    sellers = users_repository.get_users_by_ids([str(r.get("seller_id")) for r in rows])
    for row in rows:
        row["seller"] = users_repository.public_profile(sellers.get(str(row.get("seller_id"))))
    return paginated(rows, total, page, limit)


def delete_listing(user: AuthUser, listing_id: str) -> None:
    listing = load_listing(listing_id)
    if not (str(listing.get("seller_id")) == user.id or user.is_admin):
        raise ForbiddenError("Seul le vendeur ou un admin peut supprimer cette annonce")
    if listing.get("status") == ListingStatus.SOLD.value:
        raise ConflictError("Une annonce vendue ne peut pas être supprimée")
    if not repository.delete_listing_if_not_sold(listing_id):
        # Vendue ou supprimée entre la lecture et l'écriture
        raise ConflictError("Annonce déjà vendue ou supprimée")
    logger.info("listing deleted id=%s by=%s", listing_id, user.id)
