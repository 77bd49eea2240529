# module reshoe.listings.models
"""Modèles du catalogue: énumérations, transitions de cycle de vie et schémas d'entrée.

Cycle de vie d'une annonce:
- pending-approval -> approved | rejected  (décision admin)
- rejected -> pending-approval             (modification par le vendeur = resoumission)
- approved -> sold                         (règlement d'un achat uniquement)
- sold est terminal
"""
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field

from reshoe.errors import ConflictError


class ListingStatus(str, Enum):
    PENDING_APPROVAL = "pending-approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    SOLD = "sold"


class Condition(str, Enum):
    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"
    WORN = "worn"


class Category(str, Enum):
    MEN = "men"
    WOMEN = "women"
    UNISEX = "unisex"
    KIDS = "kids"


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


ALLOWED_TRANSITIONS: Dict[ListingStatus, FrozenSet[ListingStatus]] = {
    ListingStatus.PENDING_APPROVAL: frozenset({ListingStatus.APPROVED, ListingStatus.REJECTED}),
    ListingStatus.REJECTED: frozenset({ListingStatus.PENDING_APPROVAL}),
    ListingStatus.APPROVED: frozenset({ListingStatus.SOLD}),
    ListingStatus.SOLD: frozenset(),
}


def can_transition(current: ListingStatus, target: ListingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: ListingStatus) -> None:
    """Lève ConflictError si current -> target n'est pas une transition autorisée."""
    try:
        current_status = ListingStatus(current)
    except ValueError:
        raise ConflictError(f"Statut d'annonce inconnu: {current}")
    if current_status is ListingStatus.SOLD:
        raise ConflictError("Annonce déjà vendue")
    if current_status is target:
        raise ConflictError(f"Annonce déjà au statut '{target.value}'")
    if not can_transition(current_status, target):
        raise ConflictError(f"Transition interdite: {current_status.value} -> {target.value}")


class ListingCreate(BaseModel):
    title: str = Field(min_length=3)
    brand: str = Field(min_length=2)
    size: float = Field(ge=1, le=20)
    condition: Condition
    price: int = Field(ge=0, description="Prix en plus petite unité monétaire (paise/centimes)")
    description: str = Field(min_length=10)
    images: List[str] = Field(min_length=1)
    category: Category


class ListingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3)
    brand: Optional[str] = Field(default=None, min_length=2)
    size: Optional[float] = Field(default=None, ge=1, le=20)
    condition: Optional[Condition] = None
    price: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, min_length=10)
    images: Optional[List[str]] = Field(default=None, min_length=1)
    category: Optional[Category] = None


class ListingReview(BaseModel):
    action: ReviewDecision
    rejection_reason: Optional[str] = None


class ListingFilters(BaseModel):
    category: Optional[Category] = None
    brand: Optional[str] = None
    condition: Optional[Condition] = None
    size: Optional[float] = None
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    search: Optional[str] = None
    sort: str = "-created_at"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=100)
