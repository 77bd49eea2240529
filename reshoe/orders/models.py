from enum import Enum
from typing import Any, Dict
from pydantic import BaseModel, Field, field_validator

from reshoe.payments.models import PaymentConfirmation
from reshoe.utils.validators import normalize_phone


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Rang d'avancement attendu; utilisé pour signaler (pas interdire) les retours en arrière
FORWARD_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
}


def is_backward_move(current: OrderStatus, target: OrderStatus) -> bool:
    """Vrai pour un retour en arrière (delivered -> pending...) ou une sortie de cancelled."""
    if current is target:
        return False
    if current is OrderStatus.CANCELLED:
        return True
    if target is OrderStatus.CANCELLED:
        return False
    return FORWARD_RANK[target] < FORWARD_RANK[current]


class ShippingAddress(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: str

    @field_validator("name", "address", "city", "state", "postal_code", "country")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Champ requis")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)


class OrderCreate(BaseModel):
    listing_id: str
    # Validé dans le service (ValidationError 400) avant toute écriture
    shipping_address: Dict[str, Any]
    payment: PaymentConfirmation


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
