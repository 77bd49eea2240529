"""
Règlement d'un achat: paiement confirmé -> annonce vendue + commande + écriture au grand livre.

Étapes d'une tentative:
    INITIATED -> CHARGE_CONFIRMED -> LISTING_RESERVED -> ORDER_RECORDED -> LEDGER_POSTED

- Toutes les vérifications (adresse, annonce, acheteur != vendeur, montant payé) précèdent la première écriture.
- La première écriture réclame le paiement (payment_claims, clé unique): une même preuve ne peut
  réserver qu'une annonce, même sous concurrence.
- La réservation est une mise à jour conditionnelle (status := sold si status = approved):
  de deux règlements concurrents sur la même annonce, un seul obtient une ligne.
- PostgREST n'offre pas de transaction multi-requêtes côté client: commande et transaction
  sont deux écritures successives. Un échec après la réservation lève PartialSettlementError
  (journalisée avec de quoi réconcilier) et n'est pas rejoué; health.service.find_settlement_gaps
  détecte ces lignes orphelines.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from reshoe.errors import (
    ConflictError,
    ForbiddenError,
    PartialSettlementError,
    ValidationError,
)
from reshoe.listings import repository as listings_repository
from reshoe.listings.models import ListingStatus, ensure_transition
from reshoe.listings.service import load_listing
from reshoe.orders import repository as orders_repository
from reshoe.orders.commission import split_amount
from reshoe.orders.models import OrderStatus, ShippingAddress
from reshoe.payments import repository as payments_repository
from reshoe.platform_settings import service as settings_service
from reshoe.transactions import repository as transactions_repository
from reshoe.users import repository as users_repository

logger = logging.getLogger(__name__)


class SettlementStage(str, Enum):
    INITIATED = "INITIATED"
    CHARGE_CONFIRMED = "CHARGE_CONFIRMED"
    LISTING_RESERVED = "LISTING_RESERVED"
    ORDER_RECORDED = "ORDER_RECORDED"
    LEDGER_POSTED = "LEDGER_POSTED"


def validate_shipping_address(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raise ValidationError("Adresse de livraison requise")
    try:
        return ShippingAddress.model_validate(raw).model_dump()
    except PydanticValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ValidationError(f"Adresse de livraison invalide: {fields}")


def settle_purchase(
    buyer_id: str,
    listing_id: str,
    payment_id: str,
    shipping_address: Any,
    paid_amount: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Convertit un paiement confirmé en vente.
    paid_amount: montant facturé par la passerelle; s'il diffère du prix lu, rien n'est écrit.
    Erreurs avant écriture: ValidationError, NotFoundError, ConflictError, ForbiddenError.
    Erreur après réservation: PartialSettlementError.
    Retour: la commande jointe (buyer, seller, listing) et la transaction.
    """
    stage = SettlementStage.CHARGE_CONFIRMED
    logger.info("settlement %s listing_id=%s buyer_id=%s payment_id=%s", stage.value, listing_id, buyer_id, payment_id)

    address = validate_shipping_address(shipping_address)

    listing = load_listing(listing_id)
    if listing.get("status") != ListingStatus.APPROVED.value:
        raise ConflictError("Annonce non disponible (déjà vendue ou non approuvée)")
    seller_id = str(listing.get("seller_id"))
    if seller_id == buyer_id:
        raise ForbiddenError("Impossible d'acheter votre propre annonce")
    ensure_transition(listing["status"], ListingStatus.SOLD)

    rate = settings_service.commission_rate_snapshot()
    # Montant figé à la lecture: une modification ultérieure du prix n'a pas d'effet
    split = split_amount(int(listing["price"]), rate)
    if paid_amount is not None and int(paid_amount) != split["amount"]:
        logger.warning(
            "settlement amount mismatch listing_id=%s price=%s paid=%s", listing_id, split["amount"], paid_amount
        )
        raise ConflictError("Le prix de l'annonce ne correspond pas au paiement")

    if not payments_repository.claim_payment(payment_id, listing_id, buyer_id):
        logger.info("settlement payment already claimed payment_id=%s listing_id=%s", payment_id, listing_id)
        raise ConflictError("Paiement déjà utilisé pour une commande")

    reserved = listings_repository.update_listing_if_status(
        listing_id, ListingStatus.APPROVED.value, {"status": ListingStatus.SOLD.value}
    )
    if not reserved:
        logger.info("settlement lost race listing_id=%s buyer_id=%s", listing_id, buyer_id)
        # Aucune écriture sur l'annonce: la preuve redevient utilisable
        payments_repository.release_payment(payment_id)
        raise ConflictError("Annonce déjà vendue")
    stage = SettlementStage.LISTING_RESERVED
    logger.info("settlement %s listing_id=%s", stage.value, listing_id)

    order = None
    try:
        order = orders_repository.insert_order({
            "buyer_id": buyer_id,
            "seller_id": seller_id,
            "listing_id": listing_id,
            "payment_id": payment_id,
            "amount": split["amount"],
            "status": OrderStatus.PENDING.value,
            "shipping_address": address,
        })
        stage = SettlementStage.ORDER_RECORDED
        logger.info("settlement %s listing_id=%s order_id=%s", stage.value, listing_id, order.get("id"))

        transaction = transactions_repository.insert_transaction({
            "seller_id": seller_id,
            "order_id": order["id"],
            "amount": split["amount"],
            "commission": split["commission"],
            "commission_rate": split["commission_rate"],
            "seller_earnings": split["seller_earnings"],
            "payout_status": "pending",
        })
        stage = SettlementStage.LEDGER_POSTED
    except Exception as exc:
        err = PartialSettlementError(
            stage=stage.value,
            listing_id=listing_id,
            payment_id=payment_id,
            order_id=str(order["id"]) if order else None,
        )
        logger.error("settlement partial failure %s", err.reconciliation_info(), exc_info=True)
        raise err from exc

    logger.info(
        "settlement %s listing_id=%s order_id=%s amount=%s commission=%s",
        stage.value, listing_id, order["id"], split["amount"], split["commission"],
    )
    users = users_repository.get_users_by_ids([buyer_id, seller_id])
    result = dict(order)
    result["buyer"] = users_repository.public_profile(users.get(buyer_id))
    result["seller"] = users_repository.public_profile(users.get(seller_id))
    result["listing"] = reserved
    result["transaction"] = transaction
    return result
