"""
Cas d'usage 'payments': orchestre l'annonce, la passerelle (Razorpay ou Stripe) et la vérification.
- initiate_*: crée la poignée de paiement côté passerelle pour une annonce achetable.
- confirm_*: vérifie la preuve de paiement et son rattachement (annonce, acheteur) relu chez la passerelle.
"""
import logging
from typing import Any, Dict

from reshoe.config import RAZORPAY_CURRENCY, RAZORPAY_KEY_ID, STRIPE_CURRENCY
from reshoe.errors import ForbiddenError, ListingUnavailableError, PaymentVerificationError
from reshoe.listings.models import ListingStatus
from reshoe.listings.service import load_listing
from reshoe.utils.security import AuthUser

from . import razorpay_client
from . import stripe_client
from .models import Gateway, PaymentConfirmation

logger = logging.getLogger(__name__)


def _purchasable_listing(user: AuthUser, listing_id: str) -> Dict[str, Any]:
    listing = load_listing(listing_id)
    if listing.get("status") != ListingStatus.APPROVED.value:
        raise ListingUnavailableError()
    if str(listing.get("seller_id")) == user.id:
        raise ForbiddenError("Impossible d'acheter votre propre annonce")
    return listing


def initiate_charge(user: AuthUser, listing_id: str) -> Dict[str, Any]:
    """Crée un ordre Razorpay au prix de l'annonce et renvoie la poignée pour le checkout client."""
    listing = _purchasable_listing(user, listing_id)
    amount = int(listing["price"])
    order = razorpay_client.create_order(
        amount=amount,
        currency=RAZORPAY_CURRENCY,
        # receipt limité à 40 caractères par Razorpay
        receipt=f"listing_{listing_id.replace('-', '')}",
        notes={"listing_id": listing_id, "user_id": user.id, "title": listing.get("title") or ""},
    )
    logger.info("razorpay order created order_id=%s listing_id=%s user_id=%s", order.get("id"), listing_id, user.id)
    return {
        "order_id": order.get("id"),
        "amount": amount,
        "currency": order.get("currency") or RAZORPAY_CURRENCY,
        "key_id": RAZORPAY_KEY_ID,
        "listing_id": listing_id,
    }


def confirm_charge(order_id: str, payment_id: str, signature: str) -> Dict[str, Any]:
    """
    Vérifie la signature Razorpay; PaymentVerificationError sinon.
    La lecture du paiement qui suit est facultative: son échec n'invalide pas la vérification.
    """
    if not razorpay_client.verify_signature(order_id, payment_id, signature):
        logger.warning("razorpay signature mismatch order_id=%s payment_id=%s", order_id, payment_id)
        raise PaymentVerificationError("Signature de paiement invalide")

    payment = None
    try:
        raw = razorpay_client.fetch_payment(payment_id)
        payment = {k: raw.get(k) for k in ("amount", "currency", "status", "method")}
    except Exception:
        logger.warning("razorpay.fetch_payment ignored payment_id=%s", payment_id, exc_info=True)
    return {"verified": True, "order_id": order_id, "payment_id": payment_id, "payment": payment}


def initiate_stripe_charge(user: AuthUser, listing_id: str) -> Dict[str, Any]:
    listing = _purchasable_listing(user, listing_id)
    amount = int(listing["price"])
    intent = stripe_client.create_payment_intent(
        amount=amount,
        currency=STRIPE_CURRENCY,
        metadata={"listing_id": listing_id, "user_id": user.id},
    )
    logger.info("stripe intent created id=%s listing_id=%s user_id=%s", intent.get("id"), listing_id, user.id)
    return {
        "payment_intent_id": intent.get("id"),
        "client_secret": intent.get("client_secret"),
        "amount": amount,
        "currency": STRIPE_CURRENCY,
        "listing_id": listing_id,
    }


def confirm_stripe_charge(payment_intent_id: str, listing_id: str, buyer_id: str) -> Dict[str, Any]:
    """Le PaymentIntent doit être 'succeeded' et ses metadata doivent désigner cette annonce et cet acheteur."""
    intent = stripe_client.retrieve_payment_intent(payment_intent_id)
    if not intent:
        raise PaymentVerificationError("PaymentIntent introuvable")
    if intent.get("status") != "succeeded":
        raise PaymentVerificationError("Paiement non confirmé")
    meta = intent.get("metadata") or {}
    if meta.get("listing_id") != listing_id or meta.get("user_id") != buyer_id:
        logger.warning(
            "stripe intent metadata mismatch id=%s listing_id=%s buyer_id=%s", payment_intent_id, listing_id, buyer_id
        )
        raise PaymentVerificationError("Paiement non associé à cette annonce")
    return {"verified": True, "payment_id": payment_intent_id, "amount": intent.get("amount")}


def confirm_razorpay_order(order_id: str, listing_id: str, buyer_id: str) -> Dict[str, Any]:
    """
    L'ordre Razorpay doit avoir été créé par initiate_charge pour cette annonce et cet acheteur:
    ses notes (listing_id, user_id) sont relues côté passerelle, pas chez le client.
    """
    order = razorpay_client.fetch_order(order_id)
    notes = order.get("notes") or {}
    if notes.get("listing_id") != listing_id or notes.get("user_id") != buyer_id:
        logger.warning(
            "razorpay order notes mismatch order_id=%s listing_id=%s buyer_id=%s", order_id, listing_id, buyer_id
        )
        raise PaymentVerificationError("Paiement non associé à cette annonce")
    return order


def confirm_payment(confirmation: PaymentConfirmation, listing_id: str, buyer_id: str) -> Dict[str, Any]:
    """
    Vérifie la preuve selon la passerelle.
    Retour: {"payment_id", "amount"}; amount est le montant facturé par la passerelle (unité mineure).
    """
    if confirmation.gateway is Gateway.STRIPE:
        result = confirm_stripe_charge(confirmation.payment_intent_id, listing_id, buyer_id)
        return {"payment_id": result["payment_id"], "amount": result["amount"]}
    result = confirm_charge(
        confirmation.razorpay_order_id,
        confirmation.razorpay_payment_id,
        confirmation.razorpay_signature,
    )
    order = confirm_razorpay_order(confirmation.razorpay_order_id, listing_id, buyer_id)
    return {"payment_id": result["payment_id"], "amount": order.get("amount")}
