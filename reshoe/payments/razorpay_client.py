"""
Adaptateur Razorpay: Orders API en REST (httpx, authentification basique key_id/key_secret)
et vérification de la signature de paiement renvoyée par le checkout.

Schéma de signature: HMAC-SHA256(key_secret, "<order_id>|<payment_id>") encodé en hexadécimal.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import httpx

from reshoe.config import (
    GATEWAY_TIMEOUT_SECONDS,
    RAZORPAY_API_BASE,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
)
from reshoe.errors import GatewayError

logger = logging.getLogger(__name__)

# module reshoe.payments.razorpay_client
def _auth() -> tuple:
    if not RAZORPAY_KEY_ID or not RAZORPAY_KEY_SECRET:
        raise GatewayError("Razorpay non configuré (RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET)")
    return (RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)

def create_order(*, amount: int, currency: str, receipt: str, notes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Crée un ordre Razorpay (POST /orders).
    - amount: unité monétaire mineure (paise)
    - receipt: référence interne (<= 40 caractères)
    Retour: dict ordre (id, amount, currency, status...)
    """
    url = f"{RAZORPAY_API_BASE.rstrip('/')}/orders"
    payload = {"amount": amount, "currency": currency, "receipt": receipt[:40], "notes": notes}
    try:
        resp = httpx.post(url, json=payload, auth=_auth(), timeout=GATEWAY_TIMEOUT_SECONDS)
    except httpx.HTTPError:
        logger.exception("razorpay.create_order transport failed receipt=%s", receipt)
        raise GatewayError()
    if not (200 <= resp.status_code < 300):
        logger.error("razorpay.create_order failed: status=%s body=%s", resp.status_code, resp.text)
        raise GatewayError()
    return resp.json()

def fetch_order(order_id: str) -> Dict[str, Any]:
    """Lit un ordre (GET /orders/{id}): amount, currency, notes (listing_id, user_id)."""
    url = f"{RAZORPAY_API_BASE.rstrip('/')}/orders/{order_id}"
    try:
        resp = httpx.get(url, auth=_auth(), timeout=GATEWAY_TIMEOUT_SECONDS)
    except httpx.HTTPError:
        logger.exception("razorpay.fetch_order transport failed id=%s", order_id)
        raise GatewayError()
    if not (200 <= resp.status_code < 300):
        logger.error("razorpay.fetch_order failed: status=%s body=%s", resp.status_code, resp.text)
        raise GatewayError()
    return resp.json()

def fetch_payment(payment_id: str) -> Dict[str, Any]:
    """Lit un paiement (GET /payments/{id}): amount, currency, status, method."""
    url = f"{RAZORPAY_API_BASE.rstrip('/')}/payments/{payment_id}"
    try:
        resp = httpx.get(url, auth=_auth(), timeout=GATEWAY_TIMEOUT_SECONDS)
    except httpx.HTTPError:
        logger.exception("razorpay.fetch_payment transport failed id=%s", payment_id)
        raise GatewayError()
    if not (200 <= resp.status_code < 300):
        logger.error("razorpay.fetch_payment failed: status=%s body=%s", resp.status_code, resp.text)
        raise GatewayError()
    return resp.json()

def compute_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    key = (secret if secret is not None else RAZORPAY_KEY_SECRET).encode("utf-8")
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()

def verify_signature(order_id: Any, payment_id: Any, signature: Any, secret: Optional[str] = None) -> bool:
    """
    Vrai si signature == HMAC attendu. Toute entrée mal formée (vide, non-str, non-ASCII) renvoie False.
    Comparaison en temps constant.
    """
    if not all(isinstance(v, str) and v for v in (order_id, payment_id, signature)):
        return False
    if not signature.isascii():
        return False
    key = secret if secret is not None else RAZORPAY_KEY_SECRET
    if not key:
        logger.error("razorpay.verify_signature: RAZORPAY_KEY_SECRET manquant")
        return False
    expected = compute_signature(order_id, payment_id, key)
    return hmac.compare_digest(expected, signature)
