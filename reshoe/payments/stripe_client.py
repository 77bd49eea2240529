"""
Adaptateur Stripe: centralise les appels et la configuration Stripe (PaymentIntent).
"""
import logging
from typing import Any, Dict

import stripe

from reshoe.errors import GatewayError

logger = logging.getLogger(__name__)

# module reshoe.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    from reshoe.config import STRIPE_SECRET_KEY
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def create_payment_intent(*, amount: int, currency: str, metadata: Dict[str, str]) -> Dict[str, Any]:
    """
    Crée un PaymentIntent.
    - amount: unité monétaire mineure (centimes)
    - metadata: {"listing_id": "...", "user_id": "..."} relu à la confirmation
    Retour: dict intent (id, client_secret, status, metadata...)
    """
    require_stripe()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError:
        logger.exception("stripe.create_payment_intent failed metadata=%s", metadata)
        raise GatewayError()
    return dict(intent)

def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    """Récupère un PaymentIntent par identifiant (status, amount, metadata)."""
    require_stripe()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.InvalidRequestError:
        # Identifiant inconnu côté Stripe
        return {}
    except stripe.StripeError:
        logger.exception("stripe.retrieve_payment_intent failed id=%s", payment_intent_id)
        raise GatewayError()
    return dict(intent)
