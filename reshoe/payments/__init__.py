"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le client Razorpay (REST + signature), le client Stripe (PaymentIntent) et les services.
"""

from .razorpay_client import create_order, fetch_order, fetch_payment, compute_signature, verify_signature
from .stripe_client import require_stripe, create_payment_intent, retrieve_payment_intent
from .service import (
    initiate_charge,
    confirm_charge,
    initiate_stripe_charge,
    confirm_stripe_charge,
    confirm_razorpay_order,
    confirm_payment,
)

__all__ = [
    # razorpay
    "create_order",
    "fetch_order",
    "fetch_payment",
    "compute_signature",
    "verify_signature",
    # stripe
    "require_stripe",
    "create_payment_intent",
    "retrieve_payment_intent",
    # services
    "initiate_charge",
    "confirm_charge",
    "initiate_stripe_charge",
    "confirm_stripe_charge",
    "confirm_razorpay_order",
    "confirm_payment",
]
