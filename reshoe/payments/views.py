"""
Endpoints de paiement.
- POST /razorpay/order: crée l'ordre Razorpay pour une annonce (authentifié, rate-limité).
- POST /razorpay/verify: vérifie la signature renvoyée par le checkout Razorpay.
- POST /stripe/intent: crée un PaymentIntent Stripe (alternative carte).
La commande elle-même est créée par POST /api/v1/orders avec la preuve de paiement.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from reshoe.payments import service as payments_service
from reshoe.payments.models import ChargeRequest, RazorpayVerification
from reshoe.utils.rate_limit import optional_rate_limit
from reshoe.utils.security import AuthUser, require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module reshoe.payments.views
@router.post("/razorpay/order", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_razorpay_order(payload: ChargeRequest, user: AuthUser = Depends(require_user)):
    return JSONResponse(payments_service.initiate_charge(user, payload.listing_id))


@router.post("/razorpay/verify")
def verify_razorpay_payment(payload: RazorpayVerification, user: AuthUser = Depends(require_user)):
    result = payments_service.confirm_charge(
        payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
    )
    return JSONResponse(result)


@router.post("/stripe/intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_stripe_intent(payload: ChargeRequest, user: AuthUser = Depends(require_user)):
    return JSONResponse(payments_service.initiate_stripe_charge(user, payload.listing_id))
