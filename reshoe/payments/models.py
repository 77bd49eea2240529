from enum import Enum
from typing import Optional
from pydantic import BaseModel, model_validator


class Gateway(str, Enum):
    RAZORPAY = "razorpay"
    STRIPE = "stripe"


class ChargeRequest(BaseModel):
    listing_id: str


class RazorpayVerification(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentConfirmation(BaseModel):
    """Preuve de paiement jointe à la création de commande (Razorpay signé ou PaymentIntent Stripe)."""
    gateway: Gateway = Gateway.RAZORPAY
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    payment_intent_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_gateway_fields(self):
        if self.gateway is Gateway.RAZORPAY:
            if not (self.razorpay_order_id and self.razorpay_payment_id and self.razorpay_signature):
                raise ValueError("razorpay_order_id, razorpay_payment_id et razorpay_signature sont requis")
        elif not self.payment_intent_id:
            raise ValueError("payment_intent_id requis pour Stripe")
        return self
