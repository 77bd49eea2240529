"""
Partage commission / gains vendeur.

Les montants sont des entiers en unité monétaire mineure. La commission est arrondie
au plus proche (demi vers le haut) et les gains vendeur sont le complément:
commission + seller_earnings == amount pour tout montant.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union


def compute_commission(amount: int, rate: Union[int, float, str, Decimal]) -> int:
    if amount < 0:
        raise ValueError("amount doit être positif")
    rate_dec = Decimal(str(rate))
    if rate_dec < 0 or rate_dec > 100:
        raise ValueError("rate doit être compris entre 0 et 100")
    raw = Decimal(int(amount)) * rate_dec / Decimal(100)
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_amount(amount: int, rate: Union[int, float, str, Decimal]) -> Dict[str, Union[int, float]]:
    """7499 à 10% -> commission 750, seller_earnings 6749."""
    commission = compute_commission(amount, rate)
    return {
        "amount": int(amount),
        "commission": commission,
        "commission_rate": float(rate),
        "seller_earnings": int(amount) - commission,
    }
