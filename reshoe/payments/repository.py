"""Accès à la table payment_claims.
payment_id est la clé primaire: une preuve de paiement n'est réclamée qu'une fois, même par deux
règlements concurrents. La réclamation précède toute écriture sur l'annonce.
"""
from typing import List
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import fetch_all
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)

# Code SQLSTATE renvoyé par PostgREST sur violation de contrainte unique
UNIQUE_VIOLATION = "23505"


def _table():
    return supabase_client.get_service_supabase().table("payment_claims")


def claim_payment(payment_id: str, listing_id: str, buyer_id: str) -> bool:
    """Vrai si la réclamation est enregistrée, faux si ce paiement est déjà réclamé."""
    try:
        _table().insert({"payment_id": payment_id, "listing_id": listing_id, "buyer_id": buyer_id}).execute()
    except Exception as exc:
        if getattr(exc, "code", None) == UNIQUE_VIOLATION:
            return False
        logger.exception("payments.repository.claim_payment failed payment_id=%s", payment_id)
        raise StorageError()
    return True


def release_payment(payment_id: str) -> None:
    try:
        _table().delete().eq("payment_id", payment_id).execute()
    except Exception:
        logger.exception("payments.repository.release_payment failed payment_id=%s", payment_id)
        raise StorageError()


def claim_refs() -> List[dict]:
    try:
        return fetch_all(lambda: _table().select("payment_id, listing_id, created_at").order("payment_id"))
    except Exception:
        logger.exception("payments.repository.claim_refs failed")
        raise StorageError()
