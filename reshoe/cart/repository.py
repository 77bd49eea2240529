"""Accès à la table carts (un panier par utilisateur, items en jsonb).
Le panier est créé au premier accès par un upsert sur user_id (contrainte unique):
deux premiers accès concurrents ne créent jamais deux paniers.
Les items sont réécrits par mise à jour conditionnelle sur version (concurrence optimiste).
"""
from typing import Any, Dict, List, Optional
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import first_row
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)


def ensure_cart(user_id: str) -> dict:
    client = supabase_client.get_service_supabase()
    try:
        client.table("carts").upsert(
            {"user_id": user_id, "items": []},
            on_conflict="user_id",
            ignore_duplicates=True,
        ).execute()
        res = client.table("carts").select("*").eq("user_id", user_id).limit(1).execute()
    except Exception:
        logger.exception("cart.repository.ensure_cart failed user_id=%s", user_id)
        raise StorageError()
    cart = first_row(res)
    if not cart:
        logger.error("cart.repository.ensure_cart no row after upsert user_id=%s", user_id)
        raise StorageError()
    return cart


def save_items(user_id: str, items: List[Dict[str, Any]], expected_version: int) -> Optional[dict]:
    """
    Écrit les items si le panier est encore à expected_version (et l'incrémente).
    None: une autre écriture est passée entre la lecture et celle-ci.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .update({"items": items, "version": expected_version + 1})
            .eq("user_id", user_id)
            .eq("version", expected_version)
            .execute()
        )
    except Exception:
        logger.exception("cart.repository.save_items failed user_id=%s", user_id)
        raise StorageError()
    return first_row(res)
