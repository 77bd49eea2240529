"""Couche d’accès aux données (Supabase) pour la table users (profils publics).
Le compte lui-même vit dans Supabase Auth; cette table porte nom, email et rôle pour les jointures.
Les erreurs client sont journalisées puis remontées en StorageError.
"""
from typing import Any, Dict, List, Optional
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import first_row, rows_of
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)


def get_user(user_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("users")
            .select("id, email, name, role")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        return first_row(res)
    except Exception:
        logger.exception("users.repository.get_user failed id=%s", user_id)
        raise StorageError()


def get_users_by_ids(user_ids: List[str]) -> Dict[str, dict]:
    """Retourne {id: user} pour les ids demandés (les ids inconnus sont absents)."""
    ids = sorted({u for u in user_ids if u})
    if not ids:
        return {}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("users")
            .select("id, email, name, role")
            .in_("id", ids)
            .execute()
        )
        return {str(row["id"]): row for row in rows_of(res)}
    except Exception:
        logger.exception("users.repository.get_users_by_ids failed ids=%s", ids)
        raise StorageError()


def list_users(role: Optional[str] = None, offset: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("users")
            .select("id, email, name, role, created_at")
        )
        if role:
            query = query.eq("role", role)
        res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        return rows_of(res)
    except Exception:
        logger.exception("users.repository.list_users failed role=%s", role)
        raise StorageError()


def count_users(role: Optional[str] = None) -> int:
    try:
        query = supabase_client.get_service_supabase().table("users").select("id", count="exact")
        if role:
            query = query.eq("role", role)
        res = query.execute()
        return int(getattr(res, "count", 0) or 0)
    except Exception:
        logger.exception("users.repository.count_users failed role=%s", role)
        raise StorageError()


def upsert_user_profile(user_id: str, email: str, name: Optional[str] = None, role: Optional[str] = None) -> None:
    """Crée ou met à jour le profil (seed, synchronisation depuis Supabase Auth)."""
    payload: Dict[str, Any] = {"id": user_id, "email": email}
    if name:
        payload["name"] = name
    if role:
        payload["role"] = role
    try:
        supabase_client.get_service_supabase().table("users").upsert(payload, on_conflict="id").execute()
    except Exception:
        logger.exception("users.repository.upsert_user_profile failed id=%s", user_id)
        raise StorageError()


def public_profile(user: Optional[dict]) -> Optional[Dict[str, Any]]:
    if not user:
        return None
    return {"id": user.get("id"), "name": user.get("name"), "email": user.get("email")}
