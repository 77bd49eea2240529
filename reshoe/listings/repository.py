from typing import Any, Dict, List, Optional, Tuple
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import fetch_all, first_row, rows_of
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)

TABLE = "listings"


def _table():
    return supabase_client.get_service_supabase().table(TABLE)


def get_listing(listing_id: str) -> Optional[dict]:
    try:
        res = _table().select("*").eq("id", listing_id).limit(1).execute()
        return first_row(res)
    except Exception:
        logger.exception("listings.repository.get_listing failed id=%s", listing_id)
        raise StorageError()


def get_listings_by_ids(listing_ids: List[str]) -> List[dict]:
    if not listing_ids:
        return []
    try:
        res = _table().select("*").in_("id", list(listing_ids)).execute()
        return rows_of(res)
    except Exception:
        logger.exception("listings.repository.get_listings_by_ids failed ids=%s", listing_ids)
        raise StorageError()


def insert_listing(data: Dict[str, Any]) -> dict:
    try:
        res = _table().insert(data).execute()
    except Exception:
        logger.exception("listings.repository.insert_listing failed seller_id=%s", data.get("seller_id"))
        raise StorageError()
    row = first_row(res)
    if not row:
        logger.error("listings.repository.insert_listing returned no row seller_id=%s", data.get("seller_id"))
        raise StorageError()
    return row


def update_listing_if_status(listing_id: str, expected_status: str, data: Dict[str, Any]) -> Optional[dict]:
    """Mise à jour conditionnelle: ne s'applique que si le statut courant vaut expected_status.
    Retourne la ligne modifiée, ou None si aucune ligne ne correspondait (état concurrent).
    """
    try:
        res = (
            _table()
            .update(data)
            .eq("id", listing_id)
            .eq("status", expected_status)
            .execute()
        )
        return first_row(res)
    except Exception:
        logger.exception(
            "listings.repository.update_listing_if_status failed id=%s expected=%s", listing_id, expected_status
        )
        raise StorageError()


def update_listing_fields(listing_id: str, data: Dict[str, Any]) -> Optional[dict]:
    """Modification de champs; une annonce vendue n'est jamais modifiée (None dans ce cas)."""
    try:
        res = (
            _table()
            .update(data)
            .eq("id", listing_id)
            .neq("status", "sold")
            .execute()
        )
        return first_row(res)
    except Exception:
        logger.exception("listings.repository.update_listing_fields failed id=%s", listing_id)
        raise StorageError()


def set_views(listing_id: str, views: int) -> None:
    try:
        _table().update({"views": views}).eq("id", listing_id).execute()
    except Exception:
        logger.exception("listings.repository.set_views failed id=%s", listing_id)
        raise StorageError()


def delete_listing_if_not_sold(listing_id: str) -> bool:
    try:
        res = _table().delete().eq("id", listing_id).neq("status", "sold").execute()
        return bool(rows_of(res))
    except Exception:
        logger.exception("listings.repository.delete_listing_if_not_sold failed id=%s", listing_id)
        raise StorageError()


def search_listings(
    filters: Dict[str, Any],
    *,
    search: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    order_by: str = "created_at",
    desc: bool = True,
    offset: int = 0,
    limit: int = 12,
) -> Tuple[List[dict], int]:
    """Recherche paginée. filters: égalités strictes (status, category, brand...).
    Retourne (lignes, total correspondant au filtre).
    """
    try:
        query = _table().select("*", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        if min_price is not None:
            query = query.gte("price", min_price)
        if max_price is not None:
            query = query.lte("price", max_price)
        if search:
            pattern = f"%{search}%"
            query = query.or_(f"title.ilike.{pattern},brand.ilike.{pattern},description.ilike.{pattern}")
        res = (
            query
            .order(order_by, desc=desc)
            .range(offset, offset + limit - 1)
            .execute()
        )
        total = getattr(res, "count", None)
        rows = rows_of(res)
        return rows, int(total if total is not None else len(rows))
    except Exception:
        logger.exception("listings.repository.search_listings failed filters=%s search=%s", filters, search)
        raise StorageError()


def list_by_seller(seller_id: str) -> List[dict]:
    try:
        return fetch_all(
            lambda: _table()
            .select("*")
            .eq("seller_id", seller_id)
            .order("created_at", desc=True)
            .order("id")
        )
    except Exception:
        logger.exception("listings.repository.list_by_seller failed seller_id=%s", seller_id)
        raise StorageError()


def count_listings(status: Optional[str] = None) -> int:
    try:
        query = _table().select("id", count="exact")
        if status:
            query = query.eq("status", status)
        res = query.execute()
        return int(getattr(res, "count", 0) or 0)
    except Exception:
        logger.exception("listings.repository.count_listings failed status=%s", status)
        raise StorageError()


def list_sold_listings() -> List[dict]:
    try:
        return fetch_all(lambda: _table().select("id,seller_id,updated_at").eq("status", "sold").order("id"))
    except Exception:
        logger.exception("listings.repository.list_sold_listings failed")
        raise StorageError()
