"""Accès à la table orders.
listing_id est unique en base: une annonce ne peut être référencée que par une seule commande.
"""
from typing import Any, Dict, List, Optional, Tuple
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import fetch_all, first_row, rows_of
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)


def _table():
    return supabase_client.get_service_supabase().table("orders")


def insert_order(data: Dict[str, Any]) -> dict:
    try:
        res = _table().insert(data).execute()
    except Exception:
        logger.exception("orders.repository.insert_order failed listing_id=%s", data.get("listing_id"))
        raise StorageError()
    row = first_row(res)
    if not row:
        logger.error("orders.repository.insert_order returned no row listing_id=%s", data.get("listing_id"))
        raise StorageError()
    return row


def get_order(order_id: str) -> Optional[dict]:
    try:
        res = _table().select("*").eq("id", order_id).limit(1).execute()
        return first_row(res)
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        raise StorageError()


def update_status(order_id: str, status: str) -> Optional[dict]:
    try:
        res = _table().update({"status": status}).eq("id", order_id).execute()
        return first_row(res)
    except Exception:
        logger.exception("orders.repository.update_status failed id=%s status=%s", order_id, status)
        raise StorageError()


def list_orders(filters: Dict[str, Any], offset: int = 0, limit: int = 20) -> Tuple[List[dict], int]:
    try:
        query = _table().select("*", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        rows = rows_of(res)
        total = getattr(res, "count", None)
        return rows, int(total if total is not None else len(rows))
    except Exception:
        logger.exception("orders.repository.list_orders failed filters=%s", filters)
        raise StorageError()


def count_orders(status: Optional[str] = None) -> int:
    try:
        query = _table().select("id", count="exact")
        if status:
            query = query.eq("status", status)
        res = query.execute()
        return int(getattr(res, "count", 0) or 0)
    except Exception:
        logger.exception("orders.repository.count_orders failed status=%s", status)
        raise StorageError()


def recent_orders(limit: int = 10) -> List[dict]:
    try:
        res = _table().select("*").order("created_at", desc=True).limit(limit).execute()
        return rows_of(res)
    except Exception:
        logger.exception("orders.repository.recent_orders failed")
        raise StorageError()


def orders_since(since_iso: str) -> List[dict]:
    try:
        return fetch_all(
            lambda: _table()
            .select("id, amount, created_at")
            .gte("created_at", since_iso)
            .order("created_at", desc=False)
            .order("id")
        )
    except Exception:
        logger.exception("orders.repository.orders_since failed since=%s", since_iso)
        raise StorageError()


def order_refs() -> List[dict]:
    """(id, listing_id, payment_id) de toutes les commandes, pour la réconciliation."""
    try:
        return fetch_all(lambda: _table().select("id, listing_id, payment_id").order("id"))
    except Exception:
        logger.exception("orders.repository.order_refs failed")
        raise StorageError()
