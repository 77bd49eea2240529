"""Accès à la table transactions (grand livre des commissions).
Une ligne par commande (order_id unique), jamais supprimée; seul payout_status évolue.
"""
from typing import Any, Dict, List, Tuple
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import fetch_all, first_row, rows_of
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = "id, seller_id, order_id, amount, commission, commission_rate, seller_earnings, payout_status, payout_date, created_at"


def _table():
    return supabase_client.get_service_supabase().table("transactions")


def insert_transaction(data: Dict[str, Any]) -> dict:
    try:
        res = _table().insert(data).execute()
    except Exception:
        logger.exception("transactions.repository.insert_transaction failed order_id=%s", data.get("order_id"))
        raise StorageError()
    row = first_row(res)
    if not row:
        logger.error("transactions.repository.insert_transaction returned no row order_id=%s", data.get("order_id"))
        raise StorageError()
    return row


def list_transactions(filters: Dict[str, Any], offset: int = 0, limit: int = 20) -> Tuple[List[dict], int]:
    try:
        query = _table().select(LEDGER_COLUMNS, count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        rows = rows_of(res)
        total = getattr(res, "count", None)
        return rows, int(total if total is not None else len(rows))
    except Exception:
        logger.exception("transactions.repository.list_transactions failed filters=%s", filters)
        raise StorageError()


def ledger_rows(filters: Dict[str, Any]) -> List[dict]:
    """Toutes les lignes correspondant au filtre (totaux, analytics), lues par pages."""
    def query():
        q = _table().select("id, seller_id, order_id, amount, commission, seller_earnings, payout_status")
        for column, value in filters.items():
            q = q.eq(column, value)
        return q.order("created_at", desc=False).order("id")

    try:
        return fetch_all(query)
    except Exception:
        logger.exception("transactions.repository.ledger_rows failed filters=%s", filters)
        raise StorageError()


def posted_order_ids() -> List[str]:
    try:
        rows = fetch_all(lambda: _table().select("order_id").order("id"))
        return [str(r.get("order_id")) for r in rows]
    except Exception:
        logger.exception("transactions.repository.posted_order_ids failed")
        raise StorageError()
