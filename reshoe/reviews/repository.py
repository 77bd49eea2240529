from typing import Any, Dict, List, Optional
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import first_row, rows_of
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)


def list_for_listing(listing_id: str, limit: int = 10) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("reviews")
            .select("*")
            .eq("listing_id", listing_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return rows_of(res)
    except Exception:
        logger.exception("reviews.repository.list_for_listing failed listing_id=%s", listing_id)
        raise StorageError()


def find_review(user_id: str, listing_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("reviews")
            .select("id")
            .eq("user_id", user_id)
            .eq("listing_id", listing_id)
            .limit(1)
            .execute()
        )
        return first_row(res)
    except Exception:
        logger.exception("reviews.repository.find_review failed user_id=%s listing_id=%s", user_id, listing_id)
        raise StorageError()


def insert_review(data: Dict[str, Any]) -> dict:
    try:
        res = supabase_client.get_service_supabase().table("reviews").insert(data).execute()
    except Exception:
        logger.exception("reviews.repository.insert_review failed listing_id=%s", data.get("listing_id"))
        raise StorageError()
    row = first_row(res)
    if not row:
        raise StorageError()
    return row
