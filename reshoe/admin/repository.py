from typing import List
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)

# module reshoe.admin.repository
STAT_TABLES: List[str] = ["users", "listings", "orders", "transactions"]


def count_table_rows(table_name: str) -> int:
    """
    Compte les lignes d'une table via Supabase.
    Utilise count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        client = supabase_client.get_service_supabase()
        res = client.table(table_name).select("id", count="exact").execute()
    except Exception:
        logger.exception("admin.repository.count_table_rows failed table=%s", table_name)
        raise StorageError()
    if getattr(res, "count", None) is not None:
        return int(res.count)
    return len(res.data or [])
