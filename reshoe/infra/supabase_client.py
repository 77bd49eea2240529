from typing import Any, Callable, List, Optional
from supabase import create_client, Client
from reshoe.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def get_supabase() -> Client:
    """Client 'anon' partagé (Supabase Auth, lectures publiques)."""
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase

def get_service_supabase() -> Client:
    """Client service-role (bypass RLS): lectures/écritures serveur des repositories."""
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase

def rows_of(res: Any) -> List[dict]:
    """Normalise res.data en liste de lignes (PostgREST renvoie list ou dict selon la requête)."""
    data = getattr(res, "data", None)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []

def first_row(res: Any) -> Optional[dict]:
    rows = rows_of(res)
    return rows[0] if rows else None

# Plafond db-max-rows de PostgREST (1000 par défaut sur Supabase)
PAGE_SIZE = 1000

def fetch_all(build_query: Callable[[], Any], page_size: int = PAGE_SIZE) -> List[dict]:
    """
    Lit toutes les lignes d'une requête page par page (.range), jusqu'à une page vide.
    build_query doit renvoyer une requête neuve triée sur une clé stable.
    Une page plus courte que demandé ne suffit pas à conclure: le serveur peut plafonner plus bas.
    """
    rows: List[dict] = []
    start = 0
    while True:
        page = rows_of(build_query().range(start, start + page_size - 1).execute())
        if not page:
            return rows
        rows.extend(page)
        start += len(page)
