"""
Logique panier pure (pas de passerelle, pas de DB).
Un panier est une liste ordonnée d'entrées {listing_id, added_at}; une annonce y figure au plus une fois.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# module reshoe.cart.items
def contains(items: List[Dict[str, Any]], listing_id: str) -> bool:
    return any(str(it.get("listing_id")) == listing_id for it in items or [])

def append_item(items: List[Dict[str, Any]], listing_id: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Retourne une nouvelle liste avec l'entrée ajoutée en fin (ordre d'insertion conservé)."""
    added_at = (now or datetime.now(timezone.utc)).isoformat()
    return list(items or []) + [{"listing_id": listing_id, "added_at": added_at}]

def without_item(items: List[Dict[str, Any]], listing_id: str) -> List[Dict[str, Any]]:
    return [it for it in items or [] if str(it.get("listing_id")) != listing_id]

def resolve_entries(items: List[Dict[str, Any]], listings_by_id: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Joint chaque entrée à son annonce.
    - Les entrées dont l'annonce n'existe plus sont ignorées (filtrage en lecture seule).
    - L'ordre d'insertion est conservé.
    """
    resolved: List[Dict[str, Any]] = []
    for it in items or []:
        listing = listings_by_id.get(str(it.get("listing_id")))
        if not listing:
            continue
        resolved.append({
            "listing_id": str(it.get("listing_id")),
            "added_at": it.get("added_at"),
            "listing": listing,
        })
    return resolved

def total_price(entries: List[Dict[str, Any]]) -> int:
    """Somme des prix (unité monétaire mineure) des annonces encore achetables."""
    return sum(
        int(e["listing"].get("price") or 0)
        for e in entries
        if e["listing"].get("status") == "approved"
    )
