"""
Agrégats en lecture seule pour le tableau de bord admin.

Les comptages sont délégués à PostgREST (count='exact'); sommes, classement des vendeurs
et série journalière sont calculés ici par des fonctions pures sur les lignes lues.
"""
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from reshoe.listings import repository as listings_repository
from reshoe.listings.models import ListingStatus
from reshoe.orders import repository as orders_repository
from reshoe.orders.models import OrderStatus
from reshoe.orders.service import hydrate_orders
from reshoe.transactions import repository as transactions_repository
from reshoe.users import repository as users_repository
from reshoe.utils.security import Role

SERIES_DAYS = 30
TOP_SELLERS = 5
RECENT_ORDERS = 10


def financial_summary(rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    summary = {"total_sales": 0, "total_commission": 0, "total_seller_earnings": 0, "pending_payouts": 0}
    for r in rows:
        summary["total_sales"] += int(r.get("amount") or 0)
        summary["total_commission"] += int(r.get("commission") or 0)
        earnings = int(r.get("seller_earnings") or 0)
        summary["total_seller_earnings"] += earnings
        if r.get("payout_status") == "pending":
            summary["pending_payouts"] += earnings
    return summary


def top_sellers(rows: Iterable[Dict[str, Any]], n: int = TOP_SELLERS) -> List[Dict[str, Any]]:
    """Vendeurs classés par montant brut décroissant; à égalité, l'ordre de lecture est conservé (tri stable)."""
    totals: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for r in rows:
        seller_id = str(r.get("seller_id"))
        entry = totals.setdefault(
            seller_id, {"seller_id": seller_id, "total_sales": 0, "total_earnings": 0, "order_count": 0}
        )
        entry["total_sales"] += int(r.get("amount") or 0)
        entry["total_earnings"] += int(r.get("seller_earnings") or 0)
        entry["order_count"] += 1
    ranked = sorted(totals.values(), key=lambda e: e["total_sales"], reverse=True)
    return ranked[:n]


def series_start(now: datetime, days: int = SERIES_DAYS) -> datetime:
    """Minuit UTC du premier jour de la fenêtre (aujourd'hui inclus)."""
    today = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return today - timedelta(days=days - 1)


def daily_order_series(orders: Iterable[Dict[str, Any]], now: datetime, days: int = SERIES_DAYS) -> Dict[str, Dict[str, int]]:
    """
    {YYYY-MM-DD: {order_count, total_sales}} pour chaque jour de la fenêtre glissante,
    jours sans commande inclus (à zéro). Les commandes hors fenêtre sont ignorées.
    """
    start = series_start(now, days)
    series: "OrderedDict[str, Dict[str, int]]" = OrderedDict()
    for i in range(days):
        key = (start + timedelta(days=i)).strftime("%Y-%m-%d")
        series[key] = {"order_count": 0, "total_sales": 0}
    for o in orders:
        created = o.get("created_at")
        if not created:
            continue
        key = _day_key(created)
        if key in series:
            series[key]["order_count"] += 1
            series[key]["total_sales"] += int(o.get("amount") or 0)
    return series


def _day_key(created: Any) -> Optional[str]:
    if isinstance(created, datetime):
        return created.astimezone(timezone.utc).strftime("%Y-%m-%d")
    text = str(created).replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d")


def dashboard(now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)

    users_by_role = {role.value: users_repository.count_users(role.value) for role in Role}
    listings_by_status = {s.value: listings_repository.count_listings(s.value) for s in ListingStatus}
    orders_by_status = {s.value: orders_repository.count_orders(s.value) for s in OrderStatus}

    ledger = transactions_repository.ledger_rows({})
    sellers = top_sellers(ledger)
    profiles = users_repository.get_users_by_ids([s["seller_id"] for s in sellers])
    for s in sellers:
        s["seller"] = users_repository.public_profile(profiles.get(s["seller_id"]))

    window = orders_repository.orders_since(series_start(now).isoformat())
    return {
        "users": {"total": sum(users_by_role.values()), "by_role": users_by_role},
        "listings": {"total": sum(listings_by_status.values()), "by_status": listings_by_status},
        "orders": {"total": sum(orders_by_status.values()), "by_status": orders_by_status},
        "revenue": financial_summary(ledger),
        "top_sellers": sellers,
        "recent_orders": hydrate_orders(orders_repository.recent_orders(RECENT_ORDERS)),
        "daily_orders": daily_order_series(window, now),
    }
