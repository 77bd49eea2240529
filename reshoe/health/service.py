"""
Diagnostics: connectivité Supabase et réconciliation du règlement.

find_settlement_gaps signale les violations d'invariant laissées par un règlement partiel:
- annonce 'sold' sans commande
- commande sans transaction
- paiement réclamé sans commande (interruption entre la réclamation et la réservation)
"""
import logging
import socket
from typing import Any, Dict
from urllib.parse import urlparse

import reshoe.infra.supabase_client as supabase_client
from reshoe.config import SUPABASE_URL
from reshoe.listings import repository as listings_repository
from reshoe.orders import repository as orders_repository
from reshoe.payments import repository as payments_repository
from reshoe.transactions import repository as transactions_repository

logger = logging.getLogger(__name__)

CHECKED_TABLES = ["users", "listings", "carts", "orders", "transactions", "payment_claims", "settings", "reviews"]


def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("*").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}


def health_supabase_info() -> Dict[str, Any]:
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "supabase_url": SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in CHECKED_TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info


def find_settlement_gaps() -> Dict[str, Any]:
    sold = listings_repository.list_sold_listings()
    orders = orders_repository.order_refs()
    posted = set(transactions_repository.posted_order_ids())
    claims = payments_repository.claim_refs()

    ordered_listings = {str(o.get("listing_id")) for o in orders}
    ordered_payments = {str(o.get("payment_id")) for o in orders}
    sold_without_order = [
        {"listing_id": str(l.get("id")), "seller_id": l.get("seller_id"), "updated_at": l.get("updated_at")}
        for l in sold
        if str(l.get("id")) not in ordered_listings
    ]
    orders_without_transaction = [
        {"order_id": str(o.get("id")), "listing_id": o.get("listing_id"), "payment_id": o.get("payment_id")}
        for o in orders
        if str(o.get("id")) not in posted
    ]
    claims_without_order = [
        {"payment_id": c.get("payment_id"), "listing_id": c.get("listing_id"), "created_at": c.get("created_at")}
        for c in claims
        if str(c.get("payment_id")) not in ordered_payments
    ]
    ok = not sold_without_order and not orders_without_transaction and not claims_without_order
    if not ok:
        logger.warning(
            "settlement gaps sold_without_order=%s orders_without_transaction=%s claims_without_order=%s",
            len(sold_without_order), len(orders_without_transaction), len(claims_without_order),
        )
    return {
        "ok": ok,
        "sold_without_order": sold_without_order,
        "orders_without_transaction": orders_without_transaction,
        "claims_without_order": claims_without_order,
    }
