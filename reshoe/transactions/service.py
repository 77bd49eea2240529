from typing import Any, Dict, List, Optional
from enum import Enum

from reshoe.errors import ForbiddenError
from reshoe.transactions import repository
from reshoe.utils.pagination import page_window, paginated
from reshoe.utils.security import AuthUser, Role


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def ledger_totals(rows: List[dict]) -> Dict[str, int]:
    return {
        "amount": sum(int(r.get("amount") or 0) for r in rows),
        "commission": sum(int(r.get("commission") or 0) for r in rows),
        "seller_earnings": sum(int(r.get("seller_earnings") or 0) for r in rows),
    }


def list_transactions(
    user: AuthUser,
    payout_status: Optional[PayoutStatus] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    """Vendeur: ses lignes; admin: toutes. Les totaux portent sur tout le filtre, pas seulement la page."""
    if user.role is Role.CUSTOMER:
        raise ForbiddenError("Réservé aux vendeurs et administrateurs")
    filters: Dict[str, Any] = {}
    if user.role is Role.SELLER:
        filters["seller_id"] = user.id
    if payout_status:
        filters["payout_status"] = payout_status.value
    offset, limit = page_window(page, limit)
    rows, total = repository.list_transactions(filters, offset=offset, limit=limit)
    result = paginated(rows, total, page, limit)
    result["totals"] = ledger_totals(repository.ledger_rows(filters))
    return result
