from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from reshoe.transactions import service as transactions_service
from reshoe.transactions.service import PayoutStatus
from reshoe.utils.security import AuthUser, Role, require_roles

router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions API"])


@router.get("")
def api_list_transactions(
    payout_status: Optional[PayoutStatus] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: AuthUser = Depends(require_roles(Role.SELLER, Role.ADMIN)),
):
    return JSONResponse(
        transactions_service.list_transactions(user, payout_status=payout_status, page=page, limit=limit)
    )
