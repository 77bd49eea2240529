from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from reshoe.reviews import service as reviews_service
from reshoe.reviews.service import ReviewCreate
from reshoe.utils.security import AuthUser, require_user

router = APIRouter(prefix="/api/v1/reviews", tags=["Reviews API"])


@router.post("")
def api_create_review(payload: ReviewCreate, user: AuthUser = Depends(require_user)):
    return JSONResponse({"item": reviews_service.create_review(user, payload)}, status_code=201)
