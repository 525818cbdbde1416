"""Routes acting on the calling user."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services.users import change_own_password

router = APIRouter()


@router.put("/password")
@limiter.limit("10/minute")
def change_password(request: Request, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(change_own_password(db, user_id, body))
