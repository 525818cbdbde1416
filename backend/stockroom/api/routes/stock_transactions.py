"""Stock movement routes."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.config import settings
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services.stock_transactions import create_team_stock_transaction

router = APIRouter()


@router.post("/")
@limiter.limit("120/minute")
def create_stock_transaction(
    request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody
):
    """Record a stock_in, stock_out, adjust, move or count."""
    result = create_team_stock_transaction(
        db,
        team_id,
        user_id,
        body,
        enforce_subscription=settings.billing_enforce_subscription,
    )
    return to_response(result, status_code=201)
