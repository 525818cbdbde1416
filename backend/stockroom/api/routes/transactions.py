"""Transaction history routes."""

from typing import Optional

from fastapi import APIRouter, Request

from stockroom.api.deps import RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services import transactions as transaction_service

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_transactions(
    request: Request,
    team_id: int,
    db: DbSession,
    user_id: RequestUserId,
    q: Optional[str] = None,
):
    """Team transactions, newest first; ``q`` filters by item, user or location."""
    return to_response(transaction_service.list_team_transactions(db, team_id, user_id, q))


@router.delete("/{transaction_id}")
@limiter.limit("30/minute")
def delete_transaction(
    request: Request, team_id: int, transaction_id: int, db: DbSession, user_id: RequestUserId
):
    return to_response(
        transaction_service.delete_team_transaction(db, team_id, transaction_id, user_id)
    )
