"""Item routes."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services import items as item_service
from stockroom.services.transactions import list_item_transactions

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_items(request: Request, team_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(item_service.list_team_items(db, team_id, user_id))


@router.post("/")
@limiter.limit("30/minute")
def create_item(request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(item_service.create_team_item(db, team_id, user_id, body), status_code=201)


@router.get("/{item_id}")
@limiter.limit("60/minute")
def get_item(request: Request, team_id: int, item_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(item_service.get_team_item(db, team_id, item_id, user_id))


@router.put("/{item_id}")
@limiter.limit("30/minute")
def update_item(
    request: Request, team_id: int, item_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody
):
    return to_response(item_service.update_team_item(db, team_id, item_id, user_id, body))


@router.delete("/{item_id}")
@limiter.limit("30/minute")
def delete_item(request: Request, team_id: int, item_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(item_service.delete_team_item(db, team_id, item_id, user_id))


@router.get("/{item_id}/transactions")
@limiter.limit("60/minute")
def get_item_transactions(
    request: Request, team_id: int, item_id: int, db: DbSession, user_id: RequestUserId
):
    """Movement history of one item, newest first."""
    return to_response(list_item_transactions(db, team_id, item_id, user_id))
