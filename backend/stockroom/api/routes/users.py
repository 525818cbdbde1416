"""Team member management routes."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services import users as user_service

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_team_users(request: Request, team_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(user_service.get_team_users_for_management(db, team_id, user_id))


@router.post("/")
@limiter.limit("30/minute")
def add_team_user(request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(
        user_service.create_or_attach_team_member(db, team_id, user_id, body), status_code=201
    )


@router.put("/{target_user_id}")
@limiter.limit("30/minute")
def update_team_user(
    request: Request,
    team_id: int,
    target_user_id: int,
    db: DbSession,
    user_id: RequestUserId,
    body: JsonBody,
):
    return to_response(
        user_service.update_managed_team_member(db, team_id, target_user_id, user_id, body)
    )


@router.delete("/{target_user_id}")
@limiter.limit("30/minute")
def remove_team_user(
    request: Request, team_id: int, target_user_id: int, db: DbSession, user_id: RequestUserId
):
    return to_response(user_service.remove_managed_team_member(db, team_id, target_user_id, user_id))
