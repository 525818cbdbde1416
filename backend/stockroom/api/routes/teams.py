"""Team routes."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services import teams as team_service

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_teams(request: Request, db: DbSession, user_id: RequestUserId):
    """Teams the caller is an active member of."""
    return to_response(team_service.list_user_teams(db, user_id))


@router.post("/")
@limiter.limit("30/minute")
def create_team(request: Request, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(team_service.create_team_for_user(db, user_id, body), status_code=201)


@router.get("/{team_id}")
@limiter.limit("60/minute")
def get_team(request: Request, team_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(team_service.get_team_for_user(db, team_id, user_id))


@router.put("/{team_id}")
@limiter.limit("30/minute")
def update_team(request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(team_service.update_team_details(db, team_id, user_id, body))


@router.delete("/{team_id}")
@limiter.limit("30/minute")
def delete_team(request: Request, team_id: int, db: DbSession, user_id: RequestUserId):
    """Delete a team; refused while its subscription is live."""
    return to_response(team_service.delete_team_with_authorization(db, team_id, user_id))
