"""Location routes."""

from fastapi import APIRouter, Request

from stockroom.api.deps import JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services import locations as location_service

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_locations(request: Request, team_id: int, db: DbSession, user_id: RequestUserId):
    return to_response(location_service.list_team_locations(db, team_id, user_id))


@router.post("/")
@limiter.limit("30/minute")
def create_location(
    request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody
):
    return to_response(
        location_service.create_team_location(db, team_id, user_id, body), status_code=201
    )


@router.get("/{location_id}")
@limiter.limit("60/minute")
def get_location(
    request: Request, team_id: int, location_id: int, db: DbSession, user_id: RequestUserId
):
    return to_response(location_service.get_team_location(db, team_id, location_id, user_id))


@router.put("/{location_id}")
@limiter.limit("30/minute")
def update_location(
    request: Request,
    team_id: int,
    location_id: int,
    db: DbSession,
    user_id: RequestUserId,
    body: JsonBody,
):
    return to_response(
        location_service.update_team_location(db, team_id, location_id, user_id, body)
    )


@router.delete("/{location_id}")
@limiter.limit("30/minute")
def delete_location(
    request: Request, team_id: int, location_id: int, db: DbSession, user_id: RequestUserId
):
    return to_response(location_service.delete_team_location(db, team_id, location_id, user_id))
