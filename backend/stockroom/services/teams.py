"""Team service."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import (
    Permission,
    authorize,
    authorize_global,
    authorize_team_access,
)
from stockroom.db.session import atomic
from stockroom.models.team import TeamRole
from stockroom.schemas.common import parse_payload
from stockroom.schemas.team import TeamCreate, TeamUpdate
from stockroom.services.mappers import DELETE_BLOCKING_STATUSES, to_team_dto
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    auth_service_error,
    conflict_service_error,
    make_service_error,
    not_found_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store import members as member_store
from stockroom.store import teams as team_store
from stockroom.store.companies import get_active_company_membership
from stockroom.store.locations import DEFAULT_LOCATION_NAME, create_location
from stockroom.store.users import get_user

logger = logging.getLogger(__name__)


@service_boundary("An error occurred while creating team")
def create_team_for_user(db: Session, request_user_id: Optional[int], payload: Any) -> ServiceResult:
    """Create a team in the caller's company with a default location.

    The team, its default location and the creator's admin membership are
    written in one unit of work.
    """
    parsed = parse_payload(TeamCreate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))

    auth = authorize_global(db, Permission.TEAM_CREATE, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    company_membership = get_active_company_membership(db, auth.user.id)
    if company_membership is None:
        return Err(
            make_service_error(403, ErrorCode.FORBIDDEN, "User is not an active member of any company")
        )

    with atomic(db):
        team = team_store.create_team(
            db,
            name=parsed.data.name,
            notes=parsed.data.notes,
            user_id=auth.user.id,
            company_id=company_membership.company_id,
        )
        create_location(db, team.id, DEFAULT_LOCATION_NAME)
        member_store.upsert_team_member(db, team.id, auth.user.id, TeamRole.ADMIN)

    logger.info(f"Team {team.id} created by user {auth.user.id}")
    stats = team_store.get_team_stats(db, [team.id])[team.id]
    return Ok({"team": to_team_dto(team, stats, TeamRole.ADMIN)})


@service_boundary("An error occurred while listing teams")
def list_user_teams(db: Session, request_user_id: Optional[int]) -> ServiceResult:
    if request_user_id is None or get_user(db, request_user_id) is None:
        return Err(make_service_error(401, ErrorCode.USER_NOT_AUTHENTICATED))

    teams = team_store.list_teams_for_user(db, request_user_id)
    stats = team_store.get_team_stats(db, [team.id for team in teams])
    result = []
    for team in teams:
        membership = member_store.get_active_membership(db, team.id, request_user_id)
        result.append(to_team_dto(team, stats[team.id], membership.role if membership else None))
    return Ok({"teams": result})


@service_boundary("An error occurred while loading team")
def get_team_for_user(db: Session, team_id: int, request_user_id: Optional[int]) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    stats = team_store.get_team_stats(db, [team_id])[team_id]
    return Ok({"team": to_team_dto(auth.team, stats, auth.team_role)})


@service_boundary("An error occurred while updating team")
def update_team_details(
    db: Session, team_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    """Update team fields and, optionally, the owning company's name.

    Both rows change together or not at all.
    """
    parsed = parse_payload(TeamUpdate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))

    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    fields = parsed.data.model_dump(exclude_unset=True)
    company_name = fields.pop("company_name", None)

    try:
        with atomic(db):
            team = team_store.update_team_and_company_label(db, team_id, fields, company_name)
    except LookupError:
        return Err(not_found_service_error(ErrorCode.TEAM_NOT_FOUND))

    stats = team_store.get_team_stats(db, [team_id])[team_id]
    return Ok({"team": to_team_dto(team, stats, auth.team_role)})


@service_boundary("An error occurred while deleting team")
def delete_team_with_authorization(
    db: Session, team_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    """Delete a team and everything it owns, unless billing is still running."""
    auth = authorize(db, Permission.TEAM_DELETE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    status = auth.team.stripe_subscription_status or ""
    if status in DELETE_BLOCKING_STATUSES:
        logger.info(f"Delete of team {team_id} blocked by subscription status {status}")
        return Err(
            conflict_service_error(
                "Cancel the team subscription before deleting the team"
            )
        )

    with atomic(db):
        team_store.delete_team_cascade(db, team_id)

    logger.info(f"Team {team_id} deleted by user {auth.user.id}")
    return Ok(None)
