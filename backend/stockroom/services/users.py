"""Team member management and the caller's own password.

Demoting or removing an admin, including a re-attach with a lower role,
goes through ``_guard_last_admin``: the team
row is locked, active admins are counted, and the membership write happens
in the same unit of work, so concurrent demotions cannot both pass the
count and leave the team without an admin.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize
from stockroom.core.security import get_password_hash, verify_password
from stockroom.db.session import atomic
from stockroom.models.team import TeamMember, TeamRole
from stockroom.models.user import UserRole
from stockroom.schemas.auth import MIN_PASSWORD_LENGTH, PasswordChangeRequest
from stockroom.schemas.common import parse_payload
from stockroom.schemas.user import TeamMemberCreate, TeamMemberUpdate
from stockroom.services.mappers import to_available_user_dto, to_managed_user_dto
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    auth_service_error,
    make_service_error,
    not_found_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store import companies as company_store
from stockroom.store import members as member_store
from stockroom.store import users as user_store
from stockroom.store.teams import get_team

logger = logging.getLogger(__name__)


class LastAdminError(Exception):
    """Raised inside a unit of work to abort a write that would orphan a team."""


def _guard_last_admin(db: Session, team_id: int, membership: TeamMember) -> None:
    """Call with the unit of work open, before changing ``membership``."""
    member_store.lock_team(db, team_id)
    db.refresh(membership)
    if membership.role != TeamRole.ADMIN:
        return
    if member_store.count_active_team_admins(db, team_id) <= 1:
        raise LastAdminError()


def _last_admin_error():
    return Err(make_service_error(400, ErrorCode.LAST_ADMIN_CANNOT_BE_REMOVED))


@service_boundary("An error occurred while listing users")
def get_team_users_for_management(
    db: Session, team_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    rows = member_store.list_team_members(db, team_id)
    members = [to_managed_user_dto(member, user) for member, user in rows]

    available = []
    if auth.team.company_id is not None:
        member_ids = {user.id for _, user in rows}
        available = [
            to_available_user_dto(user)
            for user in company_store.list_active_company_users(db, auth.team.company_id)
            if user.id not in member_ids
        ]

    return Ok({
        "members": members,
        "available_users": available,
        "current_user_id": auth.user.id,
    })


@service_boundary("An error occurred while saving team member")
def create_or_attach_team_member(
    db: Session, team_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    """Add a user to one or more teams of the company.

    The user is found by id or email; an unknown email creates a viewer
    account, which then needs a password.
    """
    parsed = parse_payload(TeamMemberCreate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))
    team = auth.team

    target_team_ids: List[int] = body.team_ids or [team_id]
    for target_id in target_team_ids:
        target = get_team(db, target_id)
        if target is None or target.company_id != team.company_id:
            return Err(validation_service_error("One or more selected teams are invalid for this company"))
        if target_id != team_id:
            # Must be able to manage every team being written
            target_auth = authorize(db, Permission.TEAM_UPDATE, target_id, request_user_id)
            if not target_auth.ok:
                return Err(auth_service_error(target_auth))

    try:
        with atomic(db):
            if body.user_id is not None:
                user = user_store.get_user(db, body.user_id)
                if user is None:
                    return Err(not_found_service_error(ErrorCode.USER_NOT_FOUND))
            else:
                user = user_store.get_user_by_email(db, body.email)
                if user is None:
                    if not body.password or len(body.password) < MIN_PASSWORD_LENGTH:
                        return Err(make_service_error(
                            400,
                            ErrorCode.PASSWORD_TOO_SHORT,
                            f"Password is required with at least {MIN_PASSWORD_LENGTH} characters "
                            "to create a new user",
                        ))
                    user = user_store.create_user(
                        db, body.email, get_password_hash(body.password), role=UserRole.VIEWER
                    )

            if team.company_id is not None:
                company_store.ensure_company_member(db, team.company_id, user.id)

            for target_id in target_team_ids:
                existing = member_store.get_active_membership(db, target_id, user.id)
                if existing is not None and body.role != TeamRole.ADMIN:
                    _guard_last_admin(db, target_id, existing)
                member_store.upsert_team_member(db, target_id, user.id, body.role)
    except LastAdminError:
        logger.info(f"Refused to re-attach last admin {user.id} of a team as {body.role.value}")
        return _last_admin_error()

    logger.info(f"User {user.id} attached to teams {target_team_ids} as {body.role.value}")
    return Ok({"team_ids": target_team_ids, "user_id": user.id})


@service_boundary("Team member update failed", ErrorCode.TEAM_MEMBER_UPDATE_FAILED)
def update_managed_team_member(
    db: Session,
    team_id: int,
    target_user_id: int,
    request_user_id: Optional[int],
    payload: Any,
) -> ServiceResult:
    parsed = parse_payload(TeamMemberUpdate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    membership = member_store.get_active_membership(db, team_id, target_user_id)
    if membership is None:
        return Err(not_found_service_error(ErrorCode.TEAM_MEMBER_NOT_FOUND))

    user = user_store.get_user(db, target_user_id)
    if user is None:
        return Err(not_found_service_error(ErrorCode.USER_NOT_FOUND))

    if body.email:
        existing = user_store.get_user_by_email(db, body.email)
        if existing is not None and existing.id != target_user_id:
            return Err(make_service_error(400, ErrorCode.EMAIL_ALREADY_IN_USE))

    if body.new_password is not None and len(body.new_password) < MIN_PASSWORD_LENGTH:
        return Err(make_service_error(400, ErrorCode.PASSWORD_TOO_SHORT))

    try:
        with atomic(db):
            if body.role is not None and body.role != TeamRole.ADMIN:
                _guard_last_admin(db, team_id, membership)
            if body.role is not None:
                member_store.update_team_member_role(db, membership, body.role)
            if body.email:
                user_store.update_user_email(db, user, body.email)
            if body.new_password:
                user_store.update_user_password(db, user, get_password_hash(body.new_password))
    except LastAdminError:
        logger.info(f"Refused to demote last admin {target_user_id} of team {team_id}")
        return _last_admin_error()

    return Ok({"member": to_managed_user_dto(membership, user)})


@service_boundary("Team member remove failed", ErrorCode.TEAM_MEMBER_REMOVE_FAILED)
def remove_managed_team_member(
    db: Session, team_id: int, target_user_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    """Suspend a membership. The user account itself stays."""
    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    membership = member_store.get_active_membership(db, team_id, target_user_id)
    if membership is None:
        return Err(not_found_service_error(ErrorCode.TEAM_MEMBER_NOT_FOUND))

    try:
        with atomic(db):
            _guard_last_admin(db, team_id, membership)
            member_store.suspend_team_member(db, membership)
    except LastAdminError:
        logger.info(f"Refused to remove last admin {target_user_id} of team {team_id}")
        return _last_admin_error()

    logger.info(f"User {target_user_id} removed from team {team_id}")
    return Ok({"message_code": "TEAM_MEMBER_REMOVED"})


@service_boundary("An error occurred while changing password")
def change_own_password(db: Session, request_user_id: Optional[int], payload: Any) -> ServiceResult:
    if request_user_id is None:
        return Err(make_service_error(401, ErrorCode.USER_NOT_AUTHENTICATED))

    parsed = parse_payload(PasswordChangeRequest, payload)
    if not parsed.ok:
        return Err(make_service_error(400, ErrorCode.PASSWORD_FIELDS_REQUIRED))
    body = parsed.data

    if not body.current_password or not body.new_password or not body.confirm_password:
        return Err(make_service_error(400, ErrorCode.PASSWORD_FIELDS_REQUIRED))
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        return Err(make_service_error(400, ErrorCode.PASSWORD_TOO_SHORT))
    if body.new_password != body.confirm_password:
        return Err(make_service_error(400, ErrorCode.PASSWORD_CONFIRMATION_MISMATCH))
    if body.current_password == body.new_password:
        return Err(make_service_error(400, ErrorCode.PASSWORD_MUST_DIFFER))

    user = user_store.get_user(db, request_user_id)
    if user is None:
        return Err(make_service_error(401, ErrorCode.USER_NOT_AUTHENTICATED))
    if not verify_password(body.current_password, user.password_hash):
        return Err(make_service_error(401, ErrorCode.CURRENT_PASSWORD_INCORRECT))

    with atomic(db):
        user_store.update_user_password(db, user, get_password_hash(body.new_password))

    logger.info(f"User {user.id} changed password")
    return Ok({"message_code": "PASSWORD_UPDATED"})
