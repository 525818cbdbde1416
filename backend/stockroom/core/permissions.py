"""
Team permission gate.

Answers "may user U perform permission P on team T" from the user's team
membership role, and hands back the team/user context the caller needs.

Team roles:
- admin: everything, including member management, team edits and deletes
- operator: day-to-day inventory work (items, locations, stock movements)
- viewer: read only
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from sqlalchemy.orm import Session

from stockroom.core.errors import ERROR_MESSAGES, ErrorCode
from stockroom.models.team import Team, TeamRole
from stockroom.models.user import User, UserRole
from stockroom.store.members import get_active_membership


class Permission(str, Enum):
    """Available permissions in the system."""
    # Teams
    TEAM_CREATE = "team:create"
    TEAM_READ = "team:read"
    TEAM_UPDATE = "team:update"
    TEAM_DELETE = "team:delete"

    # Items
    ITEM_WRITE = "item:write"
    ITEM_DELETE = "item:delete"

    # Locations
    LOCATION_WRITE = "location:write"
    LOCATION_DELETE = "location:delete"

    # Stock
    STOCK_WRITE = "stock:write"
    TRANSACTION_DELETE = "transaction:delete"


_ALL_TEAM_ROLES = frozenset({TeamRole.ADMIN, TeamRole.OPERATOR, TeamRole.VIEWER})
_WRITERS = frozenset({TeamRole.ADMIN, TeamRole.OPERATOR})
_ADMINS = frozenset({TeamRole.ADMIN})

# Permission to allowed team roles
TEAM_PERMISSION_ROLES: Dict[Permission, FrozenSet[TeamRole]] = {
    Permission.TEAM_READ: _ALL_TEAM_ROLES,
    Permission.TEAM_UPDATE: _ADMINS,
    Permission.TEAM_DELETE: _ADMINS,
    Permission.ITEM_WRITE: _WRITERS,
    Permission.ITEM_DELETE: _WRITERS,
    Permission.LOCATION_WRITE: _WRITERS,
    Permission.LOCATION_DELETE: _WRITERS,
    Permission.STOCK_WRITE: _WRITERS,
    Permission.TRANSACTION_DELETE: _ADMINS,
}

# Permissions that exist before any team does, checked against the user role
GLOBAL_PERMISSION_ROLES: Dict[Permission, FrozenSet[UserRole]] = {
    Permission.TEAM_CREATE: frozenset({UserRole.ADMIN, UserRole.OPERATOR}),
}


@dataclass(frozen=True)
class AuthGranted:
    team: Team
    user: User
    team_role: TeamRole
    ok: bool = True


@dataclass(frozen=True)
class AuthDenied:
    status: int
    error_code: ErrorCode
    error: str
    ok: bool = False


AuthResult = Union[AuthGranted, AuthDenied]


def _deny(status: int, error_code: ErrorCode) -> AuthDenied:
    return AuthDenied(status=status, error_code=error_code, error=ERROR_MESSAGES[error_code])


def has_team_permission(role: TeamRole, permission: Permission) -> bool:
    return role in TEAM_PERMISSION_ROLES.get(permission, frozenset())


def authorize(
    db: Session,
    permission: Permission,
    team_id: int,
    request_user_id: Optional[int],
) -> AuthResult:
    """Check ``permission`` for the requesting user on a team.

    Reads only. The checks run in a fixed order so the first failing one
    decides the status: missing identity (401), missing team (404), unknown
    user (401), no active membership (403 FORBIDDEN), role too low
    (403 INSUFFICIENT_PERMISSIONS).
    """
    if request_user_id is None:
        return _deny(401, ErrorCode.USER_NOT_AUTHENTICATED)

    team = db.get(Team, team_id)
    if team is None:
        return _deny(404, ErrorCode.TEAM_NOT_FOUND)

    user = db.get(User, request_user_id)
    if user is None:
        return _deny(401, ErrorCode.USER_NOT_AUTHENTICATED)

    membership = get_active_membership(db, team_id, request_user_id)
    if membership is None:
        return _deny(403, ErrorCode.FORBIDDEN)

    if not has_team_permission(membership.role, permission):
        return _deny(403, ErrorCode.INSUFFICIENT_PERMISSIONS)

    return AuthGranted(team=team, user=user, team_role=membership.role)


def authorize_team_access(db: Session, team_id: int, request_user_id: Optional[int]) -> AuthResult:
    """Any active member may read the team."""
    return authorize(db, Permission.TEAM_READ, team_id, request_user_id)


@dataclass(frozen=True)
class GlobalGranted:
    user: User
    ok: bool = True


def authorize_global(
    db: Session,
    permission: Permission,
    request_user_id: Optional[int],
) -> Union[GlobalGranted, AuthDenied]:
    """Check a permission that is not tied to a team against the user role."""
    if request_user_id is None:
        return _deny(401, ErrorCode.USER_NOT_AUTHENTICATED)

    user = db.get(User, request_user_id)
    if user is None:
        return _deny(401, ErrorCode.USER_NOT_AUTHENTICATED)

    if user.role not in GLOBAL_PERMISSION_ROLES.get(permission, frozenset()):
        return _deny(403, ErrorCode.INSUFFICIENT_PERMISSIONS)

    return GlobalGranted(user=user)
