"""Team membership access."""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockroom.models.company import MembershipStatus
from stockroom.models.team import Team, TeamMember, TeamRole
from stockroom.models.user import User


def lock_team(db: Session, team_id: int) -> Optional[Team]:
    """Load a team row with a write lock held until the unit of work ends.

    Membership writes that depend on the admin count take this lock first so
    two of them for the same team run one after the other.
    """
    return (
        db.query(Team)
        .filter(Team.id == team_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_membership(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
    return db.get(TeamMember, (team_id, user_id))


def get_active_membership(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id,
            TeamMember.status == MembershipStatus.ACTIVE,
        )
        .first()
    )


def count_active_team_admins(db: Session, team_id: int) -> int:
    return (
        db.query(TeamMember)
        .filter(
            TeamMember.team_id == team_id,
            TeamMember.role == TeamRole.ADMIN,
            TeamMember.status == MembershipStatus.ACTIVE,
        )
        .count()
    )


def list_team_members(db: Session, team_id: int) -> List[Tuple[TeamMember, User]]:
    return (
        db.query(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .filter(
            TeamMember.team_id == team_id,
            TeamMember.status == MembershipStatus.ACTIVE,
        )
        .order_by(TeamMember.created_at.asc(), User.id.asc())
        .all()
    )


def upsert_team_member(db: Session, team_id: int, user_id: int, role: TeamRole) -> TeamMember:
    """Create a membership, or reactivate a suspended one with the new role."""
    membership = get_membership(db, team_id, user_id)
    if membership is None:
        membership = TeamMember(
            team_id=team_id,
            user_id=user_id,
            role=role,
            status=MembershipStatus.ACTIVE,
        )
        db.add(membership)
    else:
        membership.role = role
        membership.status = MembershipStatus.ACTIVE
    db.flush()
    return membership


def update_team_member_role(db: Session, membership: TeamMember, role: TeamRole) -> TeamMember:
    membership.role = role
    db.flush()
    return membership


def suspend_team_member(db: Session, membership: TeamMember) -> TeamMember:
    membership.status = MembershipStatus.SUSPENDED
    db.flush()
    return membership
