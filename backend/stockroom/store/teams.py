"""Team access, including stats and the cascading delete."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockroom.models.company import Company, MembershipStatus
from stockroom.models.item import Item
from stockroom.models.location import Location
from stockroom.models.stock_transaction import StockTransaction
from stockroom.models.team import Team, TeamMember


@dataclass
class TeamStats:
    item_count: int = 0
    transaction_count: int = 0
    member_count: int = 0


def get_team(db: Session, team_id: int) -> Optional[Team]:
    return db.get(Team, team_id)


def get_team_by_stripe_customer(db: Session, customer_id: str) -> Optional[Team]:
    return db.query(Team).filter(Team.stripe_customer_id == customer_id).first()


def get_team_by_stripe_subscription(db: Session, subscription_id: str) -> Optional[Team]:
    return db.query(Team).filter(Team.stripe_subscription_id == subscription_id).first()


def list_teams_for_user(db: Session, user_id: int) -> List[Team]:
    return (
        db.query(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .filter(
            TeamMember.user_id == user_id,
            TeamMember.status == MembershipStatus.ACTIVE,
        )
        .order_by(Team.created_at.desc(), Team.id.desc())
        .all()
    )


def get_team_stats(db: Session, team_ids: List[int]) -> Dict[int, TeamStats]:
    """Item, transaction and active member counts keyed by team id."""
    stats = {team_id: TeamStats() for team_id in team_ids}
    if not team_ids:
        return stats

    for team_id, count in (
        db.query(Item.team_id, func.count(Item.id))
        .filter(Item.team_id.in_(team_ids))
        .group_by(Item.team_id)
    ):
        stats[team_id].item_count = count

    for team_id, count in (
        db.query(StockTransaction.team_id, func.count(StockTransaction.id))
        .filter(StockTransaction.team_id.in_(team_ids))
        .group_by(StockTransaction.team_id)
    ):
        stats[team_id].transaction_count = count

    for team_id, count in (
        db.query(TeamMember.team_id, func.count(TeamMember.user_id))
        .filter(
            TeamMember.team_id.in_(team_ids),
            TeamMember.status == MembershipStatus.ACTIVE,
        )
        .group_by(TeamMember.team_id)
    ):
        stats[team_id].member_count = count

    return stats


def create_team(
    db: Session,
    name: str,
    user_id: int,
    company_id: Optional[int] = None,
    notes: Optional[str] = None,
    label_company_info: Optional[str] = None,
) -> Team:
    team = Team(
        name=name,
        notes=notes,
        user_id=user_id,
        company_id=company_id,
        label_company_info=label_company_info,
    )
    db.add(team)
    db.flush()
    return team


def update_team(db: Session, team: Team, **fields) -> Team:
    for key, value in fields.items():
        setattr(team, key, value)
    db.flush()
    return team


def update_team_and_company_label(
    db: Session,
    team_id: int,
    team_fields: dict,
    company_name: Optional[str] = None,
) -> Team:
    """Write the company display name and the team row in one unit.

    The company change is staged first; if the team row is missing a
    ``LookupError`` is raised so the caller's unit of work discards it.
    """
    team = db.get(Team, team_id)
    if company_name is not None and team is not None and team.company_id is not None:
        company = db.get(Company, team.company_id)
        if company is not None:
            company.name = company_name.strip()
            db.flush()
    if team is None:
        raise LookupError("Team not found")
    return update_team(db, team, **team_fields)


def delete_team_cascade(db: Session, team_id: int) -> bool:
    """Remove a team and everything it owns, children first."""
    db.query(StockTransaction).filter(StockTransaction.team_id == team_id).delete(
        synchronize_session=False
    )
    db.query(Item).filter(Item.team_id == team_id).delete(synchronize_session=False)
    db.query(Location).filter(Location.team_id == team_id).delete(synchronize_session=False)
    db.query(TeamMember).filter(TeamMember.team_id == team_id).delete(synchronize_session=False)
    deleted = db.query(Team).filter(Team.id == team_id).delete(synchronize_session=False)
    db.expire_all()
    return deleted > 0
