"""Company and company membership access."""

import re
from typing import List, Optional

from sqlalchemy.orm import Session

from stockroom.models.company import Company, CompanyMember, CompanyRole, MembershipStatus
from stockroom.models.user import User


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug[:50] or "company"


def unique_company_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug = base
    suffix = 2
    while db.query(Company.id).filter(Company.slug == slug).first() is not None:
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def get_company(db: Session, company_id: int) -> Optional[Company]:
    return db.get(Company, company_id)


def create_company(db: Session, name: str) -> Company:
    company = Company(name=name.strip(), slug=unique_company_slug(db, name))
    db.add(company)
    db.flush()
    return company


def update_company_name(db: Session, company_id: int, name: str) -> Optional[Company]:
    company = db.get(Company, company_id)
    if company is None:
        return None
    company.name = name.strip()
    db.flush()
    return company


def get_active_company_membership(db: Session, user_id: int) -> Optional[CompanyMember]:
    """First active company membership of a user, oldest first."""
    return (
        db.query(CompanyMember)
        .filter(
            CompanyMember.user_id == user_id,
            CompanyMember.status == MembershipStatus.ACTIVE,
        )
        .order_by(CompanyMember.created_at.asc())
        .first()
    )


def get_company_membership(db: Session, company_id: int, user_id: int) -> Optional[CompanyMember]:
    return db.get(CompanyMember, (company_id, user_id))


def ensure_company_member(
    db: Session,
    company_id: int,
    user_id: int,
    role: CompanyRole = CompanyRole.MEMBER,
) -> CompanyMember:
    """Create or reactivate a company membership, keeping an existing role."""
    membership = get_company_membership(db, company_id, user_id)
    if membership is None:
        membership = CompanyMember(
            company_id=company_id,
            user_id=user_id,
            role=role,
            status=MembershipStatus.ACTIVE,
        )
        db.add(membership)
    else:
        membership.status = MembershipStatus.ACTIVE
    db.flush()
    return membership


def list_active_company_users(db: Session, company_id: int) -> List[User]:
    return (
        db.query(User)
        .join(CompanyMember, CompanyMember.user_id == User.id)
        .filter(
            CompanyMember.company_id == company_id,
            CompanyMember.status == MembershipStatus.ACTIVE,
        )
        .order_by(User.email.asc())
        .all()
    )
