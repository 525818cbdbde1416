"""Company and company membership models."""

from __future__ import annotations

from enum import Enum as PyEnum

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.db.base import Base, TimestampMixin


class MembershipStatus(str, PyEnum):
    ACTIVE = "active"
    INVITED = "invited"
    SUSPENDED = "suspended"


class CompanyRole(str, PyEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


def _enum(enum_cls):
    return Enum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False)


class Company(Base, TimestampMixin):
    """Billing/ownership umbrella over teams."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(60), unique=True, index=True, nullable=False)


class CompanyMember(Base, TimestampMixin):
    __tablename__ = "company_members"

    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    role: Mapped[CompanyRole] = mapped_column(_enum(CompanyRole), default=CompanyRole.MEMBER, nullable=False)
    status: Mapped[MembershipStatus] = mapped_column(
        _enum(MembershipStatus), default=MembershipStatus.ACTIVE, nullable=False
    )
