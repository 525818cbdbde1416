"""SQLAlchemy models."""

from stockroom.models.user import User, UserRole
from stockroom.models.company import Company, CompanyMember, CompanyRole, MembershipStatus
from stockroom.models.team import Team, TeamMember, TeamRole
from stockroom.models.location import Location
from stockroom.models.item import Item
from stockroom.models.stock_transaction import StockTransaction, TransactionType

__all__ = [
    "User",
    "UserRole",
    "Company",
    "CompanyMember",
    "CompanyRole",
    "MembershipStatus",
    "Team",
    "TeamMember",
    "TeamRole",
    "Location",
    "Item",
    "StockTransaction",
    "TransactionType",
]
