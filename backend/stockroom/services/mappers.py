"""Row to DTO mapping."""

from typing import Optional

from stockroom.models.item import Item
from stockroom.models.location import Location
from stockroom.models.stock_transaction import StockTransaction
from stockroom.models.team import Team, TeamMember, TeamRole
from stockroom.models.user import User
from stockroom.schemas.common import to_iso
from stockroom.schemas.item import ItemDto
from stockroom.schemas.location import LocationDto
from stockroom.schemas.stock_transaction import (
    ItemSnapshot,
    LocationSnapshot,
    StockTransactionDto,
    TransactionDto,
    UserSnapshot,
)
from stockroom.schemas.team import TeamDto
from stockroom.schemas.user import AvailableUserDto, ManagedUserDto
from stockroom.store.teams import TeamStats

# Subscription statuses that keep a team from being deleted
DELETE_BLOCKING_STATUSES = frozenset({"active", "trialing", "past_due", "canceling"})


def _value(enum_or_str) -> Optional[str]:
    if enum_or_str is None:
        return None
    return getattr(enum_or_str, "value", enum_or_str)


def can_delete_team(team: Team, team_role: Optional[TeamRole]) -> bool:
    return (
        team_role == TeamRole.ADMIN
        and (team.stripe_subscription_status or "") not in DELETE_BLOCKING_STATUSES
    )


def to_team_dto(
    team: Team,
    stats: Optional[TeamStats] = None,
    team_role: Optional[TeamRole] = None,
) -> TeamDto:
    stats = stats or TeamStats()
    return TeamDto(
        id=team.id,
        name=team.name,
        notes=team.notes,
        user_id=team.user_id,
        company_id=team.company_id,
        label_company_info=team.label_company_info,
        stripe_customer_id=team.stripe_customer_id,
        stripe_subscription_id=team.stripe_subscription_id,
        stripe_subscription_status=team.stripe_subscription_status,
        stripe_price_id=team.stripe_price_id,
        stripe_current_period_end=to_iso(team.stripe_current_period_end),
        manual_trial_ends_at=to_iso(team.manual_trial_ends_at),
        manual_trial_grants_count=team.manual_trial_grants_count or 0,
        item_count=stats.item_count,
        transaction_count=stats.transaction_count,
        member_count=stats.member_count,
        team_role=_value(team_role),
        can_delete_team=can_delete_team(team, team_role),
        created_at=to_iso(team.created_at),
        updated_at=to_iso(team.updated_at),
    )


def to_item_dto(item: Item, location_name: Optional[str] = None) -> ItemDto:
    return ItemDto(
        id=item.id,
        name=item.name,
        sku=item.sku,
        barcode=item.barcode,
        cost=item.cost,
        price=item.price,
        item_type=item.item_type,
        brand=item.brand,
        initial_quantity=item.initial_quantity,
        current_stock=item.current_stock,
        minimum_stock=item.minimum_stock,
        team_id=item.team_id,
        location_id=item.location_id,
        location_name=location_name,
        created_at=to_iso(item.created_at),
        updated_at=to_iso(item.updated_at),
    )


def to_location_dto(location: Location) -> LocationDto:
    return LocationDto(
        id=location.id,
        name=location.name,
        description=location.description,
        team_id=location.team_id,
        created_at=to_iso(location.created_at),
        updated_at=to_iso(location.updated_at),
    )


def _transaction_fields(tx: StockTransaction) -> dict:
    return dict(
        id=tx.id,
        item_id=tx.item_id,
        team_id=tx.team_id,
        transaction_type=_value(tx.transaction_type),
        quantity=tx.quantity,
        notes=tx.notes,
        user_id=tx.user_id,
        source_location_id=tx.source_location_id,
        destination_location_id=tx.destination_location_id,
        created_at=to_iso(tx.created_at),
        updated_at=to_iso(tx.updated_at),
    )


def to_stock_transaction_dto(tx: StockTransaction) -> StockTransactionDto:
    return StockTransactionDto(**_transaction_fields(tx))


def to_transaction_dto(tx: StockTransaction) -> TransactionDto:
    item, user = tx.item, tx.user
    source, destination = tx.source_location, tx.destination_location
    return TransactionDto(
        **_transaction_fields(tx),
        item=ItemSnapshot(id=item.id, name=item.name, sku=item.sku, barcode=item.barcode) if item else None,
        user=UserSnapshot(id=user.id, email=user.email) if user else None,
        source_location=LocationSnapshot(id=source.id, name=source.name) if source else None,
        destination_location=(
            LocationSnapshot(id=destination.id, name=destination.name) if destination else None
        ),
    )


def to_managed_user_dto(member: TeamMember, user: User) -> ManagedUserDto:
    return ManagedUserDto(
        user_id=user.id,
        email=user.email,
        role=_value(member.role),
        status=_value(member.status),
    )


def to_available_user_dto(user: User) -> AvailableUserDto:
    return AvailableUserDto(id=user.id, email=user.email)
