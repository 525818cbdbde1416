"""Read-only aggregates over a team's items and stock ledger."""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from stockroom.models.item import Item
from stockroom.models.location import Location
from stockroom.models.stock_transaction import StockTransaction, TransactionType


def _transactions_in_range(
    db: Session,
    team_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Query:
    query = db.query(StockTransaction).filter(StockTransaction.team_id == team_id)
    if start is not None:
        query = query.filter(StockTransaction.created_at >= start)
    if end is not None:
        query = query.filter(StockTransaction.created_at <= end)
    return query


def count_team_locations(db: Session, team_id: int) -> int:
    return db.query(func.count(Location.id)).filter(Location.team_id == team_id).scalar() or 0


def count_team_transactions(
    db: Session, team_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> int:
    return _transactions_in_range(db, team_id, start, end).count()


def count_transactions_by_type(
    db: Session, team_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> Dict[TransactionType, int]:
    query = (
        _transactions_in_range(db, team_id, start, end)
        .with_entities(StockTransaction.transaction_type, func.count(StockTransaction.id))
        .group_by(StockTransaction.transaction_type)
    )
    return {TransactionType(tx_type): count for tx_type, count in query}


def list_recent_transactions(
    db: Session,
    team_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 10,
) -> List[StockTransaction]:
    return (
        _transactions_in_range(db, team_id, start, end)
        .order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
        .limit(limit)
        .all()
    )


def list_transactions_since(db: Session, team_id: int, since: datetime) -> List[StockTransaction]:
    return (
        _transactions_in_range(db, team_id, start=since)
        .order_by(StockTransaction.created_at.asc(), StockTransaction.id.asc())
        .all()
    )


def list_items_with_location(db: Session, team_id: int) -> List[Tuple[Item, Optional[str]]]:
    """Every item of the team paired with its location name, if any."""
    return (
        db.query(Item, Location.name)
        .outerjoin(Location, Location.id == Item.location_id)
        .filter(Item.team_id == team_id)
        .order_by(Item.id.asc())
        .all()
    )
