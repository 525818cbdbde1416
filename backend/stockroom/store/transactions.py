"""Stock transaction reads and the scoped hard delete."""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from stockroom.models.item import Item
from stockroom.models.location import Location
from stockroom.models.stock_transaction import StockTransaction
from stockroom.models.user import User


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_transactions(
    db: Session,
    team_id: int,
    search_query: Optional[str] = None,
    item_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[StockTransaction]:
    """Team transactions, newest first, optionally filtered by free text.

    The search matches item name, SKU and barcode, the acting user's email
    and the source or destination location name, case-insensitively.
    """
    query = db.query(StockTransaction).filter(StockTransaction.team_id == team_id)
    if item_id is not None:
        query = query.filter(StockTransaction.item_id == item_id)

    term = (search_query or "").strip()
    if term:
        pattern = f"%{_escape_like(term)}%"
        source = aliased(Location)
        destination = aliased(Location)
        query = (
            query.join(Item, Item.id == StockTransaction.item_id)
            .join(User, User.id == StockTransaction.user_id)
            .outerjoin(source, source.id == StockTransaction.source_location_id)
            .outerjoin(destination, destination.id == StockTransaction.destination_location_id)
            .filter(
                or_(
                    Item.name.ilike(pattern, escape="\\"),
                    Item.sku.ilike(pattern, escape="\\"),
                    Item.barcode.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    source.name.ilike(pattern, escape="\\"),
                    destination.name.ilike(pattern, escape="\\"),
                )
            )
        )

    query = query.order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def list_item_history(db: Session, item_id: int) -> List[StockTransaction]:
    """All transactions of an item in creation order."""
    return (
        db.query(StockTransaction)
        .filter(StockTransaction.item_id == item_id)
        .order_by(StockTransaction.created_at.asc(), StockTransaction.id.asc())
        .all()
    )


def delete_stock_transaction(db: Session, transaction_id: int, team_id: int) -> bool:
    """Hard-delete one transaction of a team. False when nothing matched.

    The owning item's stock is left as it is.
    """
    deleted = (
        db.query(StockTransaction)
        .filter(
            StockTransaction.id == transaction_id,
            StockTransaction.team_id == team_id,
        )
        .delete(synchronize_session=False)
    )
    return deleted > 0
