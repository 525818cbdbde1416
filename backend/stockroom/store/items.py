"""Item access.

Stock fields are written here exactly once, when the item is created.
After that only ``stockroom.services.ledger`` changes them.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from stockroom.models.item import Item
from stockroom.models.stock_transaction import StockTransaction

# Fields an item update may touch
EDITABLE_ITEM_FIELDS = frozenset(
    {"name", "sku", "barcode", "cost", "price", "item_type", "brand", "minimum_stock", "location_id"}
)


def list_items(db: Session, team_id: int) -> List[Item]:
    return (
        db.query(Item)
        .filter(Item.team_id == team_id)
        .order_by(Item.name.asc(), Item.id.asc())
        .all()
    )


def get_item(db: Session, item_id: int, team_id: int) -> Optional[Item]:
    return db.query(Item).filter(Item.id == item_id, Item.team_id == team_id).first()


def get_item_for_update(db: Session, item_id: int, team_id: int) -> Optional[Item]:
    """Reload the item row under a write lock, discarding stale identity-map state."""
    return (
        db.query(Item)
        .filter(Item.id == item_id, Item.team_id == team_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def create_item(
    db: Session,
    team_id: int,
    name: str,
    barcode: str,
    initial_quantity: Decimal = Decimal("0"),
    location_id: Optional[int] = None,
    sku: Optional[str] = None,
    cost: Optional[Decimal] = None,
    price: Optional[Decimal] = None,
    item_type: Optional[str] = None,
    brand: Optional[str] = None,
    minimum_stock: Decimal = Decimal("0"),
) -> Item:
    item = Item(
        team_id=team_id,
        name=name,
        barcode=barcode,
        sku=sku,
        cost=cost,
        price=price,
        item_type=item_type,
        brand=brand,
        location_id=location_id,
        initial_quantity=initial_quantity,
        current_stock=initial_quantity,
        minimum_stock=minimum_stock,
    )
    db.add(item)
    db.flush()
    return item


def update_item(db: Session, item: Item, **fields) -> Item:
    unknown = set(fields) - EDITABLE_ITEM_FIELDS
    if unknown:
        raise ValueError(f"Cannot update item fields: {', '.join(sorted(unknown))}")
    for key, value in fields.items():
        setattr(item, key, value)
    db.flush()
    return item


def item_has_transactions(db: Session, item_id: int) -> bool:
    return (
        db.query(StockTransaction.id)
        .filter(StockTransaction.item_id == item_id)
        .first()
        is not None
    )


def delete_item(db: Session, item: Item) -> None:
    db.delete(item)
    db.flush()
