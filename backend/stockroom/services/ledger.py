"""Stock Ledger - the single write path for an item's cached stock.

Every stock movement is stored as an immutable ``StockTransaction`` row and
folded into ``Item.current_stock`` / ``Item.location_id`` in the same unit
of work. ``current_stock`` therefore always equals a replay of the item's
transactions starting from ``initial_quantity``:

- stock_in:  stock + quantity, location moves to the destination if given
- stock_out: stock - quantity, rejected when quantity exceeds stock
- adjust:    stock = quantity
- count:     stock = quantity (physical recount)
- move:      stock unchanged, location moves to the destination if given

Concurrency: the item row is re-read under ``SELECT ... FOR UPDATE`` (on
SQLite the whole transaction holds the write lock from ``BEGIN IMMEDIATE``),
so two movements on one item never interleave their read-modify-write.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from stockroom.db.base import utcnow
from stockroom.db.session import atomic
from stockroom.models.item import Item
from stockroom.models.stock_transaction import StockTransaction, TransactionType
from stockroom.store.items import get_item_for_update
from stockroom.store.transactions import list_item_history

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class InsufficientStockError(Exception):
    """Raised when a stock_out asks for more than the item holds."""

    def __init__(self, item_id: int, available: Decimal, requested: Decimal):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for item {item_id}: requested {requested}, available {available}"
        )


class ItemNotInTeamError(LookupError):
    """Raised when the item does not exist in the given team."""

    def __init__(self, item_id: int, team_id: int):
        self.item_id = item_id
        self.team_id = team_id
        super().__init__(f"Item {item_id} not found in team {team_id}")


def apply_movement(
    current_stock: Decimal,
    location_id: Optional[int],
    transaction_type: TransactionType,
    quantity: Decimal,
    destination_location_id: Optional[int] = None,
    item_id: int = 0,
    strict: bool = True,
) -> Tuple[Decimal, Optional[int]]:
    """Fold one movement into ``(stock, location_id)``.

    Pure function shared by the live ledger and by ``replay_stock``. With
    ``strict`` an oversized stock_out raises; without it the result is
    floored at zero like every other movement.
    """
    transaction_type = TransactionType(transaction_type)
    new_stock = current_stock
    new_location_id = location_id

    if transaction_type == TransactionType.STOCK_IN:
        new_stock = current_stock + quantity
        if destination_location_id is not None:
            new_location_id = destination_location_id
    elif transaction_type == TransactionType.STOCK_OUT:
        if strict and quantity > current_stock:
            raise InsufficientStockError(item_id, current_stock, quantity)
        new_stock = current_stock - quantity
    elif transaction_type.sets_absolute:
        new_stock = quantity
    elif transaction_type == TransactionType.MOVE:
        if destination_location_id is not None:
            new_location_id = destination_location_id

    # Floor at zero
    if new_stock < ZERO:
        new_stock = ZERO
    return new_stock, new_location_id


def replay_stock(initial_quantity: Decimal, transactions: Iterable[StockTransaction]) -> Decimal:
    """Recompute stock from scratch over transactions in creation order.

    History is taken as it stands, so a stock_out left without cover by a
    deleted transaction floors at zero instead of raising.
    """
    stock = Decimal(initial_quantity)
    for tx in transactions:
        stock, _ = apply_movement(
            stock,
            None,
            tx.transaction_type,
            Decimal(tx.quantity),
            tx.destination_location_id,
            tx.item_id,
            strict=False,
        )
    return stock


@dataclass(frozen=True)
class StockReconciliation:
    item_id: int
    cached: Decimal
    replayed: Decimal

    @property
    def consistent(self) -> bool:
        return self.cached == self.replayed


class StockLedger:
    """Applies stock movements to items."""

    def __init__(self, db: Session):
        self.db = db

    def apply_stock_transaction(
        self,
        item_id: int,
        team_id: int,
        transaction_type: TransactionType,
        quantity: Decimal,
        user_id: int,
        source_location_id: Optional[int] = None,
        destination_location_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> StockTransaction:
        """Record a movement and update the item's cached stock/location.

        Insert, item reload, guard and item update run in one unit of work:
        if any step raises (``InsufficientStockError`` included) the inserted
        transaction row is rolled back with everything else.
        """
        transaction_type = TransactionType(transaction_type)
        quantity = Decimal(str(quantity))

        with atomic(self.db):
            tx = StockTransaction(
                item_id=item_id,
                team_id=team_id,
                transaction_type=transaction_type,
                quantity=quantity,
                notes=notes,
                user_id=user_id,
                source_location_id=source_location_id,
                destination_location_id=destination_location_id,
            )
            self.db.add(tx)
            self.db.flush()

            item = get_item_for_update(self.db, item_id, team_id)
            if item is None:
                raise ItemNotInTeamError(item_id, team_id)

            old_stock = Decimal(item.current_stock)
            try:
                new_stock, new_location_id = apply_movement(
                    old_stock,
                    item.location_id,
                    transaction_type,
                    quantity,
                    destination_location_id,
                    item_id,
                )
            except InsufficientStockError:
                logger.info(
                    f"Rejected {transaction_type.value} of {quantity} on item {item_id}: "
                    f"only {old_stock} in stock"
                )
                raise

            item.current_stock = new_stock
            item.location_id = new_location_id
            item.updated_at = utcnow()
            self.db.flush()

        logger.info(
            f"Stock {transaction_type.value} on item {item_id} (team {team_id}): "
            f"qty={quantity} stock {old_stock} -> {new_stock}"
        )
        return tx

    def reconcile_item(self, item_id: int) -> StockReconciliation:
        """Compare an item's cached stock against a full replay of its ledger."""
        item = self.db.get(Item, item_id)
        if item is None:
            raise LookupError(f"Item {item_id} not found")
        replayed = replay_stock(item.initial_quantity, list_item_history(self.db, item_id))
        result = StockReconciliation(
            item_id=item_id,
            cached=Decimal(item.current_stock),
            replayed=replayed,
        )
        if not result.consistent:
            logger.warning(
                f"Item {item_id} stock drift: cached={result.cached} replayed={result.replayed}"
            )
        return result
