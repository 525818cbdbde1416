"""Stock transaction model: the append-only ledger."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from stockroom.db.base import Base, TimestampMixin
from stockroom.models.company import _enum
from stockroom.models.validators import non_negative


class TransactionType(str, PyEnum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    ADJUST = "adjust"  # absolute set
    MOVE = "move"  # location only
    COUNT = "count"  # physical recount, absolute set

    @property
    def sets_absolute(self) -> bool:
        return self in (TransactionType.ADJUST, TransactionType.COUNT)


class StockTransaction(Base, TimestampMixin):
    """One inventory movement. Never updated once written."""

    __tablename__ = "stock_transactions"
    __table_args__ = (
        Index("ix_stock_transactions_item_created", "item_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"), nullable=False, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False, index=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        _enum(TransactionType), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    source_location_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("locations.id"), nullable=True, index=True
    )
    destination_location_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("locations.id"), nullable=True, index=True
    )

    # Read-only snapshots for listings
    item: Mapped["Item"] = relationship("Item", lazy="joined", viewonly=True)
    user: Mapped["User"] = relationship("User", lazy="joined", viewonly=True)
    source_location: Mapped[Optional["Location"]] = relationship(
        "Location", foreign_keys=[source_location_id], lazy="joined", viewonly=True
    )
    destination_location: Mapped[Optional["Location"]] = relationship(
        "Location", foreign_keys=[destination_location_id], lazy="joined", viewonly=True
    )

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return non_negative(key, value)


# Forward references
from stockroom.models.item import Item  # noqa: E402
from stockroom.models.location import Location  # noqa: E402
from stockroom.models.user import User  # noqa: E402
