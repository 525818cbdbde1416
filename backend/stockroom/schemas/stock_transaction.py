"""Stock transaction schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from stockroom.models.stock_transaction import TransactionType
from stockroom.schemas.common import PayloadModel, Quantity


class StockTransactionCreate(PayloadModel):
    """Body of a stock movement.

    ``location_id`` is accepted as a shorthand for the destination.
    """

    item_id: int
    transaction_type: TransactionType
    quantity: Decimal = Field(..., max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    location_id: Optional[int] = None
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None

    @field_validator("notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode="after")
    def check_quantity(self) -> "StockTransactionCreate":
        if self.transaction_type.sets_absolute:
            if self.quantity < 0:
                raise ValueError("Quantity cannot be negative")
        elif self.quantity <= 0:
            raise ValueError("Quantity must be greater than 0")
        return self

    @property
    def resolved_destination_id(self) -> Optional[int]:
        if self.destination_location_id is not None:
            return self.destination_location_id
        return self.location_id


class StockTransactionDto(BaseModel):
    id: int
    item_id: int
    team_id: int
    transaction_type: str
    quantity: Quantity
    notes: Optional[str] = None
    user_id: int
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    created_at: str
    updated_at: str


class ItemSnapshot(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    barcode: str


class UserSnapshot(BaseModel):
    id: int
    email: str


class LocationSnapshot(BaseModel):
    id: int
    name: str


class TransactionDto(StockTransactionDto):
    """Transaction with display snapshots of what it references."""

    item: Optional[ItemSnapshot] = None
    user: Optional[UserSnapshot] = None
    source_location: Optional[LocationSnapshot] = None
    destination_location: Optional[LocationSnapshot] = None
