"""Item schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas.common import PayloadModel, Quantity


class ItemBase(PayloadModel):
    sku: Optional[str] = Field(default=None, max_length=100)
    cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    item_type: Optional[str] = Field(default=None, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    location_id: Optional[int] = None
    minimum_stock: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @field_validator("sku", "item_type", "brand")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ItemCreate(ItemBase):
    """Item creation body.

    ``initial_quantity`` seeds the stock; any ``current_stock`` key sent by
    the client is ignored.
    """

    name: str = Field(..., max_length=255)
    barcode: str = Field(..., max_length=100)
    initial_quantity: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Item name is required")
        return v

    @field_validator("barcode")
    @classmethod
    def validate_barcode(cls, v: str) -> str:
        if not v:
            raise ValueError("Barcode is required")
        return v


class ItemUpdate(ItemBase):
    """Item update body. Stock fields are not accepted here."""

    name: Optional[str] = Field(default=None, max_length=255)
    barcode: Optional[str] = Field(default=None, max_length=100)
    minimum_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("Item name is required")
        return v

    @field_validator("barcode")
    @classmethod
    def validate_barcode(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("Barcode is required")
        return v

    @field_validator("minimum_stock")
    @classmethod
    def validate_minimum_stock(cls, v: Optional[Decimal]) -> Decimal:
        if v is None:
            raise ValueError("Minimum stock must be a valid number")
        return v


class ItemDto(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    barcode: str
    cost: Optional[Quantity] = None
    price: Optional[Quantity] = None
    item_type: Optional[str] = None
    brand: Optional[str] = None
    initial_quantity: Quantity
    current_stock: Quantity
    minimum_stock: Quantity
    team_id: int
    location_id: Optional[int] = None
    location_name: Optional[str] = None
    created_at: str
    updated_at: str
