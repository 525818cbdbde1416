"""Report schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, model_validator

from stockroom.schemas.common import PayloadModel, Quantity, as_utc


class ReportQuery(PayloadModel):
    """Optional date range applied to the transaction figures."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_range(self) -> "ReportQuery":
        if self.start_date and self.end_date and as_utc(self.start_date) > as_utc(self.end_date):
            raise ValueError("Start date must not be after end date")
        return self


class TransactionTypeCounts(BaseModel):
    stock_in: int = 0
    stock_out: int = 0
    adjust: int = 0
    move: int = 0
    count: int = 0


class DailyTransactionCounts(TransactionTypeCounts):
    date: str


class RecentTransaction(BaseModel):
    id: int
    transaction_type: str
    quantity: Quantity
    created_at: str
    item_name: Optional[str] = None


class ItemValue(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    current_stock: Quantity
    price: Optional[Quantity] = None
    total_value: Quantity


class LocationStock(BaseModel):
    location_id: Optional[int] = None
    location_name: str
    item_count: int = 0
    total_stock: Quantity = Decimal("0")
    total_value: Quantity = Decimal("0")


class ReportStats(BaseModel):
    """Inventory figures for one team."""

    total_items: int
    total_locations: int
    total_transactions: int
    total_stock_value: Quantity
    low_stock_items: int
    out_of_stock_items: int
    transactions_by_type: TransactionTypeCounts
    recent_transactions: List[RecentTransaction]
    top_items_by_value: List[ItemValue]
    stock_by_location: List[LocationStock]
    transactions_by_date: List[DailyTransactionCounts]
