"""Team report statistics.

Item figures (stock value, low and out of stock, stock by location) describe
the team as it is now. Transaction figures honour the optional date range,
except the daily breakdown, which always covers the last 30 days.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from stockroom.core.permissions import authorize_team_access
from stockroom.models.item import Item
from stockroom.models.stock_transaction import TransactionType
from stockroom.schemas.common import as_utc, parse_payload, to_iso
from stockroom.schemas.report import (
    DailyTransactionCounts,
    ItemValue,
    LocationStock,
    RecentTransaction,
    ReportQuery,
    ReportStats,
    TransactionTypeCounts,
)
from stockroom.services.billing import ensure_team_has_active_subscription
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    auth_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store import reports as report_store

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TOP_ITEMS_LIMIT = 10
RECENT_TRANSACTIONS_LIMIT = 10
DAILY_WINDOW_DAYS = 30


def _item_value(item: Item) -> Decimal:
    return Decimal(item.current_stock or ZERO) * Decimal(item.price or ZERO)


def _is_low_stock(item: Item) -> bool:
    return ZERO < item.current_stock <= item.minimum_stock


def build_report_stats(
    db: Session,
    team_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> ReportStats:
    now = now or datetime.now(timezone.utc)
    rows = report_store.list_items_with_location(db, team_id)
    items = [item for item, _ in rows]

    by_location: Dict[Optional[int], LocationStock] = OrderedDict()
    for item, location_name in rows:
        entry = by_location.get(item.location_id)
        if entry is None:
            entry = LocationStock(
                location_id=item.location_id,
                location_name=location_name or "No Location",
            )
            by_location[item.location_id] = entry
        entry.item_count += 1
        entry.total_stock += Decimal(item.current_stock)
        entry.total_value += _item_value(item)

    top_items = sorted(items, key=_item_value, reverse=True)[:TOP_ITEMS_LIMIT]

    by_type = report_store.count_transactions_by_type(db, team_id, start, end)

    daily: Dict[str, Dict[str, int]] = {}
    since = now - timedelta(days=DAILY_WINDOW_DAYS)
    for tx in report_store.list_transactions_since(db, team_id, since):
        day = as_utc(tx.created_at).date().isoformat()
        counts = daily.setdefault(day, {})
        key = TransactionType(tx.transaction_type).value
        counts[key] = counts.get(key, 0) + 1

    recent = report_store.list_recent_transactions(
        db, team_id, start, end, limit=RECENT_TRANSACTIONS_LIMIT
    )

    return ReportStats(
        total_items=len(items),
        total_locations=report_store.count_team_locations(db, team_id),
        total_transactions=report_store.count_team_transactions(db, team_id, start, end),
        total_stock_value=sum((_item_value(item) for item in items), ZERO),
        low_stock_items=sum(1 for item in items if _is_low_stock(item)),
        out_of_stock_items=sum(1 for item in items if item.current_stock <= ZERO),
        transactions_by_type=TransactionTypeCounts(
            **{tx_type.value: count for tx_type, count in by_type.items()}
        ),
        recent_transactions=[
            RecentTransaction(
                id=tx.id,
                transaction_type=TransactionType(tx.transaction_type).value,
                quantity=tx.quantity,
                created_at=to_iso(tx.created_at),
                item_name=tx.item.name if tx.item is not None else None,
            )
            for tx in recent
        ],
        top_items_by_value=[
            ItemValue(
                id=item.id,
                name=item.name,
                sku=item.sku,
                current_stock=item.current_stock,
                price=item.price,
                total_value=_item_value(item),
            )
            for item in top_items
        ],
        stock_by_location=list(by_location.values()),
        transactions_by_date=[
            DailyTransactionCounts(date=day, **daily[day]) for day in sorted(daily)
        ],
    )


@service_boundary("An error occurred while fetching report statistics")
def get_team_report_stats_for_user(
    db: Session,
    team_id: int,
    request_user_id: Optional[int],
    query: Optional[Dict[str, Any]] = None,
    enforce_subscription: bool = False,
) -> ServiceResult:
    """Report statistics for any active member of the team."""
    parsed = parse_payload(ReportQuery, {k: v for k, v in (query or {}).items() if v})
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    access = authorize_team_access(db, team_id, request_user_id)
    if not access.ok:
        return Err(auth_service_error(access))

    if enforce_subscription:
        subscription = ensure_team_has_active_subscription(db, team_id, request_user_id)
        if not subscription.ok:
            return subscription

    start = as_utc(body.start_date) if body.start_date else None
    end = as_utc(body.end_date) if body.end_date else None
    stats = build_report_stats(db, team_id, start, end)
    logger.debug(f"Report for team {team_id} built: {stats.total_transactions} transactions")
    return Ok({"stats": stats})
