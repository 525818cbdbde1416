"""Stock transaction service: validation, gate, scope checks, ledger."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize
from stockroom.schemas.common import parse_payload
from stockroom.schemas.stock_transaction import StockTransactionCreate
from stockroom.services.billing import ensure_team_has_active_subscription
from stockroom.services.ledger import InsufficientStockError, ItemNotInTeamError, StockLedger
from stockroom.services.mappers import to_stock_transaction_dto
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    auth_service_error,
    conflict_service_error,
    not_found_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store.items import get_item
from stockroom.store.locations import get_location
from stockroom.store.teams import get_team

logger = logging.getLogger(__name__)


@service_boundary("An error occurred while creating stock transaction")
def create_team_stock_transaction(
    db: Session,
    team_id: int,
    request_user_id: Optional[int],
    payload: Any,
    enforce_subscription: bool = False,
) -> ServiceResult:
    if get_team(db, team_id) is None:
        return Err(not_found_service_error(ErrorCode.TEAM_NOT_FOUND))

    parsed = parse_payload(StockTransactionCreate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    auth = authorize(db, Permission.STOCK_WRITE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    if enforce_subscription:
        subscription = ensure_team_has_active_subscription(db, team_id, request_user_id)
        if not subscription.ok:
            return subscription

    if get_item(db, body.item_id, team_id) is None:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))

    destination_id = body.resolved_destination_id
    for location_id in (body.source_location_id, destination_id):
        if location_id is not None and get_location(db, location_id, team_id) is None:
            return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))

    try:
        transaction = StockLedger(db).apply_stock_transaction(
            item_id=body.item_id,
            team_id=team_id,
            transaction_type=body.transaction_type,
            quantity=body.quantity,
            user_id=auth.user.id,
            source_location_id=body.source_location_id,
            destination_location_id=destination_id,
            notes=body.notes,
        )
    except InsufficientStockError as e:
        return Err(
            conflict_service_error(
                f"Insufficient stock: requested {e.requested}, available {e.available}",
                ErrorCode.INSUFFICIENT_STOCK,
            )
        )
    except ItemNotInTeamError:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))

    return Ok({"transaction": to_stock_transaction_dto(transaction)})
