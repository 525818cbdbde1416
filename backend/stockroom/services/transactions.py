"""Transaction listing and deletion."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize, authorize_team_access
from stockroom.db.session import atomic
from stockroom.services.mappers import to_transaction_dto
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    auth_service_error,
    not_found_service_error,
    service_boundary,
)
from stockroom.store import transactions as tx_store
from stockroom.store.items import get_item

logger = logging.getLogger(__name__)


@service_boundary("An error occurred while listing transactions")
def list_team_transactions(
    db: Session,
    team_id: int,
    request_user_id: Optional[int],
    search_query: Optional[str] = None,
) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    rows = tx_store.list_transactions(db, team_id, search_query=search_query)
    return Ok({"transactions": [to_transaction_dto(tx) for tx in rows]})


@service_boundary("An error occurred while listing item transactions")
def list_item_transactions(
    db: Session,
    team_id: int,
    item_id: int,
    request_user_id: Optional[int],
) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    if get_item(db, item_id, team_id) is None:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))

    rows = tx_store.list_transactions(db, team_id, item_id=item_id)
    return Ok({"transactions": [to_transaction_dto(tx) for tx in rows]})


@service_boundary("An error occurred while deleting transaction")
def delete_team_transaction(
    db: Session,
    team_id: int,
    transaction_id: int,
    request_user_id: Optional[int],
) -> ServiceResult:
    """Hard-delete a transaction. The item's cached stock is not recomputed."""
    auth = authorize(db, Permission.TRANSACTION_DELETE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    with atomic(db):
        deleted = tx_store.delete_stock_transaction(db, transaction_id, team_id)

    if not deleted:
        return Err(not_found_service_error(ErrorCode.TRANSACTION_NOT_FOUND))

    logger.info(f"Transaction {transaction_id} deleted from team {team_id} by user {auth.user.id}")
    return Ok(None)
