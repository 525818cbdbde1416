"""Item service."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize, authorize_team_access
from stockroom.db.session import atomic
from stockroom.schemas.common import parse_payload
from stockroom.schemas.item import ItemCreate, ItemUpdate
from stockroom.services.mappers import to_item_dto
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
from stockroom.store import items as item_store
from stockroom.store.locations import get_location, list_locations

logger = logging.getLogger(__name__)


def _location_name(db: Session, team_id: int, location_id: Optional[int]) -> Optional[str]:
    if location_id is None:
        return None
    location = get_location(db, location_id, team_id)
    return location.name if location else None


@service_boundary("An error occurred while listing items")
def list_team_items(db: Session, team_id: int, request_user_id: Optional[int]) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    names = {location.id: location.name for location in list_locations(db, team_id)}
    items = item_store.list_items(db, team_id)
    return Ok({"items": [to_item_dto(item, names.get(item.location_id)) for item in items]})


@service_boundary("An error occurred while loading item")
def get_team_item(
    db: Session, team_id: int, item_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    item = item_store.get_item(db, item_id, team_id)
    if item is None:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))
    return Ok({"item": to_item_dto(item, _location_name(db, team_id, item.location_id))})


@service_boundary("An error occurred while creating item")
def create_team_item(
    db: Session, team_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    """Create an item whose stock starts at ``initial_quantity``."""
    parsed = parse_payload(ItemCreate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    auth = authorize(db, Permission.ITEM_WRITE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    if body.location_id is not None and get_location(db, body.location_id, team_id) is None:
        return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))

    with atomic(db):
        item = item_store.create_item(
            db,
            team_id=team_id,
            name=body.name,
            barcode=body.barcode,
            initial_quantity=body.initial_quantity,
            location_id=body.location_id,
            sku=body.sku,
            cost=body.cost,
            price=body.price,
            item_type=body.item_type,
            brand=body.brand,
            minimum_stock=body.minimum_stock,
        )

    logger.info(f"Item {item.id} created in team {team_id} with stock {item.current_stock}")
    return Ok({"item": to_item_dto(item, _location_name(db, team_id, item.location_id))})


@service_boundary("An error occurred while updating item")
def update_team_item(
    db: Session, team_id: int, item_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    """Edit descriptive fields. Stock only changes through stock transactions."""
    parsed = parse_payload(ItemUpdate, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))

    auth = authorize(db, Permission.ITEM_WRITE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    item = item_store.get_item(db, item_id, team_id)
    if item is None:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))

    fields = parsed.data.model_dump(exclude_unset=True)
    location_id = fields.get("location_id")
    if location_id is not None and get_location(db, location_id, team_id) is None:
        return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))

    with atomic(db):
        item_store.update_item(db, item, **fields)

    return Ok({"item": to_item_dto(item, _location_name(db, team_id, item.location_id))})


@service_boundary("An error occurred while deleting item")
def delete_team_item(
    db: Session, team_id: int, item_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    auth = authorize(db, Permission.ITEM_DELETE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    item = item_store.get_item(db, item_id, team_id)
    if item is None:
        return Err(not_found_service_error(ErrorCode.ITEM_NOT_FOUND))

    if item_store.item_has_transactions(db, item_id):
        return Err(conflict_service_error("Cannot delete an item with stock transactions"))

    with atomic(db):
        item_store.delete_item(db, item)

    logger.info(f"Item {item_id} deleted from team {team_id}")
    return Ok(None)
