"""Location service."""

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize, authorize_team_access
from stockroom.db.session import atomic
from stockroom.schemas.common import parse_payload
from stockroom.schemas.location import LocationWrite
from stockroom.services.mappers import to_location_dto
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
from stockroom.store import locations as location_store

logger = logging.getLogger(__name__)

DUPLICATE_NAME_ERROR = "A location with this name already exists"


@service_boundary("An error occurred while listing locations")
def list_team_locations(db: Session, team_id: int, request_user_id: Optional[int]) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    locations = location_store.list_locations(db, team_id)
    return Ok({"locations": [to_location_dto(location) for location in locations]})


@service_boundary("An error occurred while loading location")
def get_team_location(
    db: Session, team_id: int, location_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    auth = authorize_team_access(db, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    location = location_store.get_location(db, location_id, team_id)
    if location is None:
        return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))
    return Ok({"location": to_location_dto(location)})


@service_boundary("An error occurred while creating location")
def create_team_location(
    db: Session, team_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    parsed = parse_payload(LocationWrite, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))

    auth = authorize(db, Permission.LOCATION_WRITE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    if location_store.get_location_by_name(db, team_id, parsed.data.name) is not None:
        return Err(conflict_service_error(DUPLICATE_NAME_ERROR))

    try:
        with atomic(db):
            location = location_store.create_location(
                db, team_id, parsed.data.name, parsed.data.description
            )
    except IntegrityError:
        # Lost a race on the (team_id, name) constraint
        return Err(conflict_service_error(DUPLICATE_NAME_ERROR))

    return Ok({"location": to_location_dto(location)})


@service_boundary("An error occurred while updating location")
def update_team_location(
    db: Session, team_id: int, location_id: int, request_user_id: Optional[int], payload: Any
) -> ServiceResult:
    parsed = parse_payload(LocationWrite, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))

    auth = authorize(db, Permission.LOCATION_WRITE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    location = location_store.get_location(db, location_id, team_id)
    if location is None:
        return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))

    existing = location_store.get_location_by_name(db, team_id, parsed.data.name)
    if existing is not None and existing.id != location.id:
        return Err(conflict_service_error(DUPLICATE_NAME_ERROR))

    try:
        with atomic(db):
            location_store.update_location(
                db, location, name=parsed.data.name, description=parsed.data.description
            )
    except IntegrityError:
        return Err(conflict_service_error(DUPLICATE_NAME_ERROR))

    return Ok({"location": to_location_dto(location)})


@service_boundary("An error occurred while deleting location")
def delete_team_location(
    db: Session, team_id: int, location_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    auth = authorize(db, Permission.LOCATION_DELETE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    location = location_store.get_location(db, location_id, team_id)
    if location is None:
        return Err(not_found_service_error(ErrorCode.LOCATION_NOT_FOUND))

    if location_store.location_in_use(db, location_id):
        return Err(conflict_service_error("Location is in use by items or transactions"))

    with atomic(db):
        location_store.delete_location(db, location)

    logger.info(f"Location {location_id} deleted from team {team_id}")
    return Ok(None)
