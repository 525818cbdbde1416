"""Location access."""

from typing import List, Optional

from sqlalchemy.orm import Session

from stockroom.models.item import Item
from stockroom.models.location import Location
from stockroom.models.stock_transaction import StockTransaction

DEFAULT_LOCATION_NAME = "Default Location"


def list_locations(db: Session, team_id: int) -> List[Location]:
    return (
        db.query(Location)
        .filter(Location.team_id == team_id)
        .order_by(Location.name.asc())
        .all()
    )


def get_location(db: Session, location_id: int, team_id: int) -> Optional[Location]:
    return (
        db.query(Location)
        .filter(Location.id == location_id, Location.team_id == team_id)
        .first()
    )


def get_location_by_name(db: Session, team_id: int, name: str) -> Optional[Location]:
    return (
        db.query(Location)
        .filter(Location.team_id == team_id, Location.name == name)
        .first()
    )


def create_location(
    db: Session, team_id: int, name: str, description: Optional[str] = None
) -> Location:
    location = Location(team_id=team_id, name=name, description=description)
    db.add(location)
    db.flush()
    return location


def update_location(db: Session, location: Location, **fields) -> Location:
    for key, value in fields.items():
        setattr(location, key, value)
    db.flush()
    return location


def location_in_use(db: Session, location_id: int) -> bool:
    """Whether any item sits at, or any transaction references, the location."""
    if db.query(Item.id).filter(Item.location_id == location_id).first() is not None:
        return True
    return (
        db.query(StockTransaction.id)
        .filter(
            (StockTransaction.source_location_id == location_id)
            | (StockTransaction.destination_location_id == location_id)
        )
        .first()
        is not None
    )


def delete_location(db: Session, location: Location) -> None:
    db.delete(location)
    db.flush()
