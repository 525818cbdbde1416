"""Tests for the location service."""

from decimal import Decimal

from stockroom.core.errors import ErrorCode
from stockroom.models import Item, Location, TransactionType
from stockroom.services.ledger import StockLedger
from stockroom.services.locations import (
    create_team_location,
    delete_team_location,
    get_team_location,
    list_team_locations,
    update_team_location,
)


class TestLocations:

    def test_create_and_list(self, db_session, team, location_a, operator_user):
        result = create_team_location(
            db_session, team.id, operator_user.id, {"name": " Cold Room ", "description": ""}
        )
        assert result.ok
        assert result.data["location"].name == "Cold Room"
        assert result.data["location"].description is None

        listed = list_team_locations(db_session, team.id, operator_user.id)
        assert [loc.name for loc in listed.data["locations"]] == ["Cold Room", "Shelf A"]

    def test_duplicate_name_in_team(self, db_session, team, location_a, admin_user):
        result = create_team_location(db_session, team.id, admin_user.id, {"name": "Shelf A"})
        assert result.error.status == 409
        assert db_session.query(Location).filter(Location.team_id == team.id).count() == 1

    def test_same_name_in_other_team(self, db_session, other_team, location_a, outsider_user):
        result = create_team_location(db_session, other_team.id, outsider_user.id, {"name": "Shelf A"})
        assert result.ok

    def test_name_required(self, db_session, team, admin_user):
        result = create_team_location(db_session, team.id, admin_user.id, {"name": ""})
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR

    def test_viewer_cannot_write(self, db_session, team, viewer_user):
        result = create_team_location(db_session, team.id, viewer_user.id, {"name": "Loft"})
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_get_other_teams_location(self, db_session, other_team, location_a, outsider_user):
        result = get_team_location(db_session, other_team.id, location_a.id, outsider_user.id)
        assert result.error.error_code == ErrorCode.LOCATION_NOT_FOUND

    def test_rename(self, db_session, team, location_a, admin_user):
        result = update_team_location(
            db_session, team.id, location_a.id, admin_user.id, {"name": "Shelf A1"}
        )
        assert result.data["location"].name == "Shelf A1"

    def test_rename_keeping_own_name(self, db_session, team, location_a, admin_user):
        result = update_team_location(
            db_session, team.id, location_a.id, admin_user.id,
            {"name": "Shelf A", "description": "Back shelf"},
        )
        assert result.ok
        assert result.data["location"].description == "Back shelf"

    def test_rename_onto_existing_name(self, db_session, team, location_a, location_b, admin_user):
        result = update_team_location(
            db_session, team.id, location_b.id, admin_user.id, {"name": "Shelf A"}
        )
        assert result.error.status == 409

    def test_delete_unused(self, db_session, team, location_b, operator_user):
        assert delete_team_location(db_session, team.id, location_b.id, operator_user.id).ok
        db_session.expire_all()
        assert db_session.get(Location, location_b.id) is None

    def test_delete_location_holding_items(self, db_session, team, item, location_a, admin_user):
        result = delete_team_location(db_session, team.id, location_a.id, admin_user.id)
        assert result.error.status == 409

    def test_delete_location_named_in_history(self, db_session, team, item, location_b, admin_user):
        ledger = StockLedger(db_session)
        ledger.apply_stock_transaction(
            item_id=item.id,
            team_id=team.id,
            transaction_type=TransactionType.MOVE,
            quantity=Decimal("1"),
            user_id=admin_user.id,
            destination_location_id=location_b.id,
        )
        # Move the item away again so only the history references Shelf B
        db_session.query(Item).filter(Item.id == item.id).update({"location_id": None})
        db_session.commit()

        result = delete_team_location(db_session, team.id, location_b.id, admin_user.id)
        assert result.error.status == 409
