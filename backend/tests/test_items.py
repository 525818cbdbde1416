"""Tests for the item service."""

import pytest
from decimal import Decimal

from stockroom.core.errors import ErrorCode
from stockroom.models import Item, Location, TransactionType
from stockroom.services.items import (
    create_team_item,
    delete_team_item,
    get_team_item,
    list_team_items,
    update_team_item,
)
from stockroom.services.ledger import StockLedger


class TestCreateItem:

    def test_stock_starts_at_initial_quantity(self, db_session, team, location_a, operator_user):
        result = create_team_item(db_session, team.id, operator_user.id, {
            "name": "Wood Screw",
            "barcode": "5901234123457",
            "initialQuantity": "12.5",
            "locationId": location_a.id,
            "minimumStock": 3,
        })
        assert result.ok
        dto = result.data["item"]
        assert dto.initial_quantity == Decimal("12.5")
        assert dto.current_stock == Decimal("12.5")
        assert dto.location_name == "Shelf A"
        assert dto.team_id == team.id

    def test_client_current_stock_is_ignored(self, db_session, team, admin_user):
        result = create_team_item(db_session, team.id, admin_user.id, {
            "name": "Washer", "barcode": "W-1", "initial_quantity": 2, "current_stock": 999,
        })
        assert result.data["item"].current_stock == Decimal("2")

    def test_defaults(self, db_session, team, admin_user):
        dto = create_team_item(db_session, team.id, admin_user.id, {"name": "Nut", "barcode": "N-1"}).data["item"]
        assert dto.current_stock == Decimal("0")
        assert dto.minimum_stock == Decimal("0")
        assert dto.location_id is None

    @pytest.mark.parametrize("payload", [
        {"barcode": "B"},
        {"name": "Nameless barcode", "barcode": ""},
        {"name": "Neg", "barcode": "B", "initial_quantity": -1},
        {"name": "Neg", "barcode": "B", "minimum_stock": -1},
        {"name": "Neg", "barcode": "B", "cost": -0.5},
        {"name": "Precise", "barcode": "B", "initial_quantity": "1.234"},
    ])
    def test_invalid_payloads(self, db_session, team, admin_user, payload):
        result = create_team_item(db_session, team.id, admin_user.id, payload)
        assert result.error.status == 400
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR

    def test_location_from_other_team(self, db_session, team, other_team, admin_user):
        foreign = Location(team_id=other_team.id, name="Theirs")
        db_session.add(foreign)
        db_session.commit()
        result = create_team_item(db_session, team.id, admin_user.id, {
            "name": "X", "barcode": "X", "location_id": foreign.id,
        })
        assert result.error.error_code == ErrorCode.LOCATION_NOT_FOUND

    def test_viewer_cannot_create(self, db_session, team, viewer_user):
        result = create_team_item(db_session, team.id, viewer_user.id, {"name": "X", "barcode": "X"})
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS


class TestReadItems:

    def test_list_is_team_scoped_and_sorted(self, db_session, team, other_team, item, admin_user):
        db_session.add_all([
            Item(team_id=team.id, name="Anchor", barcode="A-1"),
            Item(team_id=other_team.id, name="Foreign", barcode="F-1"),
        ])
        db_session.commit()
        result = list_team_items(db_session, team.id, admin_user.id)
        assert [i.name for i in result.data["items"]] == ["Anchor", "Hex Bolt M8"]

    def test_viewer_can_read(self, db_session, team, item, viewer_user):
        result = get_team_item(db_session, team.id, item.id, viewer_user.id)
        assert result.data["item"].sku == "HB-M8"
        assert result.data["item"].location_name == "Shelf A"

    def test_item_of_other_team_is_not_found(self, db_session, other_team, item, outsider_user):
        result = get_team_item(db_session, other_team.id, item.id, outsider_user.id)
        assert result.error.status == 404
        assert result.error.error_code == ErrorCode.ITEM_NOT_FOUND

    def test_outsider_is_forbidden(self, db_session, team, item, outsider_user):
        result = list_team_items(db_session, team.id, outsider_user.id)
        assert result.error.error_code == ErrorCode.FORBIDDEN


class TestUpdateItem:

    def test_updates_descriptive_fields(self, db_session, team, item, operator_user, location_b):
        result = update_team_item(db_session, team.id, item.id, operator_user.id, {
            "name": "Hex Bolt M8x40", "price": "0.35", "locationId": location_b.id,
        })
        assert result.ok
        dto = result.data["item"]
        assert dto.name == "Hex Bolt M8x40"
        assert dto.price == Decimal("0.35")
        assert dto.location_name == "Shelf B"
        assert dto.sku == "HB-M8"

    def test_stock_fields_are_not_writable(self, db_session, team, item, admin_user):
        result = update_team_item(db_session, team.id, item.id, admin_user.id, {
            "current_stock": 100, "initial_quantity": 100, "brand": "Acme",
        })
        assert result.ok
        db_session.refresh(item)
        assert item.current_stock == Decimal("5")
        assert item.initial_quantity == Decimal("5")
        assert item.brand == "Acme"

    def test_null_minimum_stock_rejected(self, db_session, team, item, admin_user):
        result = update_team_item(db_session, team.id, item.id, admin_user.id, {"minimumStock": None})
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR

    def test_unknown_item(self, db_session, team, admin_user):
        result = update_team_item(db_session, team.id, 999, admin_user.id, {"name": "Ghost"})
        assert result.error.error_code == ErrorCode.ITEM_NOT_FOUND


class TestDeleteItem:

    def test_delete_unused_item(self, db_session, team, item, operator_user):
        assert delete_team_item(db_session, team.id, item.id, operator_user.id).ok
        db_session.expire_all()
        assert db_session.get(Item, item.id) is None

    def test_item_with_history_is_kept(self, db_session, team, item, admin_user):
        StockLedger(db_session).apply_stock_transaction(
            item_id=item.id,
            team_id=team.id,
            transaction_type=TransactionType.STOCK_IN,
            quantity=Decimal("1"),
            user_id=admin_user.id,
        )
        result = delete_team_item(db_session, team.id, item.id, admin_user.id)
        assert result.error.status == 409
        assert db_session.get(Item, item.id) is not None

    def test_viewer_cannot_delete(self, db_session, team, item, viewer_user):
        result = delete_team_item(db_session, team.id, item.id, viewer_user.id)
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS


class TestItemModel:

    def test_negative_stock_refused_at_orm_level(self):
        with pytest.raises(ValueError):
            Item(name="Bad", barcode="B", current_stock=Decimal("-1"))

    def test_numeric_strings_become_decimals(self):
        item = Item(name="Ok", barcode="B", minimum_stock="2.50")
        assert item.minimum_stock == Decimal("2.50")
