"""Tests for team report statistics."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from stockroom.core.config import settings
from stockroom.core.errors import ErrorCode
from stockroom.models import Item, TransactionType
from stockroom.services.ledger import StockLedger
from stockroom.services.reports import get_team_report_stats_for_user

API = settings.api_v1_prefix


@pytest.fixture
def stocked_team(db_session, team, item, location_b, admin_user):
    """Hex Bolt ends at 1 unit (low), Washer sits at 0 with no location."""
    item.price = Decimal("2.50")
    washer = Item(
        team_id=team.id,
        name="Washer",
        barcode="W-100",
        price=Decimal("0.10"),
        initial_quantity=Decimal("0"),
        current_stock=Decimal("0"),
    )
    db_session.add(washer)
    db_session.commit()

    ledger = StockLedger(db_session)
    ledger.apply_stock_transaction(item.id, team.id, TransactionType.STOCK_IN, Decimal("2"), admin_user.id)
    ledger.apply_stock_transaction(item.id, team.id, TransactionType.STOCK_OUT, Decimal("6"), admin_user.id)
    return team


class TestReportStats:

    def test_figures(self, db_session, stocked_team, viewer_user):
        result = get_team_report_stats_for_user(db_session, stocked_team.id, viewer_user.id)
        assert result.ok
        stats = result.data["stats"]

        assert stats.total_items == 2
        assert stats.total_locations == 2
        assert stats.total_transactions == 2
        assert stats.total_stock_value == Decimal("2.50")
        assert stats.low_stock_items == 1
        assert stats.out_of_stock_items == 1
        assert stats.transactions_by_type.stock_in == 1
        assert stats.transactions_by_type.stock_out == 1
        assert stats.transactions_by_type.adjust == 0

    def test_recent_and_top_items(self, db_session, stocked_team, viewer_user):
        stats = get_team_report_stats_for_user(db_session, stocked_team.id, viewer_user.id).data["stats"]

        assert [tx.transaction_type for tx in stats.recent_transactions] == ["stock_out", "stock_in"]
        assert stats.recent_transactions[0].item_name == "Hex Bolt M8"
        assert stats.top_items_by_value[0].name == "Hex Bolt M8"
        assert stats.top_items_by_value[0].total_value == Decimal("2.50")

    def test_stock_by_location(self, db_session, stocked_team, viewer_user):
        stats = get_team_report_stats_for_user(db_session, stocked_team.id, viewer_user.id).data["stats"]
        by_name = {entry.location_name: entry for entry in stats.stock_by_location}

        assert set(by_name) == {"Shelf A", "No Location"}
        assert by_name["Shelf A"].item_count == 1
        assert by_name["Shelf A"].total_stock == Decimal("1")
        assert by_name["No Location"].location_id is None

    def test_transactions_by_date(self, db_session, stocked_team, viewer_user):
        stats = get_team_report_stats_for_user(db_session, stocked_team.id, viewer_user.id).data["stats"]
        today = datetime.now(timezone.utc).date().isoformat()

        assert len(stats.transactions_by_date) == 1
        day = stats.transactions_by_date[0]
        assert day.date == today
        assert (day.stock_in, day.stock_out, day.move) == (1, 1, 0)

    def test_date_range_narrows_transaction_figures(self, db_session, stocked_team, viewer_user):
        result = get_team_report_stats_for_user(
            db_session, stocked_team.id, viewer_user.id, {"startDate": "2099-01-01T00:00:00Z"}
        )
        stats = result.data["stats"]

        assert stats.total_transactions == 0
        assert stats.transactions_by_type.stock_out == 0
        assert stats.recent_transactions == []
        # Item figures and the daily chart ignore the range
        assert stats.total_items == 2
        assert len(stats.transactions_by_date) == 1

    def test_empty_team(self, db_session, team, admin_user):
        stats = get_team_report_stats_for_user(db_session, team.id, admin_user.id).data["stats"]
        assert stats.total_items == 0
        assert stats.total_stock_value == Decimal("0")
        assert stats.stock_by_location == []

    @pytest.mark.parametrize("query, message", [
        ({"startDate": "not-a-date"}, None),
        ({"startDate": "2026-02-01T00:00:00Z", "endDate": "2026-01-01T00:00:00Z"},
         "Start date must not be after end date"),
    ])
    def test_invalid_range(self, db_session, team, admin_user, query, message):
        result = get_team_report_stats_for_user(db_session, team.id, admin_user.id, query)
        assert result.error.status == 400
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR
        if message:
            assert result.error.error == message

    def test_non_member_is_forbidden(self, db_session, team, outsider_user):
        result = get_team_report_stats_for_user(db_session, team.id, outsider_user.id)
        assert result.error.status == 403
        assert result.error.error_code == ErrorCode.FORBIDDEN

    def test_subscription_enforced_when_enabled(self, db_session, team, viewer_user):
        result = get_team_report_stats_for_user(
            db_session, team.id, viewer_user.id, enforce_subscription=True
        )
        assert result.error.status == 403
        assert result.error.error == "Active subscription required"

        team.stripe_subscription_status = "active"
        db_session.commit()
        result = get_team_report_stats_for_user(
            db_session, team.id, viewer_user.id, enforce_subscription=True
        )
        assert result.ok


class TestReportApi:

    def test_get_report(self, client, stocked_team, viewer_user, headers_for):
        response = client.get(f"{API}/teams/{stocked_team.id}/reports/", headers=headers_for(viewer_user))
        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["total_items"] == 2
        assert stats["total_stock_value"] == 2.5
        assert stats["transactions_by_type"]["stock_in"] == 1

    def test_date_params(self, client, stocked_team, viewer_user, headers_for):
        response = client.get(
            f"{API}/teams/{stocked_team.id}/reports/",
            headers=headers_for(viewer_user),
            params={"startDate": "2099-01-01T00:00:00Z"},
        )
        assert response.json()["stats"]["total_transactions"] == 0

    def test_requires_authentication(self, client, team):
        response = client.get(f"{API}/teams/{team.id}/reports/")
        assert response.status_code == 401
