"""Tests for the team service."""

import pytest
from decimal import Decimal

from stockroom.core.errors import ErrorCode
from stockroom.models import (
    Company,
    CompanyMember,
    Item,
    Location,
    MembershipStatus,
    StockTransaction,
    Team,
    TeamMember,
    TeamRole,
    TransactionType,
)
from stockroom.services.ledger import StockLedger
from stockroom.services.teams import (
    create_team_for_user,
    delete_team_with_authorization,
    get_team_for_user,
    list_user_teams,
    update_team_details,
)


class TestCreateTeam:

    def test_creates_team_with_default_location_and_admin(self, db_session, company, admin_user):
        result = create_team_for_user(db_session, admin_user.id, {"name": "  Back Room  "})
        assert result.ok
        dto = result.data["team"]
        assert dto.name == "Back Room"
        assert dto.company_id == company.id
        assert dto.team_role == "admin"
        assert dto.member_count == 1
        assert dto.can_delete_team is True

        locations = db_session.query(Location).filter(Location.team_id == dto.id).all()
        assert [loc.name for loc in locations] == ["Default Location"]
        membership = db_session.get(TeamMember, (dto.id, admin_user.id))
        assert membership.role == TeamRole.ADMIN
        assert membership.status == MembershipStatus.ACTIVE

    def test_requires_company_membership(self, db_session, outsider_user):
        result = create_team_for_user(db_session, outsider_user.id, {"name": "Solo"})
        assert result.error.status == 403
        assert result.error.error_code == ErrorCode.FORBIDDEN
        assert db_session.query(Team).filter(Team.name == "Solo").count() == 0

    def test_suspended_company_membership_is_not_enough(self, db_session, company, admin_user):
        membership = db_session.get(CompanyMember, (company.id, admin_user.id))
        membership.status = MembershipStatus.SUSPENDED
        db_session.commit()
        result = create_team_for_user(db_session, admin_user.id, {"name": "Solo"})
        assert result.error.error_code == ErrorCode.FORBIDDEN

    def test_viewer_cannot_create(self, db_session, viewer_user):
        result = create_team_for_user(db_session, viewer_user.id, {"name": "Nope"})
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_anonymous(self, db_session):
        result = create_team_for_user(db_session, None, {"name": "Nope"})
        assert result.error.status == 401

    @pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "   "}, {"name": "x" * 256}])
    def test_invalid_name(self, db_session, company, admin_user, payload):
        result = create_team_for_user(db_session, admin_user.id, payload)
        assert result.error.status == 400
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR


class TestReadTeams:

    def test_list_only_active_memberships(self, db_session, team, other_team, admin_user, viewer_user):
        result = list_user_teams(db_session, admin_user.id)
        assert [t.id for t in result.data["teams"]] == [team.id]

        membership = db_session.get(TeamMember, (team.id, viewer_user.id))
        membership.status = MembershipStatus.SUSPENDED
        db_session.commit()
        assert list_user_teams(db_session, viewer_user.id).data["teams"] == []

    def test_list_carries_stats_and_role(self, db_session, team, item, admin_user, operator_user):
        StockLedger(db_session).apply_stock_transaction(
            item_id=item.id,
            team_id=team.id,
            transaction_type=TransactionType.STOCK_IN,
            quantity=Decimal("1"),
            user_id=admin_user.id,
        )
        dto = list_user_teams(db_session, operator_user.id).data["teams"][0]
        assert dto.item_count == 1
        assert dto.transaction_count == 1
        assert dto.member_count == 3
        assert dto.team_role == "operator"
        assert dto.can_delete_team is False

    def test_list_requires_identity(self, db_session):
        assert list_user_teams(db_session, None).error.status == 401
        assert list_user_teams(db_session, 999).error.status == 401

    def test_get_team(self, db_session, team, viewer_user):
        result = get_team_for_user(db_session, team.id, viewer_user.id)
        assert result.data["team"].name == "Warehouse"
        assert result.data["team"].team_role == "viewer"

    def test_get_team_outsider(self, db_session, team, outsider_user):
        assert get_team_for_user(db_session, team.id, outsider_user.id).error.status == 403


class TestUpdateTeam:

    def test_updates_only_given_fields(self, db_session, team, admin_user):
        team.notes = "keep me"
        db_session.commit()
        result = update_team_details(db_session, team.id, admin_user.id, {"name": "Main Warehouse"})
        assert result.ok
        assert result.data["team"].name == "Main Warehouse"
        assert result.data["team"].notes == "keep me"

    def test_updates_label_and_company_name(self, db_session, team, company, admin_user):
        result = update_team_details(
            db_session, team.id, admin_user.id,
            {"labelCompanyInfo": "Acme, Dock 4", "companyName": "Acme Logistics"},
        )
        assert result.ok
        assert result.data["team"].label_company_info == "Acme, Dock 4"
        db_session.expire_all()
        assert db_session.get(Company, company.id).name == "Acme Logistics"

    def test_company_name_rolls_back_when_team_write_fails(
        self, db_session, team, company, admin_user, monkeypatch
    ):
        def fail(*args, **kwargs):
            raise RuntimeError("write failed")

        monkeypatch.setattr("stockroom.store.teams.update_team", fail)
        result = update_team_details(
            db_session, team.id, admin_user.id, {"name": "Renamed", "companyName": "Changed Co"}
        )
        assert result.error.status == 500
        db_session.expire_all()
        assert db_session.get(Company, company.id).name == "Acme Supplies"
        assert db_session.get(Team, team.id).name == "Warehouse"

    def test_blank_company_name_rejected(self, db_session, team, admin_user):
        result = update_team_details(db_session, team.id, admin_user.id, {"companyName": "  "})
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR

    def test_operator_cannot_update(self, db_session, team, operator_user):
        result = update_team_details(db_session, team.id, operator_user.id, {"name": "Mine"})
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_unknown_team(self, db_session, admin_user):
        result = update_team_details(db_session, 999, admin_user.id, {"name": "Ghost"})
        assert result.error.status == 404


class TestDeleteTeam:

    @pytest.mark.parametrize("status", ["active", "trialing", "past_due", "canceling"])
    def test_blocked_while_subscription_runs(self, db_session, team, admin_user, status):
        team.stripe_subscription_status = status
        db_session.commit()

        result = delete_team_with_authorization(db_session, team.id, admin_user.id)
        assert result.error.status == 409
        assert result.error.error_code == ErrorCode.VALIDATION_ERROR
        db_session.expire_all()
        assert db_session.get(Team, team.id) is not None

    @pytest.mark.parametrize("status", [None, "canceled", "incomplete_expired", "unpaid"])
    def test_allowed_for_inactive_subscription(self, db_session, team, admin_user, status):
        team.stripe_subscription_status = status
        db_session.commit()
        assert delete_team_with_authorization(db_session, team.id, admin_user.id).ok

    def test_cascades_to_everything_the_team_owns(
        self, db_session, team, company, other_team, item, admin_user, location_b
    ):
        StockLedger(db_session).apply_stock_transaction(
            item_id=item.id,
            team_id=team.id,
            transaction_type=TransactionType.MOVE,
            quantity=Decimal("1"),
            user_id=admin_user.id,
            destination_location_id=location_b.id,
        )
        foreign = Location(team_id=other_team.id, name="Kept")
        db_session.add(foreign)
        db_session.commit()

        result = delete_team_with_authorization(db_session, team.id, admin_user.id)
        assert result.ok

        db_session.expire_all()
        assert db_session.get(Team, team.id) is None
        assert db_session.query(Item).filter(Item.team_id == team.id).count() == 0
        assert db_session.query(Location).filter(Location.team_id == team.id).count() == 0
        assert db_session.query(StockTransaction).filter(StockTransaction.team_id == team.id).count() == 0
        assert db_session.query(TeamMember).filter(TeamMember.team_id == team.id).count() == 0
        assert db_session.get(Team, other_team.id) is not None
        assert db_session.query(Location).filter(Location.team_id == other_team.id).count() == 1
        # Company and its membership are not team-owned
        assert db_session.get(CompanyMember, (company.id, admin_user.id)) is not None

    def test_operator_cannot_delete(self, db_session, team, operator_user):
        result = delete_team_with_authorization(db_session, team.id, operator_user.id)
        assert result.error.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS
