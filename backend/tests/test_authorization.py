"""Tests for the team permission gate."""

import pytest

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import (
    AuthDenied,
    AuthGranted,
    Permission,
    TEAM_PERMISSION_ROLES,
    authorize,
    authorize_global,
    authorize_team_access,
    has_team_permission,
)
from stockroom.models import MembershipStatus, TeamMember, TeamRole, UserRole


class TestRoleMatrix:

    @pytest.mark.parametrize("permission", list(TEAM_PERMISSION_ROLES))
    def test_admin_holds_every_team_permission(self, permission):
        assert has_team_permission(TeamRole.ADMIN, permission)

    @pytest.mark.parametrize("permission", [
        Permission.ITEM_WRITE,
        Permission.ITEM_DELETE,
        Permission.LOCATION_WRITE,
        Permission.LOCATION_DELETE,
        Permission.STOCK_WRITE,
    ])
    def test_operator_does_inventory_work(self, permission):
        assert has_team_permission(TeamRole.OPERATOR, permission)

    @pytest.mark.parametrize("permission", [
        Permission.TEAM_UPDATE,
        Permission.TEAM_DELETE,
        Permission.TRANSACTION_DELETE,
    ])
    def test_operator_cannot_administer(self, permission):
        assert not has_team_permission(TeamRole.OPERATOR, permission)

    def test_viewer_only_reads(self):
        granted = [p for p in TEAM_PERMISSION_ROLES if has_team_permission(TeamRole.VIEWER, p)]
        assert granted == [Permission.TEAM_READ]

    def test_global_permission_is_not_a_team_permission(self):
        assert not has_team_permission(TeamRole.ADMIN, Permission.TEAM_CREATE)


class TestAuthorize:

    def test_missing_identity_is_401(self, db_session, team):
        result = authorize(db_session, Permission.TEAM_READ, team.id, None)
        assert isinstance(result, AuthDenied)
        assert result.status == 401
        assert result.error_code == ErrorCode.USER_NOT_AUTHENTICATED

    def test_missing_identity_wins_over_missing_team(self, db_session):
        result = authorize(db_session, Permission.TEAM_READ, 999, None)
        assert result.status == 401

    def test_missing_team_is_404(self, db_session, admin_user):
        result = authorize(db_session, Permission.TEAM_READ, 999, admin_user.id)
        assert result.status == 404
        assert result.error_code == ErrorCode.TEAM_NOT_FOUND

    def test_missing_team_wins_over_unknown_user(self, db_session):
        result = authorize(db_session, Permission.TEAM_READ, 999, 12345)
        assert result.error_code == ErrorCode.TEAM_NOT_FOUND

    def test_unknown_user_is_401(self, db_session, team):
        result = authorize(db_session, Permission.TEAM_READ, team.id, 12345)
        assert result.status == 401
        assert result.error_code == ErrorCode.USER_NOT_AUTHENTICATED

    def test_non_member_is_forbidden(self, db_session, team, outsider_user):
        result = authorize(db_session, Permission.TEAM_READ, team.id, outsider_user.id)
        assert result.status == 403
        assert result.error_code == ErrorCode.FORBIDDEN

    def test_suspended_member_is_forbidden(self, db_session, team, operator_user):
        membership = db_session.get(TeamMember, (team.id, operator_user.id))
        membership.status = MembershipStatus.SUSPENDED
        db_session.commit()

        result = authorize(db_session, Permission.TEAM_READ, team.id, operator_user.id)
        assert result.error_code == ErrorCode.FORBIDDEN

    def test_invited_member_is_forbidden(self, db_session, team, make_user, add_member):
        invited = make_user("invited@example.com")
        add_member(team, invited, TeamRole.ADMIN, MembershipStatus.INVITED)
        result = authorize(db_session, Permission.TEAM_READ, team.id, invited.id)
        assert result.error_code == ErrorCode.FORBIDDEN

    def test_role_too_low(self, db_session, team, viewer_user):
        result = authorize(db_session, Permission.STOCK_WRITE, team.id, viewer_user.id)
        assert result.status == 403
        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS
        assert result.error == "Insufficient permissions"

    def test_team_role_decides_not_global_role(self, db_session, team, viewer_user, outsider_user, add_member):
        # outsider is a global admin but only a viewer here
        add_member(team, outsider_user, TeamRole.VIEWER)
        result = authorize(db_session, Permission.STOCK_WRITE, team.id, outsider_user.id)
        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_granted_carries_context(self, db_session, team, operator_user):
        result = authorize(db_session, Permission.STOCK_WRITE, team.id, operator_user.id)
        assert isinstance(result, AuthGranted)
        assert result.ok
        assert result.team.id == team.id
        assert result.user.id == operator_user.id
        assert result.team_role == TeamRole.OPERATOR

    def test_membership_in_one_team_grants_nothing_in_another(self, db_session, other_team, admin_user):
        result = authorize(db_session, Permission.TEAM_READ, other_team.id, admin_user.id)
        assert result.error_code == ErrorCode.FORBIDDEN

    def test_repeated_calls_agree_and_write_nothing(self, db_session, team, viewer_user):
        first = authorize(db_session, Permission.ITEM_WRITE, team.id, viewer_user.id)
        second = authorize(db_session, Permission.ITEM_WRITE, team.id, viewer_user.id)
        assert first == second
        assert not db_session.new
        assert not db_session.dirty

    def test_team_access_is_read_permission(self, db_session, team, viewer_user):
        assert authorize_team_access(db_session, team.id, viewer_user.id).ok


class TestAuthorizeGlobal:

    def test_admin_and_operator_may_create_teams(self, db_session, admin_user, operator_user):
        assert authorize_global(db_session, Permission.TEAM_CREATE, admin_user.id).ok
        assert authorize_global(db_session, Permission.TEAM_CREATE, operator_user.id).ok

    def test_viewer_may_not_create_teams(self, db_session, viewer_user):
        result = authorize_global(db_session, Permission.TEAM_CREATE, viewer_user.id)
        assert result.status == 403
        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_anonymous(self, db_session):
        assert authorize_global(db_session, Permission.TEAM_CREATE, None).status == 401

    def test_unknown_user(self, db_session):
        assert authorize_global(db_session, Permission.TEAM_CREATE, 4242).status == 401

    def test_unmapped_permission_is_denied(self, db_session, make_user):
        user = make_user("root@example.com", UserRole.ADMIN)
        result = authorize_global(db_session, Permission.TEAM_DELETE, user.id)
        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS
