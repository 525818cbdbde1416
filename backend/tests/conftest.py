"""Pytest configuration and fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BILLING_ENFORCE_SUBSCRIPTION", "false")

import pytest
from decimal import Decimal
from typing import Callable, Generator

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from stockroom.core.security import create_access_token, get_password_hash
from stockroom.db.session import Database, get_db
from stockroom.main import app
from stockroom.models import (
    Company,
    CompanyMember,
    CompanyRole,
    Item,
    Location,
    MembershipStatus,
    Team,
    TeamMember,
    TeamRole,
    User,
    UserRole,
)

TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "testpass123"


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """In-memory store handle; every session shares the one connection."""
    database = Database(TEST_DATABASE_URL)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture(scope="function")
def db_session(database: Database) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    from stockroom.core.rate_limit import limiter
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory for committed users."""
    def _make(email: str, role: UserRole = UserRole.ADMIN, password: str = TEST_PASSWORD) -> User:
        user = User(email=email, password_hash=get_password_hash(password), role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def add_member(db_session: Session) -> Callable[..., TeamMember]:
    def _add(
        team: Team,
        user: User,
        role: TeamRole,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> TeamMember:
        membership = TeamMember(team_id=team.id, user_id=user.id, role=role, status=status)
        db_session.add(membership)
        db_session.commit()
        return membership

    return _add


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("admin@example.com", UserRole.ADMIN)


@pytest.fixture
def operator_user(make_user) -> User:
    return make_user("operator@example.com", UserRole.OPERATOR)


@pytest.fixture
def viewer_user(make_user) -> User:
    return make_user("viewer@example.com", UserRole.VIEWER)


@pytest.fixture
def outsider_user(make_user) -> User:
    """A user with no membership in the test team."""
    return make_user("outsider@example.com", UserRole.ADMIN)


@pytest.fixture
def company(db_session: Session, admin_user: User) -> Company:
    company = Company(name="Acme Supplies", slug="acme-supplies")
    db_session.add(company)
    db_session.flush()
    db_session.add(CompanyMember(
        company_id=company.id,
        user_id=admin_user.id,
        role=CompanyRole.OWNER,
        status=MembershipStatus.ACTIVE,
    ))
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def team(
    db_session: Session,
    company: Company,
    admin_user: User,
    operator_user: User,
    viewer_user: User,
    add_member,
) -> Team:
    """Team with one admin, one operator and one viewer."""
    team = Team(name="Warehouse", user_id=admin_user.id, company_id=company.id)
    db_session.add(team)
    db_session.commit()
    db_session.refresh(team)
    add_member(team, admin_user, TeamRole.ADMIN)
    add_member(team, operator_user, TeamRole.OPERATOR)
    add_member(team, viewer_user, TeamRole.VIEWER)
    return team


@pytest.fixture
def other_team(db_session: Session, outsider_user: User, add_member) -> Team:
    """A second tenant the test team's members do not belong to."""
    team = Team(name="Elsewhere", user_id=outsider_user.id)
    db_session.add(team)
    db_session.commit()
    db_session.refresh(team)
    add_member(team, outsider_user, TeamRole.ADMIN)
    return team


@pytest.fixture
def location_a(db_session: Session, team: Team) -> Location:
    location = Location(team_id=team.id, name="Shelf A", description="Front shelf")
    db_session.add(location)
    db_session.commit()
    db_session.refresh(location)
    return location


@pytest.fixture
def location_b(db_session: Session, team: Team) -> Location:
    location = Location(team_id=team.id, name="Shelf B")
    db_session.add(location)
    db_session.commit()
    db_session.refresh(location)
    return location


@pytest.fixture
def item(db_session: Session, team: Team, location_a: Location) -> Item:
    """Item holding 5 units at Shelf A."""
    item = Item(
        team_id=team.id,
        location_id=location_a.id,
        name="Hex Bolt M8",
        sku="HB-M8",
        barcode="4006381333931",
        initial_quantity=Decimal("5"),
        current_stock=Decimal("5"),
        minimum_stock=Decimal("2"),
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


def auth_headers(user: User) -> dict:
    """Bearer headers for a user."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict]:
    return auth_headers
