"""
Shared pytest fixtures for the Onboarding Buddy test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - org / other_org: organizations seeded with the default checklist
    - admin / employee / super_admin / other_admin: users with access tokens
    - make_org, make_user, auth_headers: factories for ad-hoc setups
"""

import pytest

from onboarding import create_app
from onboarding.models import db as _db
from onboarding.models.organization import Organization
from onboarding.models.user import ADMIN, EMPLOYEE, SUPER_ADMIN
from onboarding.services import employee_service, template_service
from onboarding.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


def _make_org(name="Acme", *, buddy_enabled=True, with_checklist=True):
    org = Organization(name=name, buddy_enabled=buddy_enabled)
    _db.session.add(org)
    _db.session.flush()
    if with_checklist:
        template_service.create_default_checklist(org)
    _db.session.commit()
    return org


def _make_user(org, role=EMPLOYEE, email=None, name=None):
    email = email or f"{role.lower()}@{org.name.lower()}.com"
    user = employee_service.create_user(org.id, name or email.split("@")[0], email, role)
    _db.session.commit()
    return user


def _auth_headers(user):
    return {"Authorization": f"Bearer {generate_access_token(user.id)}"}


@pytest.fixture()
def make_org():
    return _make_org


@pytest.fixture()
def make_user():
    return _make_user


@pytest.fixture()
def auth_headers():
    return _auth_headers


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def org():
    """Organization "Acme" with the default checklist."""
    return _make_org("Acme")


@pytest.fixture()
def other_org():
    return _make_org("Globex")


@pytest.fixture()
def checklist(org):
    return org.checklist


@pytest.fixture()
def admin(org):
    return _make_user(org, ADMIN, "admin@acme.com", "Ada Admin")


@pytest.fixture()
def employee(org):
    return _make_user(org, EMPLOYEE, "emma@acme.com", "Emma Employee")


@pytest.fixture()
def super_admin(org):
    return _make_user(org, SUPER_ADMIN, "root@acme.com", "Sam Super")


@pytest.fixture()
def other_admin(other_org):
    return _make_user(other_org, ADMIN, "admin@globex.com", "Gil Globex")


@pytest.fixture()
def admin_headers(admin):
    return _auth_headers(admin)


@pytest.fixture()
def employee_headers(employee):
    return _auth_headers(employee)


@pytest.fixture()
def super_headers(super_admin):
    return _auth_headers(super_admin)


@pytest.fixture()
def other_headers(other_admin):
    return _auth_headers(other_admin)
