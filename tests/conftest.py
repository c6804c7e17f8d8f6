"""
Shared pytest fixtures for the Kimtex ERP navigation test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup + cache flush (autouse)
    - client: Flask test client (function-scoped)
    - make_department / make_user: directory row factories
    - auth_header: Bearer header for a user id
"""

import pytest

from kimtex_nav import create_app
from kimtex_nav.models import db as _db
from kimtex_nav.models.auth import Department, Role, User, UserRole
from kimtex_nav.services.jwt_service import generate_access_token
from kimtex_nav.utils.crypto import hash_password


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
        # Tables are recreated per test and ids are reused; flush the query
        # cache so no test sees another test's roles.
        app.extensions["query_cache"].clear()
        yield
        app.extensions["query_cache"].clear()
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def query_cache(app):
    return app.extensions["query_cache"]


# ── Directory factories ──────────────────────────────────────────────────


@pytest.fixture()
def make_department():
    def _make(code, name=None):
        dept = Department(code=code, name=name or code)
        _db.session.add(dept)
        _db.session.commit()
        return dept
    return _make


@pytest.fixture()
def make_user():
    """Create a user with the given department and role names."""
    def _make(username="user", department=None, roles=(), full_name=None,
              password="secret123", is_active=True):
        user = User(
            username=username,
            password_hash=hash_password(password, rounds=4),
            full_name=full_name or username.title(),
            department_id=department.id if department is not None else None,
            is_active=is_active,
        )
        _db.session.add(user)
        _db.session.flush()
        for name in roles:
            role = Role.query.filter_by(name=name).first()
            if role is None:
                role = Role(name=name)
                _db.session.add(role)
                _db.session.flush()
            _db.session.add(UserRole(user_id=user.id, role_id=role.id))
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def auth_header():
    def _header(user_id):
        return {"Authorization": f"Bearer {generate_access_token(user_id)}"}
    return _header
