"""
Directory Service — read-only access to departments, users, roles, permissions.

Query functions return plain JSON-ready dicts (the same shapes the HTTP
endpoints serve). ``DirectoryGateway`` wraps them with a ``QueryCache``:

    departments      → "departments"
    roles of <uid>   → "roles:<uid>"
    perms of <uid>   → "perms:<uid>"

An unknown user id is not an error: roles and permissions come back empty.
"""

import logging

from kimtex_nav.core.exceptions import AuthenticationError
from kimtex_nav.models import db
from kimtex_nav.models.auth import (
    Department,
    Permission,
    Role,
    RolePermission,
    User,
    UserRole,
)
from kimtex_nav.services.cache_service import DEPARTMENTS_KEY, perms_key, roles_key
from kimtex_nav.utils.crypto import verify_password

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════

def list_departments() -> list[dict]:
    rows = Department.query.order_by(Department.id).all()
    return [d.to_dict() for d in rows]


def get_user(user_id) -> User | None:
    if user_id is None:
        return None
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def get_user_roles(user_id) -> list[dict]:
    """Roles assigned to the user, sorted by name."""
    user = get_user(user_id)
    if user is None:
        return []
    rows = (
        db.session.query(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user.id)
        .order_by(Role.name)
        .all()
    )
    return [r.to_dict() for r in rows]


def get_user_permissions(user_id) -> list[dict]:
    """Distinct permission codes granted through any of the user's roles."""
    user = get_user(user_id)
    if user is None:
        return []
    rows = (
        db.session.query(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .filter(UserRole.user_id == user.id)
        .distinct()
        .order_by(Permission.code)
        .all()
    )
    return [{"code": code} for (code,) in rows]


def authenticate(username: str, password: str) -> User:
    """Return the active user matching the credentials.

    Raises:
        AuthenticationError: unknown user, wrong password or inactive account.
    """
    user = User.query.filter_by(username=username).first()
    if user is None or not user.is_active:
        logger.info("Login rejected for username=%s", username)
        raise AuthenticationError()
    if not verify_password(password, user.password_hash):
        logger.info("Login rejected for username=%s (bad password)", username)
        raise AuthenticationError()
    return user


# ═══════════════════════════════════════════════════════════════
# Cached gateway
# ═══════════════════════════════════════════════════════════════

class DirectoryGateway:
    """Directory lookups fronted by a query cache."""

    def __init__(self, cache):
        self.cache = cache

    def departments(self) -> list[dict]:
        return self.cache.get_or_load(DEPARTMENTS_KEY, list_departments) or []

    def roles(self, user_id) -> list[dict]:
        if user_id is None:
            return []
        return self.cache.get_or_load(roles_key(user_id), lambda: get_user_roles(user_id)) or []

    def permissions(self, user_id) -> list[dict]:
        if user_id is None:
            return []
        return self.cache.get_or_load(perms_key(user_id), lambda: get_user_permissions(user_id)) or []

    def user(self, user_id) -> dict | None:
        """The user record, always read fresh."""
        user = get_user(user_id)
        return user.to_dict() if user is not None else None

    def invalidate_user(self, user_id) -> None:
        self.cache.invalidate_user(user_id)
