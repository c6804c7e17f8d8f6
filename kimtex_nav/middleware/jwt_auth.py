"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.jwt_*.

The middleware never rejects a request: a missing, expired or invalid
token leaves ``g.jwt_user_id`` as None and the endpoint decides (the
navigation and user endpoints answer 401 through ``require_jwt``).
"""

import logging
from functools import wraps

import jwt as pyjwt
from flask import g, request

from kimtex_nav.services.jwt_service import decode_access_token
from kimtex_nav.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_roles = []

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
            g.jwt_user_id = payload.get("sub")
            g.jwt_roles = payload.get("roles", [])
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired JWT on %s", path)
        except pyjwt.InvalidTokenError as exc:
            logger.debug("Invalid JWT on %s: %s", path, exc)


def require_jwt(fn):
    """Reject the request with 401 unless the middleware set a user."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not getattr(g, "jwt_user_id", None):
            return api_error(E.AUTH_REQUIRED, "Authentication required (JWT)")
        return fn(*args, **kwargs)

    return wrapper
