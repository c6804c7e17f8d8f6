"""
Auth Blueprint — JWT authentication.

  POST /api/v1/auth/login  — username + password → access token
"""

import logging

from flask import Blueprint, jsonify, request

from kimtex_nav.core.exceptions import AuthenticationError
from kimtex_nav.services.directory_service import authenticate
from kimtex_nav.services.jwt_service import issue_token
from kimtex_nav.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


@auth_bp.errorhandler(AuthenticationError)
def _handle_auth_error(error: AuthenticationError):
    return api_error(E.AUTH_INVALID, str(error))


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with username + password, return an access token.

    Body: { "username": "...", "password": "..." }
    """
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip().lower()
    password = data.get("password") or ""

    if not username or not password:
        return api_error(E.VALIDATION_REQUIRED, "Username and password are required")

    user = authenticate(username, password)
    token = issue_token(user.id, user.role_names)
    logger.info("User %s logged in", user.id)

    return jsonify({**token, "user": user.to_dict()}), 200
