"""
User & reference-data endpoints consumed by the navigation shell.

    GET /api/v1/admin/departments  — [{id, code, name, color}]
    GET /api/v1/user/roles         — [{name}] of the current user
    GET /api/v1/user/permissions   — [{code}] of the current user
    GET /api/v1/user/me            — current user record + capability flags
"""

import logging

from flask import Blueprint, g, jsonify

from kimtex_nav.blueprints import get_directory
from kimtex_nav.core.exceptions import NotFoundError
from kimtex_nav.middleware.jwt_auth import require_jwt
from kimtex_nav.services.capability_service import resolve_capabilities
from kimtex_nav.utils.errors import E, api_error

logger = logging.getLogger(__name__)

user_bp = Blueprint("user_bp", __name__, url_prefix="/api/v1")


@user_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@user_bp.route("/admin/departments", methods=["GET"])
@require_jwt
def list_departments():
    return jsonify(get_directory().departments()), 200


@user_bp.route("/user/roles", methods=["GET"])
@require_jwt
def user_roles():
    return jsonify(get_directory().roles(g.jwt_user_id)), 200


@user_bp.route("/user/permissions", methods=["GET"])
@require_jwt
def user_permissions():
    return jsonify(get_directory().permissions(g.jwt_user_id)), 200


@user_bp.route("/user/me", methods=["GET"])
@require_jwt
def me():
    directory = get_directory()
    user = directory.user(g.jwt_user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=g.jwt_user_id)
    flags = resolve_capabilities(
        directory.roles(g.jwt_user_id), directory.departments(), user,
    )
    return jsonify({**user, "capabilities": flags.granted()}), 200
