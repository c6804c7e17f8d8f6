"""
Navigation Blueprint — resolved sidebar / top navigation for the current user.

    GET  /api/v1/navigation?path=&title=                 — navigation document
    POST /api/v1/navigation/sections/<key>/toggle?path=  — flip one section
    GET  /api/v1/navigation/catalog                      — unfiltered catalog

Expansion state and the last seen identity live in the Flask session.
"""

import logging

from flask import Blueprint, current_app, g, jsonify, request, session

from kimtex_nav.blueprints import get_directory
from kimtex_nav.core.exceptions import NotFoundError, ValidationError
from kimtex_nav.middleware.jwt_auth import require_jwt
from kimtex_nav.services.capability_service import resolve_capabilities
from kimtex_nav.services.menu_state import MenuExpansion
from kimtex_nav.services.navigation_catalog import (
    catalog_to_dict,
    visible_sections,
)
from kimtex_nav.services.navigation_service import build_navigation, note_identity
from kimtex_nav.utils.errors import E, api_error

logger = logging.getLogger(__name__)

navigation_bp = Blueprint("navigation_bp", __name__, url_prefix="/api/v1/navigation")

SESSION_USER_KEY = "nav_user_id"
SESSION_EXPANSION_KEY = "nav_expansion"


@navigation_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@navigation_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


# ═══════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════
def _request_path() -> str:
    path = request.args.get("path", "/")
    if not path.startswith("/"):
        raise ValidationError("path must start with '/'", details={"path": path})
    return path


def _load_expansion(directory, user_id) -> MenuExpansion:
    """Expansion state for this session; reset when the identity changed."""
    previous = session.get(SESSION_USER_KEY)
    if note_identity(directory, previous, user_id):
        session[SESSION_USER_KEY] = user_id
        return MenuExpansion()
    return MenuExpansion.from_dict(session.get(SESSION_EXPANSION_KEY))


def _render(directory, user_id, path, expansion):
    document = build_navigation(
        directory,
        user_id,
        path,
        expansion=expansion,
        title=request.args.get("title") or None,
        app_name=current_app.config.get("APP_DISPLAY_NAME", "Kimtex ERP"),
    )
    logger.debug(
        "Navigation rendered for path=%s", path,
        extra={"user_id": user_id, "section": document["active_section"]},
    )
    session[SESSION_EXPANSION_KEY] = expansion.to_dict()
    return jsonify(document), 200


# ═══════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════
@navigation_bp.route("", methods=["GET"])
@require_jwt
def get_navigation():
    path = _request_path()
    directory = get_directory()
    expansion = _load_expansion(directory, g.jwt_user_id)
    return _render(directory, g.jwt_user_id, path, expansion)


@navigation_bp.route("/sections/<key>/toggle", methods=["POST"])
@require_jwt
def toggle_section(key):
    path = _request_path()
    directory = get_directory()
    user_id = g.jwt_user_id
    expansion = _load_expansion(directory, user_id)

    user = directory.user(user_id)
    flags = resolve_capabilities(directory.roles(user_id), directory.departments(), user)
    expansion.sync(visible_sections(flags), path)
    expanded = expansion.toggle(key)
    logger.info(
        "Section %s toggled to expanded=%s", key, expanded,
        extra={"user_id": user_id, "section": key},
    )

    return _render(directory, user_id, path, expansion)


@navigation_bp.route("/catalog", methods=["GET"])
@require_jwt
def get_catalog():
    return jsonify(catalog_to_dict()), 200
