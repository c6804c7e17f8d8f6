"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — dependency status (DB, cache, catalog)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from kimtex_nav.models import db
from kimtex_nav.services.navigation_catalog import duplicate_hrefs, find_shadowed_prefixes

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── Query cache (Redis optional — never fails overall health) ────
    checks["cache"] = current_app.extensions["query_cache"].health_check()

    # ── Navigation catalog ───────────────────────────────────────────
    shadowed = find_shadowed_prefixes()
    duplicates = duplicate_hrefs()
    checks["catalog"] = {
        "status": "ok" if not shadowed and not duplicates else "warning",
        "shadowed_prefixes": [list(pair) for pair in shadowed],
        "duplicate_hrefs": duplicates,
    }

    checks["app"] = {
        "name": current_app.config.get("APP_DISPLAY_NAME"),
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
