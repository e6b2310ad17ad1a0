"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — database liveness
    GET /api/v1/health/db-diag — which permission tables exist and which
                                 migration creates any that are missing
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from advocacy.models import db
from advocacy.services.override_store import (
    OVERRIDES_MIGRATION,
    ROLE_DEFAULTS_MIGRATION,
)

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")

# table -> migration that creates it
_TABLES = {
    "profiles": "0001_profiles_and_congress",
    "congress_events": "0001_profiles_and_congress",
    "congress_assignments": "0001_profiles_and_congress",
    "user_space_permissions": OVERRIDES_MIGRATION,
    "permission_audit_log": OVERRIDES_MIGRATION,
    "role_space_default_overrides": ROLE_DEFAULTS_MIGRATION,
    "session_preferences": "0004_session_preferences",
}


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check with database round-trip."""
    checks = {}
    overall = True

    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    checks["app"] = {
        "name": "Advocacy Hub",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code


@health_bp.route("/db-diag", methods=["GET"])
def db_diagnostic():
    """Check every table is queryable; name the migration for any that is not."""
    results = {}
    missing = []
    inspector = db.inspect(db.engine)
    for table, migration in _TABLES.items():
        if inspector.has_table(table):
            results[table] = {"status": "ok"}
        else:
            results[table] = {"status": "missing", "migration": migration}
            missing.append(migration)

    return jsonify({
        "status": "ok" if not missing else "migrations_required",
        "tables": results,
        "migrations_required": sorted(set(missing)),
    }), 200
