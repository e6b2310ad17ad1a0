"""
Admin Permissions Blueprint — override administration API.

API Endpoints (JSON):
  GET    /api/v1/admin/permissions                          — Overview of users + overrides
  GET    /api/v1/admin/permissions/role-defaults            — Effective role × space matrix
  PUT    /api/v1/admin/permissions/role-defaults            — Set a role default override
  PUT    /api/v1/admin/permissions/users/<id>/overrides     — Set a user override
  DELETE /api/v1/admin/permissions/users/<id>/overrides     — Remove a user override
  GET    /api/v1/admin/permissions/users/<id>/explain       — Resolved level + deciding layer
  PUT    /api/v1/admin/users/<id>/role                      — Change a platform role
  PUT    /api/v1/admin/view-as                              — Set / clear the view-as preview

Reads are guarded by the resolver on the ``admin`` space.  Writes go through
the admin actions, which re-check PlatformAdmin on every call and return a
result dict that is mapped to an HTTP status here.
"""

import logging

from flask import Blueprint, jsonify, request

from advocacy.core.exceptions import ValidationError
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.services import admin_actions
from advocacy.services.admin_permissions_service import (
    load_admin_permissions_data,
    load_role_defaults_matrix,
)
from advocacy.services.permission_service import explain_access, get_platform_role, require_access
from advocacy.services.view_as import set_view_as_role
from advocacy.utils.errors import E, api_error

logger = logging.getLogger(__name__)

admin_permissions_bp = Blueprint("admin_permissions_bp", __name__, url_prefix="/api/v1/admin")


def _result_response(result: dict):
    """Map an admin action result to a JSON response."""
    if result.get("error"):
        return api_error(result.get("code") or E.INTERNAL, result["error"])
    return jsonify({"error": None}), 200


def _body() -> dict:
    return request.get_json(silent=True) or {}


# ═══════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════

@admin_permissions_bp.route("/permissions", methods=["GET"])
@require_access("admin", "view")
def permissions_overview():
    return jsonify(load_admin_permissions_data())


@admin_permissions_bp.route("/permissions/role-defaults", methods=["GET"])
@require_access("admin", "view")
def role_defaults():
    matrix, warning = load_role_defaults_matrix()
    return jsonify({"matrix": matrix, "warning": warning})


@admin_permissions_bp.route("/permissions/users/<user_id>/explain", methods=["GET"])
@require_access("admin", "view")
def explain_user_access(user_id):
    """Which layer decided a user's access on a space (and scope)."""
    profile = db.session.get(Profile, user_id)
    if profile is None:
        return api_error(E.NOT_FOUND, "Target user not found")

    space = request.args.get("space", "").strip()
    if not space:
        return api_error(E.VALIDATION_REQUIRED, "space is required")
    try:
        decision = explain_access(
            user_id,
            get_platform_role(user_id),
            space,
            request.args.get("scope_type") or "global",
            request.args.get("scope_id") or None,
        )
    except ValidationError as exc:
        return api_error(E.VALIDATION_SCOPE, str(exc))
    return jsonify(decision)


# ═══════════════════════════════════════════════════════════════
# Writes (admin actions)
# ═══════════════════════════════════════════════════════════════

@admin_permissions_bp.route("/permissions/users/<user_id>/overrides", methods=["PUT"])
def set_user_override(user_id):
    data = _body()
    result = admin_actions.set_permission_override(
        user_id,
        data.get("space"),
        data.get("access_level"),
        scope_type=data.get("scope_type") or "global",
        scope_id=data.get("scope_id"),
    )
    return _result_response(result)


@admin_permissions_bp.route("/permissions/users/<user_id>/overrides", methods=["DELETE"])
def remove_user_override(user_id):
    data = _body() or request.args
    result = admin_actions.remove_permission_override(
        user_id,
        data.get("space"),
        scope_type=data.get("scope_type") or "global",
        scope_id=data.get("scope_id"),
    )
    return _result_response(result)


@admin_permissions_bp.route("/permissions/role-defaults", methods=["PUT"])
def set_role_default():
    data = _body()
    result = admin_actions.set_role_default_override(
        data.get("role"), data.get("space"), data.get("access_level"),
    )
    return _result_response(result)


@admin_permissions_bp.route("/users/<user_id>/role", methods=["PUT"])
def set_user_role(user_id):
    result = admin_actions.set_platform_role(user_id, _body().get("role"))
    return _result_response(result)


@admin_permissions_bp.route("/view-as", methods=["PUT"])
def set_view_as():
    result = set_view_as_role(_body().get("role"))
    return _result_response(result)
