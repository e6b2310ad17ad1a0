"""
Me Blueprint — what the signed-in user can see.

API Endpoints (JSON):
  GET /api/v1/me/access           — role, view-as role, per-space access and side nav
  GET /api/v1/me/can-access?path= — whether an /app path is reachable
"""

import logging

from flask import Blueprint, g, jsonify, request

from advocacy.services.permission_service import get_platform_role, resolve_all_spaces
from advocacy.services.role_access import can_access_app_path, side_nav_items
from advocacy.services.view_as import get_view_as_role, navigation_role
from advocacy.utils.errors import E, api_error

logger = logging.getLogger(__name__)

me_bp = Blueprint("me_bp", __name__, url_prefix="/api/v1/me")


@me_bp.route("/access", methods=["GET"])
def my_access():
    user_id = getattr(g, "current_user_id", None)
    if not user_id:
        return api_error(E.UNAUTHENTICATED, "Not authenticated")

    role = get_platform_role(user_id)
    access = resolve_all_spaces(user_id, role)
    nav_role = navigation_role(role, user_id, g.session_id)
    if nav_role != role:
        # Previewing: show the other role's menu without this user's own overrides
        nav_access = resolve_all_spaces(None, nav_role)
    else:
        nav_access = access

    return jsonify({
        "user_id": user_id,
        "email": g.current_user_email,
        "role": role,
        "view_as_role": get_view_as_role(user_id, g.session_id),
        "navigation_role": nav_role,
        "access": access,
        "nav": side_nav_items(nav_role, nav_access),
    })


@me_bp.route("/can-access", methods=["GET"])
def my_can_access():
    user_id = getattr(g, "current_user_id", None)
    if not user_id:
        return api_error(E.UNAUTHENTICATED, "Not authenticated")

    path = request.args.get("path", "")
    if not path:
        return api_error(E.VALIDATION_REQUIRED, "path is required")
    access = resolve_all_spaces(user_id, get_platform_role(user_id))
    return jsonify({"path": path, "allowed": can_access_app_path(access, path)})
