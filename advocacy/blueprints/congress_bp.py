"""
Congress Blueprint — congress events, workspace navigation and assignments.

API Endpoints (JSON):
  GET  /api/v1/congress/events                                   — List events
  GET  /api/v1/congress/events/<id>                              — Event + stage + workspace nav
  GET  /api/v1/congress/events/<id>/assignments                  — Assignments (?on=YYYY-MM-DD)
  PUT  /api/v1/congress/events/<id>/assignments/<user_id>        — Replace a user's project roles
  GET  /api/v1/congress/events/<id>/responsibility               — "Why can / can't I edit"

The workspace nav ``emphasized`` flag is styling only; the section routes
themselves are guarded by the resolver alone.
"""

import logging
from datetime import date

from flask import Blueprint, g, jsonify, request

from advocacy.core.exceptions import NotFoundError, ValidationError
from advocacy.models import db
from advocacy.models.congress import CongressEvent
from advocacy.services.congress_assignments import (
    effective_project_roles,
    list_assignments,
    set_congress_roles,
)
from advocacy.services.congress_policy import (
    CONGRESS_ACTIONS,
    can_perform_congress_action,
    responsibility_summary,
)
from advocacy.services.permission_service import (
    get_platform_role,
    has_access,
    require_access,
)
from advocacy.services.stage_gate import SECTION_KEYS, stage_info, workspace_nav
from advocacy.utils.errors import E, api_error

logger = logging.getLogger(__name__)

congress_bp = Blueprint("congress_bp", __name__, url_prefix="/api/v1/congress")


def _parse_date(value: str | None):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return False


@congress_bp.route("/events", methods=["GET"])
@require_access("congress", "view")
def list_events():
    events = CongressEvent.query.order_by(CongressEvent.year.desc(), CongressEvent.title).all()
    return jsonify([e.to_dict() for e in events])


@congress_bp.route("/events/<congress_id>", methods=["GET"])
@require_access("congress", "view", scope_type="congress", scope_arg="congress_id")
def get_event(congress_id):
    event = db.session.get(CongressEvent, congress_id)
    if event is None:
        return api_error(E.NOT_FOUND, "Congress event not found")

    active = request.args.get("section")
    if active and active not in SECTION_KEYS:
        return api_error(E.VALIDATION_INVALID, "Invalid workspace section")

    data = event.to_dict()
    data["stage"] = stage_info(event.status)
    data["workspace_nav"] = workspace_nav(event.status, active or "overview")
    data["access_level"] = g.access_decision["access_level"]
    return jsonify(data)


@congress_bp.route("/events/<congress_id>/assignments", methods=["GET"])
@require_access("congress", "view", scope_type="congress", scope_arg="congress_id")
def get_assignments(congress_id):
    if db.session.get(CongressEvent, congress_id) is None:
        return api_error(E.NOT_FOUND, "Congress event not found")

    on_date = _parse_date(request.args.get("on"))
    if on_date is False:
        return api_error(E.VALIDATION_INVALID, "on must be an ISO date (YYYY-MM-DD)")

    items = list_assignments(congress_id, user_id=request.args.get("user_id"), on_date=on_date)
    return jsonify([a.to_dict() for a in items])


@congress_bp.route("/events/<congress_id>/assignments/<user_id>", methods=["PUT"])
@require_access("congress", "manage", scope_type="congress", scope_arg="congress_id")
def put_assignments(congress_id, user_id):
    data = request.get_json(silent=True) or {}
    roles = data.get("roles")
    if not isinstance(roles, list):
        return api_error(E.VALIDATION_REQUIRED, "roles must be a list of congress project roles")

    try:
        items = set_congress_roles(g.current_user_id, user_id, congress_id, roles)
        db.session.commit()
    except NotFoundError as exc:
        db.session.rollback()
        return api_error(E.NOT_FOUND, f"{exc.resource} not found")
    except ValidationError as exc:
        db.session.rollback()
        return api_error(E.VALIDATION_INVALID, str(exc), details=exc.details)

    return jsonify([a.to_dict() for a in items])


@congress_bp.route("/events/<congress_id>/responsibility", methods=["GET"])
@require_access("congress", "view", scope_type="congress", scope_arg="congress_id")
def get_responsibility(congress_id):
    """Explain the caller's position; never changes what the resolver decided."""
    if db.session.get(CongressEvent, congress_id) is None:
        return api_error(E.NOT_FOUND, "Congress event not found")

    user_id = g.current_user_id
    role = get_platform_role(user_id)
    roles = effective_project_roles(user_id, congress_id)
    summary = responsibility_summary(role, roles).to_dict()
    summary["can_edit"] = has_access(user_id, role, "congress", "edit", "congress", congress_id)
    summary["actions"] = {
        action: can_perform_congress_action(role, action).to_dict()
        for action in CONGRESS_ACTIONS
    }
    return jsonify(summary)
