"""
Admin permissions overview — read side of the permission admin page.

Both loaders degrade instead of failing: a missing table or a store error
produces partial data plus a human-readable warning naming the cause.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from advocacy.core.exceptions import StoreUnavailableError
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.models.permissions import PermissionOverride
from advocacy.services import override_store
from advocacy.services.access_model import (
    GLOBAL_SCOPE,
    PLATFORM_SPACES,
    is_access_level,
    is_space,
    static_defaults_matrix,
)
from advocacy.services.platform_roles import is_platform_role

logger = logging.getLogger(__name__)

MAX_AUDIT_PER_USER = 5
MAX_SCOPED_PER_USER = 6
AUDIT_WINDOW = 200


def load_role_defaults_matrix() -> tuple[dict[str, dict[str, str]], str | None]:
    """
    Static defaults with stored role-default overrides merged over them.

    Returns:
        (matrix, warning) — ``warning`` is None on a clean load.  Stored rows
        naming an unknown role, space or level are skipped.
    """
    matrix = static_defaults_matrix()
    try:
        rows = override_store.list_role_default_overrides()
    except StoreUnavailableError as exc:
        return matrix, f"role defaults: {exc}"
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Loading role default overrides failed")
        return matrix, f"role defaults: {exc}"

    for row in rows:
        if not is_platform_role(row.role) or not is_space(row.space):
            continue
        if not is_access_level(row.access_level):
            continue
        matrix[row.role][row.space] = row.access_level
    return matrix, None


def summarize_audit_entry(new_value: dict | None, change_type: str) -> str:
    """One-line summary, e.g. ``"tasks: edit (congress:c-1)"``."""
    new_value = new_value or {}
    space = new_value.get("space") if isinstance(new_value.get("space"), str) else "unknown-space"
    level = new_value.get("access_level")
    level = level if isinstance(level, str) else change_type
    scope_type = new_value.get("scope_type") if isinstance(new_value.get("scope_type"), str) else GLOBAL_SCOPE
    scope_id = new_value.get("scope_id") if isinstance(new_value.get("scope_id"), str) else None
    if scope_type == GLOBAL_SCOPE:
        return f"{space}: {level} (global)"
    return f"{space}: {level} ({scope_type}{':' + scope_id if scope_id else ''})"


def _empty_counts() -> dict[str, int]:
    return {space: 0 for space in PLATFORM_SPACES}


def load_admin_permissions_data() -> dict:
    """
    Every profile with its overrides and recent audit history.

    Returns:
        Dict with keys:
          users          — list of per-user dicts (id, name, email, role,
                           overrides, scoped_override_counts,
                           recent_scoped_overrides, recent_audit)
          override_count — number of global overrides across all users
          page_error     — None, or the first load problem encountered
    """
    page_error = None

    try:
        profiles = Profile.query.order_by(Profile.name).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Loading profiles failed")
        return {"users": [], "override_count": 0, "page_error": f"profiles: {exc}"}

    try:
        with override_store.overrides_guard():
            overrides = PermissionOverride.query.all()
    except StoreUnavailableError as exc:
        overrides = []
        page_error = f"overrides: {exc}"

    try:
        audit_rows = override_store.recent_audit_entries(AUDIT_WINDOW)
    except SQLAlchemyError as exc:
        db.session.rollback()
        audit_rows = []
        page_error = page_error or f"audit: {exc}"

    global_by_user: dict[str, dict[str, str]] = {}
    scoped_by_user: dict[str, list[dict]] = {}
    counts_by_user: dict[str, dict[str, int]] = {}
    for o in overrides:
        if not is_space(o.space):
            continue
        if o.scope_type == GLOBAL_SCOPE:
            global_by_user.setdefault(o.user_id, {})[o.space] = o.access_level
            continue
        scoped_by_user.setdefault(o.user_id, []).append({
            "space": o.space,
            "access_level": o.access_level,
            "scope_type": o.scope_type,
            "scope_id": o.scope_id,
            "updated_at": o.updated_at.isoformat() if o.updated_at else None,
        })
        counts_by_user.setdefault(o.user_id, _empty_counts())[o.space] += 1

    audit_by_user: dict[str, list[dict]] = {}
    for row in audit_rows:
        if row.target_user_id is None:
            continue
        items = audit_by_user.setdefault(row.target_user_id, [])
        if len(items) < MAX_AUDIT_PER_USER:
            items.append({
                "created_at": row.created_at.isoformat() if row.created_at else None,
                "summary": summarize_audit_entry(row.new_value, row.change_type),
            })

    users = []
    for p in profiles:
        user_globals = global_by_user.get(p.id, {})
        scoped = sorted(
            scoped_by_user.get(p.id, []),
            key=lambda item: item["updated_at"] or "",
            reverse=True,
        )
        users.append({
            "id": p.id,
            "name": p.name or None,
            "email": p.email or None,
            "role": p.role or None,
            "overrides": {space: user_globals.get(space) for space in PLATFORM_SPACES},
            "scoped_override_counts": counts_by_user.get(p.id, _empty_counts()),
            "recent_scoped_overrides": scoped[:MAX_SCOPED_PER_USER],
            "recent_audit": audit_by_user.get(p.id, []),
        })

    override_count = sum(
        1 for u in users for level in u["overrides"].values() if level
    )
    return {"users": users, "override_count": override_count, "page_error": page_error}
