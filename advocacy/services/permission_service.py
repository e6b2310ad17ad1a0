"""
Permission Service — effective access per (user, space, scope).

Resolution order (each step replaces the previous value, never blends):
  1. static role → space default           (access_model.ROLE_SPACE_DEFAULTS)
  2. role-default override for (role, space) (role_space_default_overrides)
  3. user override for (user, space, scope)  (user_space_permissions)
     - an override on exactly the requested scope wins
     - otherwise the user's global override applies

PlatformAdmin always resolves to ``manage``; no override can lock the
admin out of the surface that edits overrides.

Every route boundary checks access through ``require_access`` so the rule
lives in one place.  The database enforces row-level security again on
every query regardless of what is decided here.
"""

import functools
import logging

from flask import current_app, g, has_app_context, jsonify

from advocacy.core.exceptions import StoreUnavailableError, ValidationError
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.models.permissions import PermissionOverride, RoleDefaultOverride
from advocacy.services import cache_service, override_store
from advocacy.services.access_model import (
    GLOBAL_SCOPE,
    PLATFORM_SPACES,
    can_access,
    is_access_level,
    is_space,
    resolve_access_from_role,
    validate_scope,
)
from advocacy.services.platform_roles import ADMIN_ROLE, normalize_role

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60  # seconds

# Decision sources, most specific last
SOURCE_PLATFORM_ADMIN = "platform_admin"
SOURCE_STATIC_DEFAULT = "static_default"
SOURCE_ROLE_DEFAULT_OVERRIDE = "role_default_override"
SOURCE_USER_OVERRIDE_GLOBAL = "user_override_global"
SOURCE_USER_OVERRIDE_SCOPED = "user_override_scoped"


def _cache_ttl() -> int:
    if has_app_context():
        return int(current_app.config.get("PERMISSION_CACHE_TTL", DEFAULT_CACHE_TTL))
    return 0


def _cacheable(user_id: str | None, scope_type: str) -> bool:
    # Scoped ids come from the request path; only global decisions are cached
    # so the key space stays bounded by users × spaces.
    return bool(user_id) and scope_type == GLOBAL_SCOPE and _cache_ttl() > 0


def invalidate_cache(user_id: str) -> None:
    cache_service.invalidate_user_decisions(user_id)


def invalidate_all_cache() -> None:
    cache_service.invalidate_all_decisions()


# ═══════════════════════════════════════════════════════════════
# Identity helpers
# ═══════════════════════════════════════════════════════════════

def get_platform_role(user_id: str | None) -> str:
    """Read the user's role from the profiles table (never from a cache or token)."""
    if not user_id:
        return normalize_role(None)
    role = db.session.execute(
        db.select(Profile.role).where(Profile.id == user_id)
    ).scalar_one_or_none()
    return normalize_role(role)


# ═══════════════════════════════════════════════════════════════
# Resolver
# ═══════════════════════════════════════════════════════════════

def _role_default_override(role: str, space: str) -> str | None:
    try:
        row = override_store.get_role_default_override(role, space)
    except StoreUnavailableError as exc:
        logger.warning("Role default overrides unavailable, using static defaults: %s", exc)
        return None
    if row is None or not is_access_level(row.access_level):
        return None
    return row.access_level


def _user_overrides(user_id: str, space: str, scope_type: str) -> list[PermissionOverride]:
    scope_types = [GLOBAL_SCOPE] if scope_type == GLOBAL_SCOPE else [GLOBAL_SCOPE, scope_type]
    try:
        with override_store.overrides_guard():
            return (
                PermissionOverride.query
                .filter(
                    PermissionOverride.user_id == user_id,
                    PermissionOverride.space == space,
                    PermissionOverride.scope_type.in_(scope_types),
                )
                .all()
            )
    except StoreUnavailableError as exc:
        logger.warning("User overrides unavailable, ignoring them: %s", exc)
        return []


def explain_access(
    user_id: str,
    role: str | None,
    space: str,
    scope_type: str = GLOBAL_SCOPE,
    scope_id: str | None = None,
) -> dict:
    """
    Resolve access and report which layer decided it.

    Raises:
        ValidationError: scope_type/scope_id combination is inconsistent.

    Returns:
        Dict with keys access_level, source, role, space, scope_type, scope_id.
    """
    scope_type = scope_type or GLOBAL_SCOPE
    scope_error = validate_scope(scope_type, scope_id)
    if scope_error:
        raise ValidationError(scope_error, details={"scope_type": scope_type, "scope_id": scope_id})

    normalized = normalize_role(role)
    use_cache = _cacheable(user_id, scope_type)
    if use_cache:
        cached = cache_service.get_cached_decision(user_id, normalized, space)
        if cached is not None:
            return cached

    decision = {
        "role": normalized,
        "space": space,
        "scope_type": scope_type,
        "scope_id": scope_id,
    }

    if normalized == ADMIN_ROLE:
        decision.update(access_level="manage", source=SOURCE_PLATFORM_ADMIN)
    elif not is_space(space):
        decision.update(access_level="invisible", source=SOURCE_STATIC_DEFAULT)
    else:
        level = resolve_access_from_role(normalized, space)
        source = SOURCE_STATIC_DEFAULT

        role_level = _role_default_override(normalized, space)
        if role_level is not None:
            level, source = role_level, SOURCE_ROLE_DEFAULT_OVERRIDE

        overrides = _user_overrides(user_id, space, scope_type) if user_id else []
        scoped = next(
            (o for o in overrides
             if scope_type != GLOBAL_SCOPE and o.scope_type == scope_type and o.scope_id == scope_id),
            None,
        )
        global_row = next((o for o in overrides if o.scope_type == GLOBAL_SCOPE), None)
        if scoped is not None and is_access_level(scoped.access_level):
            level, source = scoped.access_level, SOURCE_USER_OVERRIDE_SCOPED
        elif global_row is not None and is_access_level(global_row.access_level):
            level, source = global_row.access_level, SOURCE_USER_OVERRIDE_GLOBAL

        decision.update(access_level=level, source=source)

    if use_cache:
        cache_service.set_cached_decision(user_id, normalized, space, decision, _cache_ttl())
    return decision


def resolve_access(
    user_id: str,
    role: str | None,
    space: str,
    scope_type: str = GLOBAL_SCOPE,
    scope_id: str | None = None,
) -> str:
    """Effective access level for a user on a space (optionally scoped)."""
    return explain_access(user_id, role, space, scope_type, scope_id)["access_level"]


def has_access(
    user_id: str,
    role: str | None,
    space: str,
    minimum: str,
    scope_type: str = GLOBAL_SCOPE,
    scope_id: str | None = None,
) -> bool:
    return can_access(resolve_access(user_id, role, space, scope_type, scope_id), minimum)


def resolve_all_spaces(user_id: str, role: str | None) -> dict[str, str]:
    """
    Global access level for every space in two queries.
    Used to build navigation menus.
    """
    normalized = normalize_role(role)
    if normalized == ADMIN_ROLE:
        return {space: "manage" for space in PLATFORM_SPACES}

    result = {space: resolve_access_from_role(normalized, space) for space in PLATFORM_SPACES}

    try:
        with override_store.role_defaults_guard():
            role_rows = RoleDefaultOverride.query.filter_by(role=normalized).all()
    except StoreUnavailableError as exc:
        logger.warning("Role default overrides unavailable, using static defaults: %s", exc)
        role_rows = []
    for row in role_rows:
        if row.space in result and is_access_level(row.access_level):
            result[row.space] = row.access_level

    user_rows: list[PermissionOverride] = []
    if user_id:
        try:
            user_rows = override_store.list_overrides_for_user(user_id, scope_type=GLOBAL_SCOPE)
        except StoreUnavailableError as exc:
            logger.warning("User overrides unavailable, ignoring them: %s", exc)
    for row in user_rows:
        if row.space in result and is_access_level(row.access_level):
            result[row.space] = row.access_level

    return result


# ═══════════════════════════════════════════════════════════════
# Route guard
# ═══════════════════════════════════════════════════════════════

def require_access(space: str, minimum: str = "view", scope_type: str = GLOBAL_SCOPE, scope_arg: str | None = None):
    """
    Decorator: require the current user to resolve to at least ``minimum``.

    Args:
        space: Platform space guarded by the route.
        minimum: Lowest access level that passes.
        scope_type: Scope of the check; non-global scopes read the scope id
            from the view argument named ``scope_arg``.

    Usage:
        @bp.route("/api/v1/congress/<congress_id>/assignments", methods=["PUT"])
        @require_access("congress", "manage", scope_type="congress", scope_arg="congress_id")
        def set_roles(congress_id): ...
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user_id = getattr(g, "current_user_id", None)
            if not user_id:
                return jsonify({"error": "Not authenticated"}), 401

            scope_id = kwargs.get(scope_arg) if scope_arg else None
            role = get_platform_role(user_id)
            try:
                decision = explain_access(user_id, role, space, scope_type, scope_id)
            except ValidationError as exc:
                return jsonify({"error": str(exc)}), 400

            if not can_access(decision["access_level"], minimum):
                logger.warning(
                    "User %s denied: %s on %s resolved to %s (needs %s) in %s",
                    user_id, space, scope_id or scope_type, decision["access_level"],
                    minimum, f.__name__,
                )
                return jsonify({
                    "error": "Forbidden",
                    "required": {"space": space, "access_level": minimum},
                    "resolved": decision["access_level"],
                }), 403

            g.access_decision = decision
            return f(*args, **kwargs)
        return decorated
    return decorator
