"""
Admin actions — the PlatformAdmin-only mutation surface for permissions.

Contract:
    Every action returns ``{"error": None}`` on success, or
    ``{"error": <message>, "code": <E.*>}`` on failure.  Nothing raises
    across this boundary; call sites always get a value to branch on.

Guard (re-checked on every call, role read fresh from ``profiles``):
    no identity on the request        → "Not authenticated"
    identity without PlatformAdmin    → "Forbidden: PlatformAdmin only"

Writes:
    The change and its audit row are committed in one transaction.  Every
    write is audited, including repeats of the same value and removals of
    overrides that did not exist.
"""

import functools
import logging

from flask import g, has_app_context
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from advocacy.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.services import override_store
from advocacy.services.access_model import (
    GLOBAL_SCOPE,
    SCOPE_TYPE_INVALID,
    is_access_level,
    is_space,
    validate_scope,
)
from advocacy.services.permission_service import (
    get_platform_role,
    invalidate_all_cache,
    invalidate_cache,
)
from advocacy.services.platform_roles import ADMIN_ROLE, is_platform_role
from advocacy.utils.errors import E

logger = logging.getLogger(__name__)

CHANGE_PERMISSION_OVERRIDE = "permission_override"
CHANGE_ROLE_DEFAULT_OVERRIDE = "role_default_override"
CHANGE_PLATFORM_ROLE = "platform_role"

REMOVED_MARKER = "default (removed override)"

# Attempts for an upsert that lost a race on the unique key
_UPSERT_ATTEMPTS = 2


# ═══════════════════════════════════════════════════════════════
# Guard + result shaping
# ═══════════════════════════════════════════════════════════════

def current_user_id() -> str | None:
    if not has_app_context():
        return None
    return getattr(g, "current_user_id", None)


def require_admin() -> str:
    """Return the caller's user id, or raise if the caller is not a PlatformAdmin."""
    user_id = current_user_id()
    if not user_id:
        raise AuthenticationError("Not authenticated")
    if get_platform_role(user_id) != ADMIN_ROLE:
        logger.warning("Admin action refused for user %s", user_id)
        raise AuthorizationError("Forbidden: PlatformAdmin only")
    return user_id


def _fail(code: str, message: str) -> dict:
    return {"error": message, "code": code}


def admin_action(f):
    """Run ``f`` and turn every failure into a result dict."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            f(*args, **kwargs)
        except AuthenticationError as exc:
            return _fail(E.UNAUTHENTICATED, str(exc))
        except AuthorizationError as exc:
            return _fail(E.FORBIDDEN, str(exc))
        except ValidationError as exc:
            return _fail(E.VALIDATION_INVALID, str(exc))
        except NotFoundError as exc:
            return _fail(E.NOT_FOUND, f"{exc.resource} not found")
        except StoreUnavailableError as exc:
            return _fail(E.MIGRATION_REQUIRED, str(exc))
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("%s failed", f.__name__)
            return _fail(E.DATABASE, f"Database error: {exc.__class__.__name__}")
        return {"error": None}
    return wrapper


def _validate_space(space) -> None:
    if not is_space(space):
        raise ValidationError("Invalid space value", details={"space": space})


def _validate_access_level(access_level) -> None:
    if not is_access_level(access_level):
        raise ValidationError("Invalid access level value", details={"access_level": access_level})


def _validate_scope(scope_type, scope_id) -> None:
    message = validate_scope(scope_type, scope_id)
    if message:
        code = "scope_type" if message == SCOPE_TYPE_INVALID else "scope_id"
        raise ValidationError(message, details={code: scope_id if code == "scope_id" else scope_type})


def _require_profile(user_id: str) -> Profile:
    profile = db.session.get(Profile, user_id) if user_id else None
    if profile is None:
        raise NotFoundError("Target user", user_id)
    return profile


def _signal_permissions_changed(*, target_user_id: str | None, change_type: str, changed_by: str) -> None:
    """Tell downstream readers to refresh: drop cached decisions and log the event."""
    if target_user_id is None:
        invalidate_all_cache()
    else:
        invalidate_cache(target_user_id)
    logger.info(
        "Permissions changed: %s for %s by %s",
        change_type, target_user_id or "all users", changed_by,
        extra={"event_type": "permissions_changed"},
    )


def _commit_with_retry(write):
    """Run ``write()`` and commit; retry once if a concurrent insert won the unique key."""
    for attempt in range(1, _UPSERT_ATTEMPTS + 1):
        try:
            write()
            db.session.commit()
            return
        except IntegrityError:
            db.session.rollback()
            if attempt == _UPSERT_ATTEMPTS:
                raise
            logger.info("Upsert lost a race on the unique key, retrying")


# ═══════════════════════════════════════════════════════════════
# Actions
# ═══════════════════════════════════════════════════════════════

@admin_action
def set_permission_override(
    target_user_id: str,
    space: str,
    access_level: str,
    scope_type: str = GLOBAL_SCOPE,
    scope_id: str | None = None,
):
    """Upsert a user override on (space, scope) and audit the change."""
    admin_id = require_admin()
    scope_type = scope_type or GLOBAL_SCOPE
    scope_id = scope_id or None
    _validate_space(space)
    _validate_access_level(access_level)
    _validate_scope(scope_type, scope_id)
    _require_profile(target_user_id)

    def write():
        existing = override_store.get_override(target_user_id, space, scope_type, scope_id)
        previous = (
            {"space": space, "access_level": existing.access_level,
             "scope_type": scope_type, "scope_id": scope_id}
            if existing else None
        )
        override_store.upsert_override(
            target_user_id, space, access_level,
            scope_type=scope_type, scope_id=scope_id, granted_by=admin_id,
        )
        override_store.write_permission_audit(
            target_user_id=target_user_id,
            changed_by=admin_id,
            change_type=CHANGE_PERMISSION_OVERRIDE,
            previous_value=previous,
            new_value={
                "space": space, "access_level": access_level,
                "scope_type": scope_type, "scope_id": scope_id,
            },
        )

    _commit_with_retry(write)
    _signal_permissions_changed(
        target_user_id=target_user_id, change_type=CHANGE_PERMISSION_OVERRIDE, changed_by=admin_id,
    )


@admin_action
def remove_permission_override(
    target_user_id: str,
    space: str,
    scope_type: str = GLOBAL_SCOPE,
    scope_id: str | None = None,
):
    """Delete a user override (restoring the role default) and audit it, even if absent."""
    admin_id = require_admin()
    scope_type = scope_type or GLOBAL_SCOPE
    scope_id = scope_id or None
    _validate_space(space)
    _validate_scope(scope_type, scope_id)

    existing = override_store.get_override(target_user_id, space, scope_type, scope_id)
    previous = (
        {"space": space, "access_level": existing.access_level,
         "scope_type": scope_type, "scope_id": scope_id}
        if existing else None
    )
    override_store.delete_override(target_user_id, space, scope_type, scope_id)
    override_store.write_permission_audit(
        target_user_id=target_user_id,
        changed_by=admin_id,
        change_type=CHANGE_PERMISSION_OVERRIDE,
        previous_value=previous,
        new_value={
            "space": space, "access_level": REMOVED_MARKER,
            "scope_type": scope_type, "scope_id": scope_id,
        },
    )
    db.session.commit()
    _signal_permissions_changed(
        target_user_id=target_user_id, change_type=CHANGE_PERMISSION_OVERRIDE, changed_by=admin_id,
    )


@admin_action
def set_role_default_override(role: str, space: str, access_level: str):
    """Upsert the platform-wide default for (role, space) and audit it."""
    admin_id = require_admin()
    if not is_platform_role(role):
        raise ValidationError("Invalid role value", details={"role": role})
    if role == ADMIN_ROLE:
        raise ValidationError("PlatformAdmin always has manage access; its defaults cannot be overridden")
    _validate_space(space)
    _validate_access_level(access_level)

    def write():
        existing = override_store.get_role_default_override(role, space)
        override_store.upsert_role_default_override(role, space, access_level, updated_by=admin_id)
        override_store.write_permission_audit(
            target_user_id=None,
            changed_by=admin_id,
            change_type=CHANGE_ROLE_DEFAULT_OVERRIDE,
            previous_value=(
                {"role": role, "space": space, "access_level": existing.access_level}
                if existing else None
            ),
            new_value={"role": role, "space": space, "access_level": access_level},
        )

    _commit_with_retry(write)
    _signal_permissions_changed(
        target_user_id=None, change_type=CHANGE_ROLE_DEFAULT_OVERRIDE, changed_by=admin_id,
    )


def assign_platform_role(target_user_id: str, role: str, *, changed_by: str) -> Profile:
    """
    Set a profile's platform role and audit it.  Commits.

    Role changes only ever happen through this function: from the admin
    action below or from the ``set-role`` CLI command.
    """
    if not is_platform_role(role):
        raise ValidationError("Invalid role value", details={"role": role})
    profile = _require_profile(target_user_id)
    previous = profile.role
    profile.role = role
    override_store.write_permission_audit(
        target_user_id=target_user_id,
        changed_by=changed_by,
        change_type=CHANGE_PLATFORM_ROLE,
        previous_value={"role": previous} if previous else None,
        new_value={"role": role},
    )
    db.session.commit()
    _signal_permissions_changed(
        target_user_id=target_user_id, change_type=CHANGE_PLATFORM_ROLE, changed_by=changed_by,
    )
    return profile


@admin_action
def set_platform_role(target_user_id: str, role: str):
    """Admin action wrapper around ``assign_platform_role``."""
    admin_id = require_admin()
    assign_platform_role(target_user_id, role, changed_by=admin_id)
