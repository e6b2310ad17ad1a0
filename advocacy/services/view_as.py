"""
View-as preview — a PlatformAdmin previews navigation as another role.

The chosen role is an expiring ``session_preferences`` row owned by the
admin's authenticated session.  It only changes which role drives the
navigation menu.  Admin actions and route guards keep using the role
stored on the profile.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app, g, has_app_context

from advocacy.core.exceptions import ValidationError
from advocacy.models import db
from advocacy.models.auth import SessionPreference
from advocacy.services.admin_actions import admin_action, require_admin
from advocacy.services.platform_roles import ADMIN_ROLE, is_platform_role

logger = logging.getLogger(__name__)

VIEW_AS_KEY = "view_as_role"
DEFAULT_TTL_SECONDS = 60 * 60 * 24


def _ttl() -> timedelta:
    seconds = DEFAULT_TTL_SECONDS
    if has_app_context():
        seconds = int(current_app.config.get("VIEW_AS_TTL_SECONDS", DEFAULT_TTL_SECONDS))
    return timedelta(seconds=seconds)


def _query(user_id: str, session_id: str):
    return SessionPreference.query.filter_by(user_id=user_id, session_id=session_id, key=VIEW_AS_KEY)


def get_view_as_role(user_id: str | None, session_id: str | None) -> str | None:
    """The previewed role for this session, or None if unset, expired or invalid."""
    if not user_id or not session_id:
        return None
    pref = _query(user_id, session_id).first()
    if pref is None:
        return None
    if pref.is_expired or not is_platform_role(pref.value):
        return None
    return pref.value


def store_view_as_role(user_id: str, session_id: str, role: str | None) -> None:
    """Write or clear the preview row.  Clearing happens for None or PlatformAdmin.  Commits."""
    _query(user_id, session_id).delete(synchronize_session=False)
    if role and role != ADMIN_ROLE:
        db.session.add(SessionPreference(
            user_id=user_id,
            session_id=session_id,
            key=VIEW_AS_KEY,
            value=role,
            expires_at=datetime.now(timezone.utc) + _ttl(),
        ))
    db.session.commit()


@admin_action
def set_view_as_role(role: str | None):
    """Admin action: preview navigation as ``role`` (None or PlatformAdmin clears)."""
    admin_id = require_admin()
    if role is not None and not is_platform_role(role):
        raise ValidationError("Invalid role value", details={"role": role})
    session_id = getattr(g, "session_id", None)
    if not session_id:
        raise ValidationError("No session to attach the preview to")
    store_view_as_role(admin_id, session_id, role)
    logger.info("View-as for %s set to %s", admin_id, role or "none")


def purge_expired_preferences() -> int:
    """Delete every expired session preference.  Commits; returns the count removed."""
    now = datetime.now(timezone.utc)
    count = SessionPreference.query.filter(
        SessionPreference.expires_at < now,
    ).delete(synchronize_session=False)
    db.session.commit()
    if count:
        logger.info("Purged %d expired session preferences before %s", count, now.isoformat())
    return count


def navigation_role(stored_role: str, user_id: str | None, session_id: str | None) -> str:
    """Role that drives the navigation menu: the preview for admins, else the stored role."""
    if stored_role != ADMIN_ROLE:
        return stored_role
    return get_view_as_role(user_id, session_id) or stored_role
