"""
Override store — persistence for permission overrides, role-default
overrides and the permission audit log.

Layer contract:
    - Functions here ``flush`` but never ``commit``; callers own the
      transaction so an override and its audit row land together.
    - A missing table (migration not applied) surfaces as
      ``StoreUnavailableError`` naming the migration, never as a raw
      driver error.  Any other database error propagates unchanged.
"""

import contextlib
import logging

from sqlalchemy.exc import DBAPIError

from advocacy.core.exceptions import StoreUnavailableError
from advocacy.models import db
from advocacy.models.permissions import (
    PermissionAuditLog,
    PermissionOverride,
    RoleDefaultOverride,
)

logger = logging.getLogger(__name__)

OVERRIDES_MIGRATION = "0002_permission_overrides"
ROLE_DEFAULTS_MIGRATION = "0003_role_space_default_overrides"

# PostgreSQL SQLSTATE for "undefined_table"
_PG_UNDEFINED_TABLE = "42P01"


def is_missing_relation(exc: Exception) -> bool:
    """True if ``exc`` reports that a table does not exist."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == _PG_UNDEFINED_TABLE:
        return True
    msg = str(orig if orig is not None else exc).lower()
    return "no such table" in msg or ("relation" in msg and "does not exist" in msg)


@contextlib.contextmanager
def missing_table_guard(table: str, migration: str, label: str):
    """Translate "table does not exist" errors raised in the block."""
    try:
        yield
    except DBAPIError as exc:
        if not is_missing_relation(exc):
            raise
        db.session.rollback()
        logger.error("Table %s missing; apply migration %s", table, migration)
        raise StoreUnavailableError(table, migration, label) from exc


def overrides_guard():
    return missing_table_guard(
        PermissionOverride.__tablename__, OVERRIDES_MIGRATION, "permission overrides",
    )


def role_defaults_guard():
    return missing_table_guard(
        RoleDefaultOverride.__tablename__, ROLE_DEFAULTS_MIGRATION, "role defaults",
    )


def audit_guard():
    return missing_table_guard(
        PermissionAuditLog.__tablename__, OVERRIDES_MIGRATION, "permission audit log",
    )


# ═══════════════════════════════════════════════════════════════
# User overrides
# ═══════════════════════════════════════════════════════════════

def _override_query(user_id: str, space: str, scope_type: str, scope_id: str | None):
    q = PermissionOverride.query.filter_by(
        user_id=user_id, space=space, scope_type=scope_type,
    )
    if scope_id is None:
        return q.filter(PermissionOverride.scope_id.is_(None))
    return q.filter(PermissionOverride.scope_id == scope_id)


def get_override(
    user_id: str,
    space: str,
    scope_type: str = "global",
    scope_id: str | None = None,
) -> PermissionOverride | None:
    with overrides_guard():
        return _override_query(user_id, space, scope_type, scope_id).first()


def upsert_override(
    user_id: str,
    space: str,
    access_level: str,
    *,
    scope_type: str = "global",
    scope_id: str | None = None,
    granted_by: str | None = None,
) -> PermissionOverride:
    """Insert or update the override identified by (user, space, scope_type, scope_id).

    A concurrent insert of the same key fails the unique index on flush;
    the caller rolls back and retries, at which point this finds the row.
    """
    with overrides_guard():
        row = _override_query(user_id, space, scope_type, scope_id).first()
        if row is None:
            row = PermissionOverride(
                user_id=user_id,
                space=space,
                scope_type=scope_type,
                scope_id=scope_id,
            )
            db.session.add(row)
        row.access_level = access_level
        row.granted_by = granted_by
        db.session.flush()
    return row


def delete_override(
    user_id: str,
    space: str,
    scope_type: str = "global",
    scope_id: str | None = None,
) -> int:
    """Delete the matching override; returns the number of rows removed (0 or 1)."""
    with overrides_guard():
        count = _override_query(user_id, space, scope_type, scope_id).delete(
            synchronize_session=False,
        )
        db.session.flush()
    return count


def list_overrides_for_user(user_id: str, scope_type: str | None = None) -> list[PermissionOverride]:
    with overrides_guard():
        q = PermissionOverride.query.filter_by(user_id=user_id)
        if scope_type is not None:
            q = q.filter_by(scope_type=scope_type)
        return q.order_by(PermissionOverride.space, PermissionOverride.id).all()


# ═══════════════════════════════════════════════════════════════
# Role-default overrides
# ═══════════════════════════════════════════════════════════════

def get_role_default_override(role: str, space: str) -> RoleDefaultOverride | None:
    with role_defaults_guard():
        return RoleDefaultOverride.query.filter_by(role=role, space=space).first()


def list_role_default_overrides() -> list[RoleDefaultOverride]:
    with role_defaults_guard():
        return RoleDefaultOverride.query.order_by(
            RoleDefaultOverride.role, RoleDefaultOverride.space,
        ).all()


def upsert_role_default_override(
    role: str,
    space: str,
    access_level: str,
    *,
    updated_by: str | None = None,
) -> RoleDefaultOverride:
    with role_defaults_guard():
        row = RoleDefaultOverride.query.filter_by(role=role, space=space).first()
        if row is None:
            row = RoleDefaultOverride(role=role, space=space)
            db.session.add(row)
        row.access_level = access_level
        row.updated_by = updated_by
        db.session.flush()
    return row


# ═══════════════════════════════════════════════════════════════
# Audit
# ═══════════════════════════════════════════════════════════════

def write_permission_audit(
    *,
    changed_by: str,
    change_type: str,
    new_value: dict,
    previous_value: dict | None = None,
    target_user_id: str | None = None,
) -> PermissionAuditLog:
    """
    Append one audit row.  Uses ``flush`` so the row shares the caller's
    transaction with the change it records.
    """
    entry = PermissionAuditLog(
        target_user_id=target_user_id,
        changed_by=changed_by,
        change_type=change_type,
        previous_value=previous_value,
        new_value=new_value,
    )
    with audit_guard():
        db.session.add(entry)
        db.session.flush()
    return entry


def recent_audit_entries(limit: int = 200) -> list[PermissionAuditLog]:
    return (
        PermissionAuditLog.query
        .order_by(PermissionAuditLog.created_at.desc(), PermissionAuditLog.id.desc())
        .limit(limit)
        .all()
    )
