"""
Permission override models.

Tables:
    - user_space_permissions: per-user, per-space (optionally per-scope)
      access-level overrides
    - role_space_default_overrides: per-role, per-space replacement of the
      static role defaults, platform-wide
    - permission_audit_log: append-only record of every override write

A global override has ``scope_id = NULL``.  SQL unique constraints treat
NULLs as distinct, so uniqueness of the override key is enforced with an
expression index over ``coalesce(scope_id, '')`` instead.
"""

from datetime import datetime, timezone

from advocacy.models import db


class PermissionOverride(db.Model):
    __tablename__ = "user_space_permissions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    space = db.Column(db.String(30), nullable=False)
    scope_type = db.Column(db.String(20), nullable=False, default="global")
    scope_id = db.Column(db.String(64), nullable=True)
    access_level = db.Column(db.String(20), nullable=False)
    granted_by = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_user_space_permissions_user", "user_id"),
        db.CheckConstraint(
            "(scope_type = 'global' AND scope_id IS NULL) "
            "OR (scope_type <> 'global' AND scope_id IS NOT NULL)",
            name="ck_user_space_permissions_scope",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "space": self.space,
            "scope_type": self.scope_type,
            "scope_id": self.scope_id,
            "access_level": self.access_level,
            "granted_by": self.granted_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        scope = self.scope_type if self.scope_id is None else f"{self.scope_type}:{self.scope_id}"
        return f"<PermissionOverride {self.user_id} {self.space}={self.access_level} ({scope})>"


db.Index(
    "uq_user_space_permissions_key",
    PermissionOverride.user_id,
    PermissionOverride.space,
    PermissionOverride.scope_type,
    db.func.coalesce(PermissionOverride.scope_id, ""),
    unique=True,
)


class RoleDefaultOverride(db.Model):
    __tablename__ = "role_space_default_overrides"

    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.String(50), nullable=False)
    space = db.Column(db.String(30), nullable=False)
    access_level = db.Column(db.String(20), nullable=False)
    updated_by = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("role", "space", name="uq_role_space_default"),
    )

    def to_dict(self):
        return {
            "role": self.role,
            "space": self.space,
            "access_level": self.access_level,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class PermissionAuditLog(db.Model):
    """
    Immutable audit trail for override changes.

    One row per write, including repeated writes of the same value and
    removals of overrides that did not exist.
    """

    __tablename__ = "permission_audit_log"
    __table_args__ = (
        db.Index("idx_permission_audit_target", "target_user_id"),
        db.Index("idx_permission_audit_created", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    target_user_id = db.Column(
        db.String(36), nullable=True,
        comment="NULL for role-default changes (not tied to one user)",
    )
    changed_by = db.Column(db.String(36), nullable=False)
    change_type = db.Column(
        db.String(40), nullable=False,
        comment="permission_override | role_default_override | platform_role",
    )
    previous_value = db.Column(db.JSON, nullable=True)
    new_value = db.Column(db.JSON, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "target_user_id": self.target_user_id,
            "changed_by": self.changed_by,
            "change_type": self.change_type,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<PermissionAuditLog {self.id}: {self.change_type} on {self.target_user_id}>"
