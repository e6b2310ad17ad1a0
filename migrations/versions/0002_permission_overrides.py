"""permission_overrides

Per-user space overrides and the permission audit log.

Global overrides store scope_id NULL; the unique key is an expression
index over coalesce(scope_id, '') so a NULL scope id cannot repeat.

Revision ID: 0002_permission_overrides
Revises: 0001_profiles_and_congress
Create Date: 2026-01-19 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_permission_overrides"
down_revision = "0001_profiles_and_congress"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user_space_permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("space", sa.String(30), nullable=False),
        sa.Column("scope_type", sa.String(20), nullable=False, server_default="global"),
        sa.Column("scope_id", sa.String(64), nullable=True),
        sa.Column("access_level", sa.String(20), nullable=False),
        sa.Column("granted_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint(
            "(scope_type = 'global' AND scope_id IS NULL) "
            "OR (scope_type <> 'global' AND scope_id IS NOT NULL)",
            name="ck_user_space_permissions_scope",
        ),
    )
    op.create_index("ix_user_space_permissions_user", "user_space_permissions", ["user_id"])
    op.create_index(
        "uq_user_space_permissions_key",
        "user_space_permissions",
        ["user_id", "space", "scope_type", sa.text("coalesce(scope_id, '')")],
        unique=True,
    )

    op.create_table(
        "permission_audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("target_user_id", sa.String(36), nullable=True),
        sa.Column("changed_by", sa.String(36), nullable=False),
        sa.Column("change_type", sa.String(40), nullable=False),
        sa.Column("previous_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_permission_audit_target", "permission_audit_log", ["target_user_id"])
    op.create_index("idx_permission_audit_created", "permission_audit_log", ["created_at"])


def downgrade():
    op.drop_index("idx_permission_audit_created", table_name="permission_audit_log")
    op.drop_index("idx_permission_audit_target", table_name="permission_audit_log")
    op.drop_table("permission_audit_log")
    op.drop_index("uq_user_space_permissions_key", table_name="user_space_permissions")
    op.drop_index("ix_user_space_permissions_user", table_name="user_space_permissions")
    op.drop_table("user_space_permissions")
