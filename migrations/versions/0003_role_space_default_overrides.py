"""role_space_default_overrides

Platform-wide replacement of the static role -> space defaults.

Revision ID: 0003_role_space_default_overrides
Revises: 0002_permission_overrides
Create Date: 2026-02-02 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0003_role_space_default_overrides"
down_revision = "0002_permission_overrides"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "role_space_default_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("space", sa.String(30), nullable=False),
        sa.Column("access_level", sa.String(20), nullable=False),
        sa.Column("updated_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("role", "space", name="uq_role_space_default"),
    )


def downgrade():
    op.drop_table("role_space_default_overrides")
