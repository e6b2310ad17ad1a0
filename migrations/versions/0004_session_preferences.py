"""session_preferences

Expiring per-session key/value rows (admin view-as preview).

Revision ID: 0004_session_preferences
Revises: 0003_role_space_default_overrides
Create Date: 2026-02-16 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0004_session_preferences"
down_revision = "0003_role_space_default_overrides"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "session_preferences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.String(200), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("user_id", "session_id", "key", name="uq_session_preference"),
    )


def downgrade():
    op.drop_table("session_preferences")
