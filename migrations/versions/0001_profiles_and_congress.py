"""profiles_and_congress

Profiles with a single platform role, congress events and the descriptive
congress assignments.

Revision ID: 0001_profiles_and_congress
Revises:
Create Date: 2026-01-12 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_profiles_and_congress"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(200), unique=True),
        sa.Column("name", sa.String(200)),
        sa.Column("role", sa.String(50)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_profiles_role", "profiles", ["role"])

    op.create_table(
        "congress_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("location", sa.String(200)),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("status", sa.String(30), nullable=False, server_default="planning"),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "congress_assignments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "congress_id", sa.String(36),
            sa.ForeignKey("congress_events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("project_role", sa.String(40), nullable=False),
        sa.Column("scope_all", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("workstream_ids", sa.JSON()),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index(
        "ix_congress_assignments_congress_user",
        "congress_assignments",
        ["congress_id", "user_id"],
    )


def downgrade():
    op.drop_index("ix_congress_assignments_congress_user", table_name="congress_assignments")
    op.drop_table("congress_assignments")
    op.drop_table("congress_events")
    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_table("profiles")
