"""
Congress domain models.

Models:
    - CongressEvent: one congress edition; ``status`` drives the workspace
      stage gate only
    - CongressAssignment: descriptive "who is responsible for what" record.
      Grants no permissions.
"""

import uuid
from datetime import date, datetime, timezone

from advocacy.models import db


# ── Constants ────────────────────────────────────────────────────────────────

EVENT_STATUSES = (
    "planning",
    "open_for_topics",
    "agenda_set",
    "live",
    "post_congress",
    "archived",
)

CONGRESS_PROJECT_ROLES = (
    "Congress Lead",
    "Scientific Lead",
    "Ops Lead",
    "Sponsor Lead",
    "Comms Lead",
    "Finance",
    "Compliance Reviewer",
    "Contributor",
    "Observer",
)


class CongressEvent(db.Model):
    __tablename__ = "congress_events"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    year = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(300), nullable=False)
    location = db.Column(db.String(200))
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    status = db.Column(db.String(30), nullable=False, default="planning")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    assignments = db.relationship(
        "CongressAssignment", back_populates="congress", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "year": self.year,
            "title": self.title,
            "location": self.location,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
        }


class CongressAssignment(db.Model):
    __tablename__ = "congress_assignments"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    congress_id = db.Column(
        db.String(36), db.ForeignKey("congress_events.id", ondelete="CASCADE"), nullable=False
    )
    project_role = db.Column(db.String(40), nullable=False)
    scope_all = db.Column(db.Boolean, nullable=False, default=True)
    workstream_ids = db.Column(db.JSON, default=list)
    effective_from = db.Column(db.Date, nullable=False, default=date.today)
    effective_to = db.Column(db.Date, nullable=True)  # NULL = open-ended
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_congress_assignments_congress_user", "congress_id", "user_id"),
    )

    congress = db.relationship("CongressEvent", back_populates="assignments")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "congress_id": self.congress_id,
            "project_role": self.project_role,
            "scope_all": self.scope_all,
            "workstream_ids": list(self.workstream_ids or []),
            "effective_from": self.effective_from.isoformat() if self.effective_from else None,
            "effective_to": self.effective_to.isoformat() if self.effective_to else None,
        }
