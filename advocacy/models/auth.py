"""
Auth Models — profiles and session-scoped preferences.

Identity itself comes from the session provider (access token); these
tables hold what the platform knows about an authenticated user:

    - Profile: one row per user, carrying exactly one platform role
    - SessionPreference: expiring key/value entries scoped to one
      authenticated session (used for the admin "view as role" preview)
"""

import uuid
from datetime import datetime, timezone

from advocacy.models import db


# ═══════════════════════════════════════════════════════════════
# 1. PROFILES
# ═══════════════════════════════════════════════════════════════
class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(200), unique=True)
    name = db.Column(db.String(200))
    role = db.Column(db.String(50))  # raw value; normalize_role() decides the effective role
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_profiles_role", "role"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Profile {self.id}: {self.email} ({self.role})>"


# ═══════════════════════════════════════════════════════════════
# 2. SESSION_PREFERENCES
# ═══════════════════════════════════════════════════════════════
class SessionPreference(db.Model):
    """Expiring key/value entry owned by one (user, session) pair."""
    __tablename__ = "session_preferences"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    session_id = db.Column(db.String(64), nullable=False)
    key = db.Column(db.String(64), nullable=False)
    value = db.Column(db.String(200), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("user_id", "session_id", "key", name="uq_session_preference"),
    )

    @property
    def is_expired(self):
        expires_at = self.expires_at
        if expires_at.tzinfo is None:  # SQLite drops the offset; values are stored in UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
