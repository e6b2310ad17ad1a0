"""
Congress assignments — who is responsible for what in a congress edition.

Assignments are descriptive only.  Nothing here grants or denies access;
edit rights come from the permission resolver.  The records feed
"why can / can't I edit" messaging and ownership display.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from advocacy.core.exceptions import NotFoundError, ValidationError
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.models.congress import (
    CONGRESS_PROJECT_ROLES,
    CongressAssignment,
    CongressEvent,
)

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"
SCOPE_WORKSTREAMS = "workstreams"


@dataclass
class Assignment:
    """Plain record of one congress assignment row."""
    id: str
    user_id: str
    congress_id: str
    project_role: str
    scope_kind: str
    effective_from: date
    effective_to: date | None = None
    workstream_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        scope = {"kind": self.scope_kind}
        if self.scope_kind == SCOPE_WORKSTREAMS:
            scope["workstream_ids"] = list(self.workstream_ids)
        return {
            "id": self.id,
            "user_id": self.user_id,
            "congress_id": self.congress_id,
            "project_role": self.project_role,
            "scope": scope,
            "effective_from": self.effective_from.isoformat(),
            "effective_to": self.effective_to.isoformat() if self.effective_to else None,
        }


def _as_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def row_to_assignment(row: CongressAssignment) -> Assignment:
    return Assignment(
        id=row.id,
        user_id=row.user_id,
        congress_id=row.congress_id,
        project_role=row.project_role,
        scope_kind=SCOPE_ALL if row.scope_all else SCOPE_WORKSTREAMS,
        workstream_ids=[] if row.scope_all else list(row.workstream_ids or []),
        effective_from=_as_date(row.effective_from),
        effective_to=_as_date(row.effective_to) if row.effective_to else None,
    )


def is_assignment_effective_on(assignment: Assignment, on_date) -> bool:
    """True if ``on_date`` lies within [effective_from, effective_to]; both ends inclusive."""
    on = _as_date(on_date)
    if on < assignment.effective_from:
        return False
    if assignment.effective_to is not None and on > assignment.effective_to:
        return False
    return True


def list_assignments(congress_id: str, user_id: str | None = None, on_date=None) -> list[Assignment]:
    """Assignments for a congress, optionally for one user and effective on a date."""
    q = CongressAssignment.query.filter_by(congress_id=congress_id)
    if user_id:
        q = q.filter_by(user_id=user_id)
    rows = q.order_by(CongressAssignment.effective_from, CongressAssignment.project_role).all()
    items = [row_to_assignment(r) for r in rows]
    if on_date is not None:
        items = [a for a in items if is_assignment_effective_on(a, on_date)]
    return items


def effective_project_roles(user_id: str, congress_id: str, on_date=None) -> list[str]:
    """Distinct project roles the user holds for the congress on ``on_date`` (default today)."""
    on = on_date or date.today()
    roles = []
    for a in list_assignments(congress_id, user_id=user_id, on_date=on):
        if a.project_role not in roles:
            roles.append(a.project_role)
    return roles


def set_congress_roles(actor_id: str, user_id: str, congress_id: str, roles: list[str]) -> list[Assignment]:
    """
    Replace a user's assignments for a congress.

    Every new row covers all workstreams and is effective from today.
    An empty ``roles`` list removes the user's assignments.  Flushes only;
    the caller commits.  The caller is responsible for checking that
    ``actor_id`` may manage the congress.

    Raises:
        NotFoundError: unknown congress or user.
        ValidationError: a role outside the project role set.
    """
    if db.session.get(CongressEvent, congress_id) is None:
        raise NotFoundError("Congress event", congress_id)
    if db.session.get(Profile, user_id) is None:
        raise NotFoundError("Profile", user_id)

    unique_roles = []
    for role in roles or []:
        if role not in CONGRESS_PROJECT_ROLES:
            raise ValidationError("Invalid congress project role", details={"project_role": role})
        if role not in unique_roles:
            unique_roles.append(role)

    CongressAssignment.query.filter_by(
        congress_id=congress_id, user_id=user_id,
    ).delete(synchronize_session=False)

    today = date.today()
    rows = []
    for role in unique_roles:
        row = CongressAssignment(
            user_id=user_id,
            congress_id=congress_id,
            project_role=role,
            scope_all=True,
            workstream_ids=[],
            effective_from=today,
        )
        db.session.add(row)
        rows.append(row)
    db.session.flush()

    logger.info(
        "Congress roles for %s in %s set to %s by %s",
        user_id, congress_id, unique_roles or "none", actor_id,
    )
    return [row_to_assignment(r) for r in rows]
