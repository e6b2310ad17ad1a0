"""
Congress policy — explanations of who may edit congress data.

Platform role decides whether a user may edit; congress project roles only
describe responsibility.  These helpers produce user-facing text and never
grant anything the permission resolver has not already decided.
"""

from dataclasses import dataclass, field

from advocacy.services.platform_roles import CONGRESS_EDITOR_ROLES, normalize_role

CONGRESS_ACTIONS = (
    "create_workstream",
    "update_workstream",
    "create_task",
    "update_task",
    "create_raid",
    "update_raid",
    "submit_decision",
    "review_decision",
    "approve_decision",
    "log_incident",
    "update_incident",
)

TONE_INFO = "info"
TONE_WARNING = "warning"


@dataclass
class PermissionCheck:
    allowed: bool
    reason: str
    platform_role: str

    def to_dict(self) -> dict:
        return {"allowed": self.allowed, "reason": self.reason, "platform_role": self.platform_role}


@dataclass
class ResponsibilityCheck:
    has_assignment: bool
    tone: str
    message: str
    roles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "has_assignment": self.has_assignment,
            "roles": list(self.roles),
            "tone": self.tone,
            "message": self.message,
        }


def is_congress_editor(platform_role: str | None) -> bool:
    return normalize_role(platform_role) in CONGRESS_EDITOR_ROLES


def can_perform_congress_action(platform_role: str | None, action: str) -> PermissionCheck:
    role = normalize_role(platform_role)
    if not is_congress_editor(role):
        return PermissionCheck(
            allowed=False,
            platform_role=role,
            reason=f"Your platform role ({role}) is read-only for this action.",
        )
    return PermissionCheck(
        allowed=True,
        platform_role=role,
        reason=f"Allowed by platform role ({role}) for {action}.",
    )


def responsibility_summary(platform_role: str | None, project_roles: list[str] | None) -> ResponsibilityCheck:
    """Explain how platform role and congress assignments combine for this user."""
    role = normalize_role(platform_role)
    roles = list(project_roles or [])
    editor = is_congress_editor(role)

    if roles and not editor:
        return ResponsibilityCheck(
            has_assignment=True,
            roles=roles,
            tone=TONE_WARNING,
            message=(
                f"You're assigned as {', '.join(roles)}, but your platform role ({role}) is read-only. "
                "Ask a coordinator/admin to perform edits or promote your platform role."
            ),
        )
    if editor and not roles:
        return ResponsibilityCheck(
            has_assignment=False,
            tone=TONE_INFO,
            message=(
                f"You can edit because your platform role ({role}) allows it. "
                "You currently have no congress assignment, so responsibility-focused views may be less targeted."
            ),
        )
    if roles:
        return ResponsibilityCheck(
            has_assignment=True,
            roles=roles,
            tone=TONE_INFO,
            message=f"Your congress responsibilities: {', '.join(roles)}.",
        )
    return ResponsibilityCheck(
        has_assignment=False,
        tone=TONE_INFO,
        message="No congress assignment recorded.",
    )
