"""
Platform roles — the fixed role catalog and role normalization.

Every profile carries exactly one platform role.  Stored values are not
trusted: anything empty or unrecognized normalizes to ``PatientAdvocate``,
and a few legacy spellings found in older records map to their canonical
role.
"""

PLATFORM_ROLES: tuple[str, ...] = (
    "PatientAdvocate",
    "Clinician",
    "Researcher",
    "Moderator",
    "HubCoordinator",
    "IndustryPartner",
    "BoardMember",
    "PlatformAdmin",
)

DEFAULT_ROLE = "PatientAdvocate"
ADMIN_ROLE = "PlatformAdmin"

# Roles allowed to edit congress workspace data.
CONGRESS_EDITOR_ROLES = frozenset({"HubCoordinator", "PlatformAdmin"})

LEGACY_ROLE_MAP: dict[str, str] = {
    "patient": "PatientAdvocate",
    "advocate": "PatientAdvocate",
    "patient_advocate": "PatientAdvocate",
    "patientuser": "PatientAdvocate",
    "patient user": "PatientAdvocate",
    "admin": "PlatformAdmin",
    "platform_admin": "PlatformAdmin",
    "platform admin": "PlatformAdmin",
    "hub_coordinator": "HubCoordinator",
    "board_member": "BoardMember",
    "industry_partner": "IndustryPartner",
}


def is_platform_role(value) -> bool:
    """True only for an exact canonical role name."""
    return isinstance(value, str) and value in PLATFORM_ROLES


def normalize_role(role: str | None) -> str:
    """Return the canonical platform role for a stored value.

    >>> normalize_role(None)
    'PatientAdvocate'
    >>> normalize_role("platform_admin")
    'PlatformAdmin'
    """
    if not role:
        return DEFAULT_ROLE
    if role in PLATFORM_ROLES:
        return role
    lower = str(role).lower().strip()
    return LEGACY_ROLE_MAP.get(lower, DEFAULT_ROLE)


def is_admin(role: str | None) -> bool:
    return normalize_role(role) == ADMIN_ROLE
