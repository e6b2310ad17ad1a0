"""
Access model — spaces, ordered access levels, scopes and the static
role × space defaults matrix.

Everything here is pure: no database, no Flask.  The database-backed
resolver lives in ``permission_service``.

Access level order: invisible < view < edit < manage
"""

from advocacy.services.platform_roles import PLATFORM_ROLES, normalize_role

# ── Spaces ───────────────────────────────────────────────────────────────────

PLATFORM_SPACES: tuple[str, ...] = (
    "dashboard",
    "initiatives",
    "tasks",
    "congress",
    "stories",
    "resources",
    "partners",
    "network",
    "board",
    "bureau",
    "notifications",
    "profile",
    "admin",
)

# ── Access levels ────────────────────────────────────────────────────────────

ACCESS_LEVELS: tuple[str, ...] = ("invisible", "view", "edit", "manage")
_ACCESS_INDEX = {level: i for i, level in enumerate(ACCESS_LEVELS)}

# ── Scopes ───────────────────────────────────────────────────────────────────

SCOPE_TYPES: tuple[str, ...] = ("global", "congress", "initiative")
GLOBAL_SCOPE = "global"

SCOPE_ID_FORBIDDEN = "scopeId must be empty when scopeType is global"
SCOPE_ID_REQUIRED = "scopeId is required for scoped permissions"
SCOPE_TYPE_INVALID = "Invalid scopeType value"


def is_space(value) -> bool:
    return isinstance(value, str) and value in PLATFORM_SPACES


def is_access_level(value) -> bool:
    return isinstance(value, str) and value in _ACCESS_INDEX


def access_level_index(level: str) -> int:
    """Position of ``level`` in the total order; unknown levels rank below invisible."""
    return _ACCESS_INDEX.get(level, -1)


def can_access(level: str, minimum: str) -> bool:
    """True if ``level`` is at least as permissive as ``minimum``.

    can_access("edit", "view") is True, can_access("view", "edit") is False.
    """
    return access_level_index(level) >= access_level_index(minimum)


def compare_access(a: str, b: str) -> int:
    """-1, 0 or 1 as ``a`` is below, equal to or above ``b``."""
    ia, ib = access_level_index(a), access_level_index(b)
    return (ia > ib) - (ia < ib)


def max_access(*levels: str) -> str:
    valid = [lvl for lvl in levels if is_access_level(lvl)]
    if not valid:
        return "invisible"
    return max(valid, key=access_level_index)


def validate_scope(scope_type: str | None, scope_id: str | None) -> str | None:
    """Return an error message if the scope pair is inconsistent, else None."""
    scope_type = scope_type or GLOBAL_SCOPE
    if scope_type not in SCOPE_TYPES:
        return SCOPE_TYPE_INVALID
    if scope_type == GLOBAL_SCOPE:
        return SCOPE_ID_FORBIDDEN if scope_id else None
    return None if scope_id else SCOPE_ID_REQUIRED


# ── Role × Space defaults matrix ─────────────────────────────────────────────
# Every role has an explicit entry for every space.  Overrides are stored in
# role_space_default_overrides (per role) and user_space_permissions (per user).

ROLE_SPACE_DEFAULTS: dict[str, dict[str, str]] = {
    "PatientAdvocate": {
        "dashboard": "view",
        "initiatives": "edit",
        "tasks": "edit",
        "congress": "view",
        "stories": "edit",
        "resources": "view",
        "partners": "invisible",
        "network": "view",
        "board": "invisible",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "Clinician": {
        "dashboard": "view",
        "initiatives": "edit",
        "tasks": "edit",
        "congress": "view",
        "stories": "view",
        "resources": "view",
        "partners": "invisible",
        "network": "view",
        "board": "invisible",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "Researcher": {
        "dashboard": "view",
        "initiatives": "edit",
        "tasks": "edit",
        "congress": "view",
        "stories": "view",
        "resources": "view",
        "partners": "invisible",
        "network": "view",
        "board": "invisible",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "Moderator": {
        "dashboard": "view",
        "initiatives": "view",
        "tasks": "invisible",
        "congress": "view",
        "stories": "manage",
        "resources": "view",
        "partners": "invisible",
        "network": "view",
        "board": "invisible",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "HubCoordinator": {
        "dashboard": "view",
        "initiatives": "manage",
        "tasks": "manage",
        "congress": "view",
        "stories": "manage",
        "resources": "manage",
        "partners": "manage",
        "network": "view",
        "board": "invisible",
        "bureau": "manage",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "IndustryPartner": {
        "dashboard": "view",
        "initiatives": "invisible",
        "tasks": "invisible",
        "congress": "view",
        "stories": "invisible",
        "resources": "view",
        "partners": "edit",
        "network": "view",
        "board": "invisible",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "BoardMember": {
        "dashboard": "view",
        "initiatives": "view",
        "tasks": "invisible",
        "congress": "view",
        "stories": "view",
        "resources": "view",
        "partners": "invisible",
        "network": "view",
        "board": "manage",
        "bureau": "invisible",
        "notifications": "view",
        "profile": "edit",
        "admin": "invisible",
    },
    "PlatformAdmin": {space: "manage" for space in PLATFORM_SPACES},
}


def resolve_access_from_role(role: str | None, space: str) -> str:
    """Static default for a role on a space.

    Unknown roles are treated as PatientAdvocate; a space the matrix does not
    know fails closed to ``invisible``.
    """
    normalized = normalize_role(role)
    return ROLE_SPACE_DEFAULTS.get(normalized, {}).get(space, "invisible")


def static_defaults_matrix() -> dict[str, dict[str, str]]:
    """Deep copy of the static matrix, safe for callers to mutate."""
    return {
        role: {space: ROLE_SPACE_DEFAULTS[role][space] for space in PLATFORM_SPACES}
        for role in PLATFORM_ROLES
    }
