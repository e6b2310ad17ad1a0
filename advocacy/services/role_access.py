"""
Role access — per-role side navigation and app path checks.

The role decides which items a menu offers and in what order; the
resolved access map decides whether each item is shown at all.  A space
resolved to ``invisible`` never appears, whatever the role's menu says.
"""

from advocacy.services.access_model import PLATFORM_SPACES, can_access
from advocacy.services.platform_roles import normalize_role


def _item(key, label):
    return {"key": key, "label": label, "href": f"/app/{key}"}


_MEMBER_NAV = [
    _item("dashboard", "Dashboard"),
    _item("initiatives", "My Initiatives"),
    _item("tasks", "My Tasks"),
    _item("congress", "Congress"),
    _item("resources", "Resources"),
    _item("profile", "Profile"),
]

_COORDINATOR_NAV = [
    _item("dashboard", "Dashboard"),
    _item("bureau", "Bureau"),
    _item("initiatives", "All Initiatives"),
    _item("congress", "Congress"),
    _item("partners", "Partners"),
    _item("resources", "Resources"),
    _item("profile", "Profile"),
]

NAV_BY_ROLE: dict[str, list[dict[str, str]]] = {
    "PatientAdvocate": _MEMBER_NAV,
    "Clinician": _MEMBER_NAV,
    "Researcher": _MEMBER_NAV,
    "Moderator": [
        _item("dashboard", "Dashboard"),
        _item("stories", "Story Review"),
        _item("initiatives", "Initiatives"),
        _item("congress", "Congress"),
        _item("resources", "Resources"),
        _item("profile", "Profile"),
    ],
    "IndustryPartner": [
        _item("dashboard", "Dashboard"),
        _item("partners", "My Engagements"),
        _item("congress", "Congress"),
        _item("resources", "Resources"),
        _item("profile", "Profile"),
    ],
    "BoardMember": [
        _item("dashboard", "Board Overview"),
        _item("board", "Board"),
        _item("initiatives", "Initiatives"),
        _item("congress", "Congress"),
        _item("resources", "Resources"),
        _item("profile", "Profile"),
    ],
    "HubCoordinator": _COORDINATOR_NAV,
    "PlatformAdmin": _COORDINATOR_NAV + [_item("admin", "Admin")],
}


def app_section(path: str) -> str | None:
    """Section name for an ``/app/...`` path, or None outside the app."""
    if not path or not path.startswith("/app"):
        return None
    if path in ("/app", "/app/"):
        return "dashboard"
    if not path.startswith("/app/"):
        return None
    section = path.split("/")[2]
    return section or "dashboard"


def can_access_app_path(access_map: dict[str, str], path: str) -> bool:
    """True if the resolved access map allows at least ``view`` on the path's space.

    Paths outside ``/app`` are always allowed; app sections that are not a
    platform space are refused.
    """
    section = app_section(path)
    if section is None:
        return True
    if section not in PLATFORM_SPACES:
        return False
    return can_access(access_map.get(section, "invisible"), "view")


def side_nav_items(role: str | None, access_map: dict[str, str]) -> list[dict[str, str]]:
    """The role's menu with every item the access map hides removed."""
    items = NAV_BY_ROLE[normalize_role(role)]
    return [
        dict(item) for item in items
        if can_access(access_map.get(item["key"], "invisible"), "view")
    ]
