"""
Congress stage gate — which workspace sections are emphasized per event stage.

The gate is advisory.  It only decides how the workspace navigation is
styled; every section stays reachable by direct link whatever the stage,
and no route consults it.  Access control belongs to the permission
resolver.  An unknown or missing stage shows every section.
"""

from advocacy.models.congress import EVENT_STATUSES

DEFAULT_STATUS = "planning"

EVENT_STATUS_META: dict[str, dict[str, str]] = {
    "planning": {
        "label": "Planning",
        "phase": "pre",
        "description": "Event is being planned, not yet open for topics",
    },
    "open_for_topics": {
        "label": "Open for Topics",
        "phase": "pre",
        "description": "Topic proposals are open for community submission",
    },
    "agenda_set": {
        "label": "Agenda Set",
        "phase": "pre",
        "description": "Agenda is finalised; sessions and speakers confirmed",
    },
    "live": {
        "label": "Live",
        "phase": "live",
        "description": "Congress is in progress",
    },
    "post_congress": {
        "label": "Post-Congress",
        "phase": "post",
        "description": "Congress has ended; decisions converting to tasks",
    },
    "archived": {
        "label": "Archived",
        "phase": "archived",
        "description": "Archived; all outcomes recorded",
    },
}

WORKSPACE_SECTIONS: tuple[dict[str, str], ...] = (
    {"key": "overview", "label": "Overview", "href": "/app/congress/workspace/overview"},
    {"key": "workstreams", "label": "Workstreams", "href": "/app/congress/workspace/workstreams"},
    {"key": "timeline", "label": "Timeline", "href": "/app/congress/workspace/timeline"},
    {"key": "tasks", "label": "Tasks", "href": "/app/congress/workspace/tasks"},
    {"key": "raid", "label": "RAID", "href": "/app/congress/workspace/raid"},
    {"key": "approvals", "label": "Decisions/Approvals", "href": "/app/congress/workspace/approvals"},
    {"key": "live-ops", "label": "Live Ops", "href": "/app/congress/workspace/live-ops"},
    {"key": "follow-up", "label": "Follow-up", "href": "/app/congress/workspace/follow-up"},
    {"key": "team", "label": "Team", "href": "/app/congress/workspace/team"},
    {"key": "communications", "label": "Communications", "href": "/app/congress/workspace/communications"},
)
SECTION_KEYS = tuple(s["key"] for s in WORKSPACE_SECTIONS)

# Emphasized sections per stage, in display priority order.
STAGE_SECTIONS: dict[str, tuple[str, ...]] = {
    "planning": ("overview", "workstreams", "timeline", "team", "communications"),
    "open_for_topics": ("overview", "workstreams", "timeline", "team", "communications"),
    "agenda_set": ("overview", "workstreams", "timeline", "tasks", "raid", "team", "communications"),
    "live": (
        "live-ops", "overview", "tasks", "raid", "workstreams", "timeline",
        "team", "communications", "approvals",
    ),
    "post_congress": ("approvals", "follow-up", "tasks", "raid", "overview", "team", "communications"),
    "archived": (
        "overview", "approvals", "raid", "tasks", "workstreams", "timeline",
        "team", "communications",
    ),
}


def normalize_event_status(value, default: str | None = DEFAULT_STATUS) -> str | None:
    """Return ``value`` if it is a known stage, else ``default``.

    Display code keeps the ``planning`` default; gating passes ``default=None``
    so an unknown stage fails open.
    """
    if isinstance(value, str) and value in EVENT_STATUSES:
        return value
    return default


def is_section_visible(stage: str | None, section: str) -> bool:
    stage = normalize_event_status(stage, default=None)
    if stage is None:
        return True
    return section in STAGE_SECTIONS[stage]


def workspace_nav(stage: str | None, active: str | None = None) -> list[dict]:
    """Section navigation entries with ``active`` and ``emphasized`` flags."""
    return [
        {
            **section,
            "active": section["key"] == active,
            "emphasized": is_section_visible(stage, section["key"]),
        }
        for section in WORKSPACE_SECTIONS
    ]


def next_stage(stage: str | None) -> str | None:
    """The stage after ``stage``; None for ``archived`` or an unknown stage."""
    stage = normalize_event_status(stage, default=None)
    if stage is None:
        return None
    idx = EVENT_STATUSES.index(stage)
    return EVENT_STATUSES[idx + 1] if idx + 1 < len(EVENT_STATUSES) else None


def stage_info(stage: str | None) -> dict:
    """Label, phase, description and emphasized sections for a stage."""
    status = normalize_event_status(stage)
    return {
        "status": status,
        **EVENT_STATUS_META[status],
        "sections": list(STAGE_SECTIONS[status]),
        "next": next_stage(status),
    }
