"""Congress stage gate: emphasized workspace sections per event stage."""

import pytest

from advocacy.services.stage_gate import (
    SECTION_KEYS,
    STAGE_SECTIONS,
    is_section_visible,
    next_stage,
    normalize_event_status,
    stage_info,
    workspace_nav,
)


class TestSectionVisibility:
    def test_live_emphasizes_approvals(self):
        assert is_section_visible("live", "approvals") is True

    def test_planning_hides_approvals(self):
        assert is_section_visible("planning", "approvals") is False

    @pytest.mark.parametrize("stage", [None, "", "cancelled", 42])
    def test_unknown_stage_shows_everything(self, stage):
        assert all(is_section_visible(stage, key) for key in SECTION_KEYS)

    def test_every_stage_lists_known_sections(self):
        for sections in STAGE_SECTIONS.values():
            assert set(sections) <= set(SECTION_KEYS)

    def test_post_congress_leads_with_approvals(self):
        assert STAGE_SECTIONS["post_congress"][0] == "approvals"
        assert is_section_visible("post_congress", "follow-up")
        assert not is_section_visible("post_congress", "live-ops")


class TestWorkspaceNav:
    def test_nav_keeps_every_section(self):
        nav = workspace_nav("planning", active="tasks")
        assert [item["key"] for item in nav] == list(SECTION_KEYS)
        by_key = {item["key"]: item for item in nav}
        assert by_key["tasks"]["active"] is True
        assert by_key["tasks"]["emphasized"] is False
        assert by_key["overview"]["emphasized"] is True
        assert by_key["raid"]["href"] == "/app/congress/workspace/raid"

    def test_unknown_stage_emphasizes_all(self):
        assert all(item["emphasized"] for item in workspace_nav("bogus"))


class TestStages:
    def test_normalize(self):
        assert normalize_event_status("live") == "live"
        assert normalize_event_status("LIVE") == "planning"
        assert normalize_event_status(None, default=None) is None

    def test_next_stage(self):
        assert next_stage("planning") == "open_for_topics"
        assert next_stage("post_congress") == "archived"
        assert next_stage("archived") is None
        assert next_stage("nope") is None

    def test_stage_info_defaults_to_planning(self):
        info = stage_info(None)
        assert info["status"] == "planning"
        assert info["label"] == "Planning"
        assert info["phase"] == "pre"
        assert info["sections"] == list(STAGE_SECTIONS["planning"])
