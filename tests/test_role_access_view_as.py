"""
Role-based navigation and the PlatformAdmin view-as preview.

Test blocks:
  1. Side navigation + app path checks
  2. View-as storage
  3. /api/v1/me endpoints
"""

from datetime import datetime, timedelta, timezone

import pytest

from advocacy.models import db
from advocacy.models.auth import SessionPreference
from advocacy.services import admin_actions
from advocacy.services.permission_service import resolve_all_spaces
from advocacy.services.role_access import (
    NAV_BY_ROLE,
    app_section,
    can_access_app_path,
    side_nav_items,
)
from advocacy.services.view_as import (
    get_view_as_role,
    navigation_role,
    purge_expired_preferences,
    set_view_as_role,
    store_view_as_role,
)
from advocacy.utils.errors import E


# ═════════════════════════════════════════════════════════════════════════════
# 1. Navigation
# ═════════════════════════════════════════════════════════════════════════════

class TestNavigation:
    def test_every_role_has_a_menu(self):
        assert len(NAV_BY_ROLE) == 8

    def test_admin_menu_ends_with_admin(self):
        nav = side_nav_items("PlatformAdmin", resolve_all_spaces(None, "PlatformAdmin"))
        assert nav[-1]["label"] == "Admin"

    def test_moderator_sees_story_review(self):
        labels = [i["label"] for i in side_nav_items("Moderator", resolve_all_spaces(None, "Moderator"))]
        assert "Story Review" in labels
        assert "Admin" not in labels

    def test_invisible_spaces_are_dropped(self):
        access = resolve_all_spaces(None, "PatientAdvocate")
        access["tasks"] = "invisible"
        keys = [i["key"] for i in side_nav_items("PatientAdvocate", access)]
        assert "tasks" not in keys
        assert "initiatives" in keys

    def test_unknown_role_uses_default_menu(self):
        access = resolve_all_spaces(None, "PatientAdvocate")
        assert side_nav_items("wizard", access) == side_nav_items("PatientAdvocate", access)

    @pytest.mark.parametrize("path,section", [
        ("/app", "dashboard"),
        ("/app/", "dashboard"),
        ("/app/congress/workspace/tasks", "congress"),
        ("/login", None),
        ("/apple", None),
    ])
    def test_app_section(self, path, section):
        assert app_section(path) == section

    def test_can_access_app_path(self):
        access = resolve_all_spaces(None, "IndustryPartner")
        assert can_access_app_path(access, "/app/partners")
        assert not can_access_app_path(access, "/app/tasks")
        assert not can_access_app_path(access, "/app/not-a-space")
        assert can_access_app_path(access, "/about")


# ═════════════════════════════════════════════════════════════════════════════
# 2. View-as
# ═════════════════════════════════════════════════════════════════════════════

class TestViewAs:
    def test_admin_sets_and_clears(self, admin, login_as):
        login_as(admin, session_id="s-1")
        assert set_view_as_role("Moderator") == {"error": None}
        assert get_view_as_role(admin.id, "s-1") == "Moderator"
        assert get_view_as_role(admin.id, "s-2") is None

        assert set_view_as_role(None) == {"error": None}
        assert get_view_as_role(admin.id, "s-1") is None

    def test_previewing_admin_role_clears(self, admin, login_as):
        login_as(admin)
        set_view_as_role("Clinician")
        set_view_as_role("PlatformAdmin")
        assert SessionPreference.query.count() == 0

    def test_non_admin_forbidden(self, advocate, login_as):
        login_as(advocate)
        result = set_view_as_role("Moderator")
        assert result["code"] == E.FORBIDDEN

    def test_invalid_role(self, admin, login_as):
        login_as(admin)
        result = set_view_as_role("Overlord")
        assert result == {"error": "Invalid role value", "code": E.VALIDATION_INVALID}

    def test_requires_session(self, admin, login_as):
        login_as(admin, session_id=None)
        assert set_view_as_role("Moderator")["code"] == E.VALIDATION_INVALID

    def test_expired_preview_is_ignored_and_purged(self, admin, make_profile):
        store_view_as_role(admin.id, "s-1", "BoardMember")
        other = make_profile()
        store_view_as_role(other.id, "s-9", "Clinician")
        pref = SessionPreference.query.filter_by(user_id=admin.id).one()
        pref.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.session.commit()

        assert get_view_as_role(admin.id, "s-1") is None
        assert purge_expired_preferences() == 1
        assert SessionPreference.query.count() == 1

    def test_purge_deletes_only_expired_rows(self, admin, advocate):
        now = datetime.now(timezone.utc)
        db.session.add_all([
            SessionPreference(user_id=admin.id, session_id="s-1", key="view_as_role",
                              value="Moderator", expires_at=now - timedelta(seconds=5)),
            SessionPreference(user_id=admin.id, session_id="s-2", key="view_as_role",
                              value="Clinician", expires_at=now + timedelta(hours=1)),
            SessionPreference(user_id=advocate.id, session_id="s-3", key="theme",
                              value="dark", expires_at=now - timedelta(days=2)),
        ])
        db.session.commit()

        assert purge_expired_preferences() == 2
        assert [p.session_id for p in SessionPreference.query.all()] == ["s-2"]
        assert purge_expired_preferences() == 0

    def test_expiry_is_timezone_aware(self, admin):
        assert SessionPreference.__table__.c.expires_at.type.timezone is True
        pref = SessionPreference(expires_at=datetime.now(timezone.utc) + timedelta(minutes=5))
        assert not pref.is_expired
        # Naive values read back from SQLite are UTC
        pref.expires_at = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=5)
        assert pref.is_expired

    def test_navigation_role_only_changes_for_admin(self, admin, advocate):
        store_view_as_role(admin.id, "s-1", "Moderator")
        store_view_as_role(advocate.id, "s-1", "HubCoordinator")
        assert navigation_role("PlatformAdmin", admin.id, "s-1") == "Moderator"
        assert navigation_role("PatientAdvocate", advocate.id, "s-1") == "PatientAdvocate"

    def test_preview_does_not_change_admin_powers(self, admin, advocate, login_as):
        login_as(admin)
        set_view_as_role("PatientAdvocate")
        result = admin_actions.set_permission_override(advocate.id, "tasks", "view")
        assert result == {"error": None}


# ═════════════════════════════════════════════════════════════════════════════
# 3. /me API
# ═════════════════════════════════════════════════════════════════════════════

class TestMeApi:
    def test_requires_auth(self, client):
        assert client.get("/api/v1/me/access").status_code == 401

    def test_access_for_member(self, client, advocate, auth_headers):
        body = client.get("/api/v1/me/access", headers=auth_headers(advocate)).get_json()
        assert body["role"] == "PatientAdvocate"
        assert body["navigation_role"] == "PatientAdvocate"
        assert body["view_as_role"] is None
        assert body["access"]["admin"] == "invisible"
        assert "admin" not in [i["key"] for i in body["nav"]]

    def test_admin_preview_changes_nav_only(self, client, admin, auth_headers):
        headers = auth_headers(admin, session_id="preview-session")
        res = client.put("/api/v1/admin/view-as", json={"role": "Moderator"}, headers=headers)
        assert res.status_code == 200

        body = client.get("/api/v1/me/access", headers=headers).get_json()
        assert body["role"] == "PlatformAdmin"
        assert body["view_as_role"] == "Moderator"
        assert body["navigation_role"] == "Moderator"
        labels = [i["label"] for i in body["nav"]]
        assert "Story Review" in labels
        assert "Admin" not in labels
        assert body["access"]["admin"] == "manage"

        # Another session of the same admin is unaffected
        other = client.get(
            "/api/v1/me/access", headers=auth_headers(admin, session_id="other-session"),
        ).get_json()
        assert other["navigation_role"] == "PlatformAdmin"

    def test_can_access(self, client, advocate, auth_headers):
        headers = auth_headers(advocate)
        assert client.get("/api/v1/me/can-access?path=/app/tasks", headers=headers).get_json()["allowed"]
        assert not client.get("/api/v1/me/can-access?path=/app/admin", headers=headers).get_json()["allowed"]
        assert client.get("/api/v1/me/can-access", headers=headers).status_code == 400
