"""
Admin permissions API — HTTP mapping of the admin actions and the overview.

Test blocks:
  1. Authentication & authorization
  2. Override endpoints
  3. Role default endpoints
  4. Overview / explain
"""

import pytest

from advocacy.models import db
from advocacy.models.permissions import PermissionAuditLog, PermissionOverride, RoleDefaultOverride


# ═════════════════════════════════════════════════════════════════════════════
# 1. Authentication & authorization
# ═════════════════════════════════════════════════════════════════════════════

class TestAuth:
    def test_overview_requires_token(self, client):
        res = client.get("/api/v1/admin/permissions")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Not authenticated"

    def test_overview_hidden_from_non_admin(self, client, advocate, auth_headers):
        res = client.get("/api/v1/admin/permissions", headers=auth_headers(advocate))
        assert res.status_code == 403
        body = res.get_json()
        assert body["resolved"] == "invisible"
        assert body["required"] == {"space": "admin", "access_level": "view"}

    def test_write_without_token(self, client, advocate):
        res = client.put(
            f"/api/v1/admin/permissions/users/{advocate.id}/overrides",
            json={"space": "tasks", "access_level": "view"},
        )
        assert res.status_code == 401
        assert res.get_json() == {"error": "Not authenticated", "code": "ERR_UNAUTHENTICATED"}

    def test_write_as_non_admin(self, client, advocate, auth_headers):
        res = client.put(
            f"/api/v1/admin/permissions/users/{advocate.id}/overrides",
            json={"space": "tasks", "access_level": "manage"},
            headers=auth_headers(advocate),
        )
        assert res.status_code == 403
        assert res.get_json()["error"] == "Forbidden: PlatformAdmin only"

    def test_invalid_token_is_anonymous(self, client):
        res = client.get("/api/v1/admin/permissions", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_admin_space_override_grants_read_only(self, client, admin, advocate, auth_headers):
        # An override on the admin space opens the read endpoints, never the actions
        client.put(
            f"/api/v1/admin/permissions/users/{advocate.id}/overrides",
            json={"space": "admin", "access_level": "view"},
            headers=auth_headers(admin),
        )
        headers = auth_headers(advocate)
        assert client.get("/api/v1/admin/permissions", headers=headers).status_code == 200
        res = client.put(
            "/api/v1/admin/permissions/role-defaults",
            json={"role": "Clinician", "space": "tasks", "access_level": "view"},
            headers=headers,
        )
        assert res.status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# 2. Override endpoints
# ═════════════════════════════════════════════════════════════════════════════

class TestOverrideEndpoints:
    def test_set_and_remove(self, client, admin, advocate, auth_headers):
        headers = auth_headers(admin)
        url = f"/api/v1/admin/permissions/users/{advocate.id}/overrides"

        res = client.put(url, json={
            "space": "congress", "access_level": "manage",
            "scope_type": "congress", "scope_id": "c-1",
        }, headers=headers)
        assert res.status_code == 200
        assert res.get_json() == {"error": None}
        assert PermissionOverride.query.one().scope_id == "c-1"

        res = client.delete(url, json={
            "space": "congress", "scope_type": "congress", "scope_id": "c-1",
        }, headers=headers)
        assert res.status_code == 200
        assert PermissionOverride.query.count() == 0
        assert PermissionAuditLog.query.count() == 2

    def test_remove_with_query_args(self, client, admin, advocate, auth_headers):
        headers = auth_headers(admin)
        url = f"/api/v1/admin/permissions/users/{advocate.id}/overrides"
        client.put(url, json={"space": "tasks", "access_level": "view"}, headers=headers)

        res = client.delete(f"{url}?space=tasks", headers=headers)
        assert res.status_code == 200
        assert PermissionOverride.query.count() == 0

    @pytest.mark.parametrize("payload,message", [
        ({"space": "vault", "access_level": "view"}, "Invalid space value"),
        ({"space": "tasks", "access_level": "root"}, "Invalid access level value"),
        ({"space": "tasks", "access_level": "view", "scope_id": "x"},
         "scopeId must be empty when scopeType is global"),
        ({"space": "tasks", "access_level": "view", "scope_type": "congress"},
         "scopeId is required for scoped permissions"),
    ])
    def test_validation_errors(self, client, admin, advocate, auth_headers, payload, message):
        res = client.put(
            f"/api/v1/admin/permissions/users/{advocate.id}/overrides",
            json=payload, headers=auth_headers(admin),
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == message

    def test_unknown_user(self, client, admin, auth_headers):
        res = client.put(
            "/api/v1/admin/permissions/users/ghost/overrides",
            json={"space": "tasks", "access_level": "view"},
            headers=auth_headers(admin),
        )
        assert res.status_code == 404

    def test_non_json_body_rejected(self, client, admin, advocate, auth_headers):
        res = client.put(
            f"/api/v1/admin/permissions/users/{advocate.id}/overrides",
            data="space=tasks", content_type="text/plain",
            headers=auth_headers(admin),
        )
        assert res.status_code == 415


# ═════════════════════════════════════════════════════════════════════════════
# 3. Role default endpoints
# ═════════════════════════════════════════════════════════════════════════════

class TestRoleDefaultEndpoints:
    def test_set_and_read_matrix(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        res = client.put(
            "/api/v1/admin/permissions/role-defaults",
            json={"role": "Researcher", "space": "stories", "access_level": "edit"},
            headers=headers,
        )
        assert res.status_code == 200

        body = client.get("/api/v1/admin/permissions/role-defaults", headers=headers).get_json()
        assert body["warning"] is None
        assert body["matrix"]["Researcher"]["stories"] == "edit"
        assert body["matrix"]["Clinician"]["stories"] == "view"

    def test_missing_table_returns_503(self, client, admin, auth_headers):
        db.session.commit()
        RoleDefaultOverride.__table__.drop(db.engine)
        res = client.put(
            "/api/v1/admin/permissions/role-defaults",
            json={"role": "Researcher", "space": "stories", "access_level": "edit"},
            headers=auth_headers(admin),
        )
        assert res.status_code == 503
        assert "migration 0003_role_space_default_overrides required" in res.get_json()["error"]

    def test_missing_table_matrix_warning(self, client, admin, auth_headers):
        db.session.commit()
        RoleDefaultOverride.__table__.drop(db.engine)
        body = client.get(
            "/api/v1/admin/permissions/role-defaults", headers=auth_headers(admin),
        ).get_json()
        assert body["warning"].startswith("role defaults: role defaults table missing")
        assert body["matrix"]["PatientAdvocate"]["dashboard"] == "view"


# ═════════════════════════════════════════════════════════════════════════════
# 4. Overview / explain / role change
# ═════════════════════════════════════════════════════════════════════════════

class TestOverview:
    def test_overview_lists_users_and_overrides(self, client, admin, advocate, auth_headers):
        headers = auth_headers(admin)
        url = f"/api/v1/admin/permissions/users/{advocate.id}/overrides"
        client.put(url, json={"space": "partners", "access_level": "view"}, headers=headers)
        client.put(url, json={
            "space": "tasks", "access_level": "manage",
            "scope_type": "initiative", "scope_id": "i-7",
        }, headers=headers)

        body = client.get("/api/v1/admin/permissions", headers=headers).get_json()
        assert body["page_error"] is None
        assert body["override_count"] == 1
        user = next(u for u in body["users"] if u["id"] == advocate.id)
        assert user["overrides"]["partners"] == "view"
        assert user["overrides"]["tasks"] is None
        assert user["scoped_override_counts"]["tasks"] == 1
        assert user["recent_scoped_overrides"][0]["scope_id"] == "i-7"
        summaries = [a["summary"] for a in user["recent_audit"]]
        assert "tasks: manage (initiative:i-7)" in summaries
        assert "partners: view (global)" in summaries

    def test_explain(self, client, admin, advocate, auth_headers):
        res = client.get(
            f"/api/v1/admin/permissions/users/{advocate.id}/explain?space=stories",
            headers=auth_headers(admin),
        )
        assert res.status_code == 200
        assert res.get_json()["source"] == "static_default"
        assert res.get_json()["access_level"] == "edit"

    def test_explain_bad_scope(self, client, admin, advocate, auth_headers):
        res = client.get(
            f"/api/v1/admin/permissions/users/{advocate.id}/explain?space=stories&scope_id=x",
            headers=auth_headers(admin),
        )
        assert res.status_code == 400

    def test_change_role(self, client, admin, advocate, auth_headers):
        res = client.put(
            f"/api/v1/admin/users/{advocate.id}/role",
            json={"role": "Moderator"}, headers=auth_headers(admin),
        )
        assert res.status_code == 200
        res = client.get("/api/v1/me/access", headers=auth_headers(advocate))
        assert res.get_json()["role"] == "Moderator"
