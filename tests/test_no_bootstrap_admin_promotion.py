"""PlatformAdmin is only ever granted explicitly: by an admin action or the CLI."""

import pathlib

import pytest

from advocacy.core.exceptions import AuthorizationError
from advocacy.models import db
from advocacy.models.auth import Profile
from advocacy.models.permissions import PermissionAuditLog
from advocacy.services.admin_actions import require_admin
from advocacy.services.permission_service import get_platform_role, resolve_access

PACKAGE_ROOT = pathlib.Path(__file__).resolve().parent.parent / "advocacy"


def test_no_email_allowlist_in_sources():
    for path in PACKAGE_ROOT.rglob("*.py"):
        text = path.read_text(encoding="utf-8")
        assert "ADMIN_EMAILS" not in text, path
        assert "bootstrap admin" not in text.lower(), path


def test_admin_looking_email_is_not_promoted(make_profile, login_as):
    profile = make_profile(role=None, email="admin@advocacy.test")
    assert get_platform_role(profile.id) == "PatientAdvocate"
    assert resolve_access(profile.id, None, "admin") == "invisible"

    login_as(profile)
    with pytest.raises(AuthorizationError):
        require_admin()
    assert db.session.get(Profile, profile.id).role is None


def test_cli_set_role_promotes_and_audits(app, make_profile):
    profile = make_profile(email="first.admin@advocacy.test")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["set-role", "first.admin@advocacy.test", "PlatformAdmin"])
    assert result.exit_code == 0, result.output
    assert get_platform_role(profile.id) == "PlatformAdmin"

    entry = PermissionAuditLog.query.filter_by(change_type="platform_role").one()
    assert entry.changed_by == "cli"
    assert entry.new_value == {"role": "PlatformAdmin"}


def test_cli_set_role_rejects_bad_input(app, make_profile):
    make_profile(email="someone@advocacy.test")
    runner = app.test_cli_runner()

    assert runner.invoke(args=["set-role", "nobody@advocacy.test", "PlatformAdmin"]).exit_code != 0
    assert runner.invoke(args=["set-role", "someone@advocacy.test", "Overlord"]).exit_code != 0
    assert PermissionAuditLog.query.count() == 0
