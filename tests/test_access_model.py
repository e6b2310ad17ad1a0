"""Static access model — roles, spaces, levels, scopes and the defaults matrix."""

import pytest

from advocacy.services.access_model import (
    ACCESS_LEVELS,
    PLATFORM_SPACES,
    ROLE_SPACE_DEFAULTS,
    SCOPE_ID_FORBIDDEN,
    SCOPE_ID_REQUIRED,
    SCOPE_TYPE_INVALID,
    access_level_index,
    can_access,
    compare_access,
    is_access_level,
    is_space,
    max_access,
    resolve_access_from_role,
    static_defaults_matrix,
    validate_scope,
)
from advocacy.services.platform_roles import PLATFORM_ROLES, is_admin, normalize_role


class TestDefaultsMatrix:
    def test_every_role_has_every_space(self):
        assert set(ROLE_SPACE_DEFAULTS) == set(PLATFORM_ROLES)
        for role in PLATFORM_ROLES:
            assert set(ROLE_SPACE_DEFAULTS[role]) == set(PLATFORM_SPACES), role

    def test_every_entry_is_a_valid_level(self):
        for role, spaces in ROLE_SPACE_DEFAULTS.items():
            for space, level in spaces.items():
                assert is_access_level(level), (role, space, level)

    def test_platform_admin_manages_everything(self):
        assert all(level == "manage" for level in ROLE_SPACE_DEFAULTS["PlatformAdmin"].values())

    def test_admin_space_hidden_from_non_admins(self):
        for role in PLATFORM_ROLES:
            if role != "PlatformAdmin":
                assert ROLE_SPACE_DEFAULTS[role]["admin"] == "invisible"

    def test_static_matrix_copy_is_independent(self):
        copy = static_defaults_matrix()
        copy["PatientAdvocate"]["dashboard"] = "manage"
        assert ROLE_SPACE_DEFAULTS["PatientAdvocate"]["dashboard"] == "view"


class TestAccessLevels:
    def test_total_order(self):
        assert ACCESS_LEVELS == ("invisible", "view", "edit", "manage")
        indexes = [access_level_index(level) for level in ACCESS_LEVELS]
        assert indexes == sorted(indexes)
        assert len(set(indexes)) == 4

    @pytest.mark.parametrize("level,minimum,expected", [
        ("edit", "view", True),
        ("view", "edit", False),
        ("manage", "manage", True),
        ("invisible", "view", False),
        ("view", "invisible", True),
    ])
    def test_can_access(self, level, minimum, expected):
        assert can_access(level, minimum) is expected

    def test_compare_access(self):
        assert compare_access("invisible", "view") == -1
        assert compare_access("manage", "edit") == 1
        assert compare_access("edit", "edit") == 0

    def test_unknown_level_ranks_below_invisible(self):
        assert access_level_index("owner") == -1
        assert not can_access("owner", "invisible")

    def test_max_access(self):
        assert max_access("view", "manage", "edit") == "manage"
        assert max_access("bogus") == "invisible"
        assert max_access() == "invisible"


class TestScopeValidation:
    def test_global_with_id_rejected(self):
        assert validate_scope("global", "some-id") == SCOPE_ID_FORBIDDEN
        assert SCOPE_ID_FORBIDDEN == "scopeId must be empty when scopeType is global"

    def test_scoped_without_id_rejected(self):
        assert validate_scope("initiative", None) == SCOPE_ID_REQUIRED
        assert SCOPE_ID_REQUIRED == "scopeId is required for scoped permissions"

    def test_valid_pairs(self):
        assert validate_scope("global", None) is None
        assert validate_scope("congress", "c1") is None
        assert validate_scope(None, None) is None

    def test_unknown_scope_type(self):
        assert validate_scope("program", "p1") == SCOPE_TYPE_INVALID


class TestRoleLookup:
    def test_known_pair(self):
        assert resolve_access_from_role("Moderator", "stories") == "manage"
        assert resolve_access_from_role("IndustryPartner", "partners") == "edit"

    def test_unknown_role_uses_patient_advocate(self):
        assert resolve_access_from_role("Wizard", "tasks") == ROLE_SPACE_DEFAULTS["PatientAdvocate"]["tasks"]
        assert resolve_access_from_role(None, "stories") == "edit"

    def test_unknown_space_fails_closed(self):
        assert resolve_access_from_role("PlatformAdmin", "secrets") == "invisible"

    def test_is_space(self):
        assert is_space("congress")
        assert not is_space("Congress")
        assert not is_space(None)


class TestRoleNormalization:
    @pytest.mark.parametrize("raw,expected", [
        (None, "PatientAdvocate"),
        ("", "PatientAdvocate"),
        ("nonsense", "PatientAdvocate"),
        ("HubCoordinator", "HubCoordinator"),
        ("platform_admin", "PlatformAdmin"),
        ("Admin", "PlatformAdmin"),
        ("board_member", "BoardMember"),
        ("Patient", "PatientAdvocate"),
    ])
    def test_normalize_role(self, raw, expected):
        assert normalize_role(raw) == expected

    def test_is_admin(self):
        assert is_admin("PlatformAdmin")
        assert not is_admin("HubCoordinator")
