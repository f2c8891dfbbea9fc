"""
Branch isolation guard tests.

Verifies:
- Admin and branches:manage_all always pass
- Branch-session principals only reach their own branch, whatever their role
- Platform principals without manage_all are deferred to the permission check
"""

import pytest

from gymadmin.errors import BranchAccessDenied
from gymadmin.permissions import EMPTY_PERMISSIONS, Permission, build_default_registry
from gymadmin.services.branch_guard import BranchDecision, check_branch_access
from gymadmin.services.identity_service import Principal, SessionKind


REGISTRY = build_default_registry()


def staff_principal(role, branch_id="B1"):
    return Principal(
        id="S1",
        email="s1@gym.test",
        role=role,
        session_kind=SessionKind.BRANCH_SESSION,
        branch_id=branch_id,
        staff_id="S1",
    )


def platform_principal(role):
    return Principal(id="P1", email="p1@gym.test", role=role, session_kind=SessionKind.PLATFORM_TOKEN)


class TestAdminOverride:

    def test_system_admin_allowed_anywhere(self):
        principal = platform_principal("super_admin")
        perms = REGISTRY.permissions_for("super_admin")
        assert check_branch_access(principal, perms, "B2") is BranchDecision.ALLOW

    def test_manage_all_allowed_anywhere(self):
        principal = platform_principal("regional")
        perms = frozenset({Permission.BRANCHES_MANAGE_ALL})
        assert check_branch_access(principal, perms, "B9") is BranchDecision.ALLOW

    def test_admin_on_branch_session_still_allowed_elsewhere(self):
        principal = staff_principal("super_admin", branch_id="B1")
        perms = REGISTRY.permissions_for("super_admin")
        assert check_branch_access(principal, perms, "B2") is BranchDecision.ALLOW


class TestBranchSessionIsolation:

    @pytest.mark.parametrize("role", ["manager", "senior_staff", "associate", "member", "janitor"])
    def test_own_branch_allowed(self, role):
        principal = staff_principal(role)
        assert check_branch_access(principal, REGISTRY.permissions_for(role), "B1") is BranchDecision.ALLOW

    @pytest.mark.parametrize("role", ["manager", "senior_staff", "associate", "member", "janitor"])
    def test_other_branch_denied_for_every_non_admin_role(self, role):
        principal = staff_principal(role)
        with pytest.raises(BranchAccessDenied) as exc:
            check_branch_access(principal, REGISTRY.permissions_for(role), "B2")

        assert exc.value.assigned_branch == "B1"
        assert exc.value.requested_branch == "B2"
        assert exc.value.to_dict()["assignedBranch"] == "B1"
        assert exc.value.to_dict()["requestedBranch"] == "B2"
        assert exc.value.status_code == 403

    def test_session_without_branch_is_denied(self):
        principal = staff_principal("manager", branch_id=None)
        with pytest.raises(BranchAccessDenied):
            check_branch_access(principal, REGISTRY.permissions_for("manager"), "B1")

    def test_branch_ids_compare_as_strings(self):
        principal = staff_principal("associate", branch_id="7")
        assert check_branch_access(principal, EMPTY_PERMISSIONS, 7) is BranchDecision.ALLOW


class TestDeferral:

    @pytest.mark.parametrize("role", ["manager", "senior_staff", "associate", "member", "janitor"])
    def test_platform_principal_without_manage_all_is_deferred(self, role):
        principal = platform_principal(role)
        assert check_branch_access(principal, REGISTRY.permissions_for(role), "B2") is BranchDecision.DEFER
