# Overview: Branch isolation rules for branch-parameterised operations.

"""
Branch Isolation Guard

Evaluated on every operation that targets a branch, independently of the
base permission check:

1. system:admin or branches:manage_all -> ALLOW
2. branch-session principal -> ALLOW only for the session's own branch,
   otherwise BranchAccessDenied(assigned, requested)
3. anyone else (platform-token principals) -> DEFER to the caller's own
   permission check
"""

from __future__ import annotations

import enum
import logging

from ..errors import BranchAccessDenied
from ..permissions import Permission, PermissionRegistry
from . import credential_store
from .identity_service import Principal

logger = logging.getLogger(__name__)

BRANCH_ACCESS_DENIED_EVENT = "branch_access_denied"


class BranchDecision(str, enum.Enum):
    ALLOW = "allow"
    DEFER = "defer"


def check_branch_access(principal: Principal, permissions, target_branch_id) -> BranchDecision:
    """Return ALLOW or DEFER, or raise BranchAccessDenied."""
    if PermissionRegistry.has(permissions, Permission.BRANCHES_MANAGE_ALL):
        return BranchDecision.ALLOW

    if principal.is_branch_session:
        if principal.branch_id and str(principal.branch_id) == str(target_branch_id):
            return BranchDecision.ALLOW
        raise BranchAccessDenied(principal.branch_id, target_branch_id)

    return BranchDecision.DEFER


def record_branch_denial(
    principal: Principal,
    error: BranchAccessDenied,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Append a branch_access_denied security event for staff principals."""
    if not principal.staff_id:
        return

    credential_store.append_security_event(
        principal.staff_id,
        BRANCH_ACCESS_DENIED_EVENT,
        ip_address=ip_address,
        user_agent=user_agent,
        details=f"assigned={error.assigned_branch} requested={error.requested_branch}",
    )
    logger.warning(
        "Branch access denied for staff %s: assigned=%s requested=%s",
        principal.staff_id, error.assigned_branch, error.requested_branch,
    )
