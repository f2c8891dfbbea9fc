# Overview: Flask API routes for inspecting roles, permissions and branch access.

from flask import Blueprint, g, jsonify

from ..decorators import get_registry, require_auth, require_branch_access, require_permission
from ..errors import ResourceNotFound
from ..permissions import Permission, PermissionRegistry, get_permission_definition


access_bp = Blueprint("access", __name__, url_prefix="/api/access")


@access_bp.get("/roles")
@require_auth
@require_permission(Permission.STAFF_READ)
def list_roles_route():
    return jsonify({"status": "success", "data": get_registry().describe_roles()})


@access_bp.get("/permissions/check/<permission>")
@require_auth
def check_permission_route(permission):
    definition = get_permission_definition(permission)
    if not definition:
        raise ResourceNotFound(f"Unknown permission: {permission}")

    return jsonify({
        "status": "success",
        "data": {
            "permission": permission,
            "name": definition["name"],
            "category": definition["category"],
            "role": g.principal.role,
            "granted": PermissionRegistry.has(g.permissions, permission),
        },
    })


@access_bp.get("/branch/<branch_id>")
@require_auth
@require_branch_access(Permission.BRANCHES_READ)
def check_branch_route(branch_id):
    """Answers 200 only when the caller may act on the branch."""
    return jsonify({
        "status": "success",
        "data": {
            "branchId": branch_id,
            "access": "granted",
            "sessionKind": g.principal.session_kind.value,
        },
    })
