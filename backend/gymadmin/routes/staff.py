# Overview: Flask API routes for branch staff: roster, PIN verification and PIN administration.

from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import audit_log, enforce_branch_access, optional_auth, require_auth, require_permission
from ..errors import ResourceNotFound
from ..permissions import Permission
from ..services import credential_store, step_up_service
from ..time_utils import to_utc_z


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


def _client_info() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def require_staff_in_scope(permission_code: str):
    """Load the staff member named by the URL and enforce branch isolation on its branch."""
    def decorator(f):
        @wraps(f)
        def decorated_function(staff_id, *args, **kwargs):
            staff = credential_store.get_staff(staff_id)
            if not staff:
                raise ResourceNotFound("Staff member not found")
            enforce_branch_access(staff.branch_id, permission_code)
            g.target_staff = staff
            return f(*args, staff_id=staff_id, **kwargs)

        return decorated_function
    return decorator


@staff_bp.get("/branch/<branch_id>")
@optional_auth
def list_branch_staff_route(branch_id):
    """
    Active staff of a branch, for the PIN prompt on the front-desk screen.

    Public: the roster is needed before anyone has a session. PIN hashes are
    never part of the payload.
    """
    staff = credential_store.list_branch_staff(branch_id)
    return jsonify({
        "status": "success",
        "data": [
            {
                "id": s.id,
                "first_name": s.first_name,
                "last_name": s.last_name,
                "role": s.role,
                "has_pin": s.pin_hash is not None,
            }
            for s in staff
        ],
    })


@staff_bp.post("/verify-pin")
def verify_pin_route():
    """
    Verify a staff PIN without opening a session.

    Body: {"staffId": "...", "pin": "1234"} ("staffPin" is accepted too)

    A wrong PIN answers 200 with isValid false and the remaining attempts;
    lockout answers 429, malformed PIN 400, unmigrated PIN 409.
    """
    data = request.get_json(silent=True) or {}
    pin = data.get("pin") if data.get("pin") is not None else data.get("staffPin")

    result = step_up_service.verify_pin(data.get("staffId"), pin, **_client_info())

    return jsonify({
        "status": "success",
        "isValid": result.is_valid,
        "attemptsRemaining": result.attempts_remaining,
        "staff": result.staff.to_dict() if result.staff else None,
    })


@staff_bp.get("/<staff_id>/lockout-status")
@require_auth
@require_staff_in_scope(Permission.STAFF_READ)
@require_permission(Permission.STAFF_READ)
def lockout_status_route(staff_id):
    status = step_up_service.get_lockout_status(g.target_staff.id)
    status["locked_until"] = to_utc_z(status["locked_until"])
    return jsonify({"status": "success", "data": status})


@staff_bp.put("/<staff_id>/pin")
@require_auth
@require_staff_in_scope(Permission.STAFF_MANAGE_PINS)
@require_permission(Permission.STAFF_MANAGE_PINS)
@audit_log("SET_STAFF_PIN", "staff")
def set_pin_route(staff_id):
    """
    Set or reset a staff PIN.

    Body: {"pin": "4821"}. Weak PINs (repeated digits, simple sequences) are
    rejected. Open branch sessions of the staff member are revoked.
    """
    data = request.get_json(silent=True) or {}

    staff = step_up_service.set_staff_pin(
        g.target_staff.id,
        data.get("pin"),
        changed_by=g.principal.id,
        **_client_info(),
    )
    current_app.logger.info("PIN updated for staff %s by %s", staff.id, g.principal.id)
    return jsonify({"status": "success", "data": staff.to_dict()})


@staff_bp.delete("/<staff_id>/pin")
@require_auth
@require_staff_in_scope(Permission.STAFF_MANAGE_PINS)
@require_permission(Permission.STAFF_MANAGE_PINS)
@audit_log("CLEAR_STAFF_PIN", "staff", resource_id_arg="staff_id")
def clear_pin_route(staff_id):
    staff = step_up_service.clear_staff_pin(
        g.target_staff.id,
        changed_by=g.principal.id,
        **_client_info(),
    )
    current_app.logger.info("PIN cleared for staff %s by %s", staff.id, g.principal.id)
    return jsonify({"status": "success", "data": staff.to_dict()})
