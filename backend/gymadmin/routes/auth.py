# Overview: Flask API routes for staff PIN login, logout and identity inspection.

"""
Branch session lifecycle

- POST /api/auth/staff-login: PIN step-up, then a branch session token
- POST /api/auth/logout: deactivate the session in X-Session-Token
- GET  /api/auth/whoami: the resolved principal and its permissions
"""

from datetime import timedelta

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import audit_log, require_auth
from ..services import session_service, step_up_service
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/staff-login")
@audit_log("STAFF_LOGIN", "staff_session")
def staff_login_route():
    """
    Open a branch session for a staff member.

    Body: {"staffId": "...", "pin": "1234"}

    The session is scoped to the staff member's branch; the plaintext token
    is returned once and must be sent back as X-Session-Token.
    """
    data = request.get_json(silent=True) or {}
    pin = data.get("pin") if data.get("pin") is not None else data.get("staffPin")

    staff = step_up_service.require_valid_pin(
        data.get("staffId"),
        pin,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    g.verified_staff = staff

    session, token = session_service.create_session(
        staff,
        lifetime=timedelta(days=current_app.config["STAFF_SESSION_DAYS"]),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )

    current_app.logger.info("Branch session opened for staff %s at branch %s", staff.id, staff.branch_id)

    return jsonify({
        "status": "success",
        "data": {
            "sessionToken": token,
            "expiresAt": to_utc_z(session.expires_at),
            "branchId": session.branch_id,
            "staff": staff.to_dict(),
        },
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("X-Session-Token")
    revoked = session_service.revoke_session(token) if token else False
    return jsonify({"status": "success", "revoked": revoked})


@auth_bp.get("/whoami")
@require_auth
def whoami_route():
    principal = g.principal
    return jsonify({
        "status": "success",
        "data": {
            **principal.to_dict(),
            "permissions": sorted(g.permissions),
            "permissionCount": len(g.permissions),
        },
    })
