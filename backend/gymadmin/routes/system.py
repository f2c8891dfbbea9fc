# backend/gymadmin/routes/system.py
"""
System health endpoint.

Reports credential-store connectivity and the effective auth configuration
so a misconfigured deployment is visible without reading logs.
"""

import time

from flask import Blueprint, current_app

from ..config import AuthMode
from ..extensions import db
from ..models import BranchStaff, StaffSession
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check credential-store connectivity with two cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        staff_count = db.session.query(BranchStaff).count()
        active_sessions = db.session.query(StaffSession).filter(
            StaffSession.is_active.is_(True),
            StaffSession.expires_at > utcnow(),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "staff": staff_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_auth_configuration() -> dict:
    """Development bypass and a missing platform URL both degrade the service."""
    auth_mode = current_app.extensions["auth_mode"]
    platform_client = current_app.extensions["platform_identity"]

    warnings = []
    if auth_mode is AuthMode.DEVELOPMENT_BYPASS:
        warnings.append("development bypass is enabled")
    if not platform_client.configured:
        warnings.append("PLATFORM_AUTH_URL is not set; bearer tokens cannot be validated")

    return {
        "status": "degraded" if warnings else "healthy",
        "auth_mode": auth_mode.value,
        "roles": len(current_app.extensions["permission_registry"].roles),
        "warnings": warnings,
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: credential store unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    auth_health = check_auth_configuration()

    all_checks = [database_health, auth_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "auth": auth_health,
        }
    }

    return response, http_status
