# Overview: Service-layer operations for branch sessions issued after staff PIN login.

"""
Branch Session Token Management

WHY: Staff at the front desk authenticate with their PIN and then carry an
opaque session token (X-Session-Token header) scoped to their branch.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Branch captured at creation; principals never take it from request input
- Expired rows deleted lazily on lookup and eagerly by cleanup_expired_sessions
- Deletes are idempotent: no process holds a lock on a session row
"""

import hashlib
import secrets
from datetime import timedelta

from ..models import BranchStaff, StaffSession
from ..time_utils import utcnow
from . import credential_store


SESSION_LIFETIME = timedelta(days=90)


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    staff: BranchStaff,
    *,
    lifetime: timedelta = SESSION_LIFETIME,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[StaffSession, str]:
    """
    Create a branch session for a staff member.

    Returns (session_record, plaintext_token).
    Raises ValueError if the staff member has no branch.
    """
    if not staff.branch_id:
        raise ValueError("Staff member is not assigned to a branch")

    plaintext_token = generate_token()
    now = utcnow()

    session = credential_store.insert_session(
        token_hash=hash_token(plaintext_token),
        staff_id=staff.id,
        branch_id=staff.branch_id,
        created_at=now,
        expires_at=now + lifetime,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return session, plaintext_token


def lookup_session(token: str) -> StaffSession | None:
    """
    Return the active, unexpired session for a token, or None.

    An expired row is deleted on the spot.
    """
    if not token:
        return None

    session = credential_store.get_session_by_hash(hash_token(token))
    if not session or not session.is_active:
        return None

    if session.expires_at <= utcnow():
        credential_store.delete_session(session.id)
        return None

    return session


def revoke_session(token: str) -> bool:
    """Deactivate a session (logout). Returns False if it was not active."""
    if not token:
        return False
    return credential_store.deactivate_session(hash_token(token))


def revoke_all_staff_sessions(staff_id: str) -> int:
    """
    Deactivate every active session of a staff member.

    WHY: PIN reset or staff deactivation must force re-authentication.
    """
    return credential_store.deactivate_staff_sessions(staff_id)


def cleanup_expired_sessions() -> int:
    """
    Delete expired and deactivated sessions.

    Returns count of sessions deleted. Safe to run concurrently or repeatedly.
    """
    return credential_store.delete_expired_sessions(utcnow())
