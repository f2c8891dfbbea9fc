# Overview: PIN step-up authentication with brute-force lockout.

"""
PIN Step-Up Authentication

WHY: Sensitive front-desk actions (creating members, processing renewals,
opening a branch session) must be confirmed by the staff member's PIN even
when the request is already authenticated.

LOCKOUT:
- Every well-formed attempt is appended to staff_security_events as
  pin_attempt BEFORE the PIN is checked
- More than MAX_PIN_ATTEMPTS attempts inside ATTEMPT_WINDOW -> TooManyAttempts,
  even if the PIN is correct
- The window is rolling: the lock lifts when the oldest attempt in the
  window is ATTEMPT_WINDOW old

KNOWN LIMITATION: append-then-count is not atomic. Concurrent attempts for
the same staff member can each see a count under the limit, so
MAX_PIN_ATTEMPTS is a soft bound.

Malformed PINs are rejected before anything is written, so they neither
consume attempts nor leave records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from ..errors import BadRequest, InvalidPin, InvalidPinFormat, MigrationRequired, ResourceNotFound, TooManyAttempts
from ..models import BranchStaff
from ..time_utils import seconds_until, utcnow
from . import credential_store, session_service
from .pin_service import PinValidationError, hash_pin, is_valid_pin_format, validate_pin_strength, verify_pin_hash


# Configuration constants
MAX_PIN_ATTEMPTS = 5
ATTEMPT_WINDOW = timedelta(minutes=15)


class PinEvent:
    ATTEMPT = "pin_attempt"
    SUCCESS = "pin_success"
    FAILURE = "pin_failure"
    LOCKOUT = "pin_lockout"
    CHANGED = "pin_changed"
    CLEARED = "pin_cleared"


@dataclass(frozen=True)
class PinVerification:
    is_valid: bool
    attempts_remaining: int
    staff: BranchStaff | None = None


def _window_start():
    return utcnow() - ATTEMPT_WINDOW


def _locked_until(staff_id: str, since):
    oldest = credential_store.oldest_security_event_at(staff_id, PinEvent.ATTEMPT, since)
    if oldest is None:
        return None
    return oldest + ATTEMPT_WINDOW


def verify_pin(
    staff_id: str,
    pin,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> PinVerification:
    """
    Check a staff member's PIN.

    Raises:
    - BadRequest: staff_id or pin missing
    - InvalidPinFormat: pin is not exactly 4 digits (nothing recorded)
    - TooManyAttempts: lockout threshold exceeded in the window
    - MigrationRequired: staff record has no pin_hash (no comparison made)

    Returns PinVerification; is_valid False means wrong PIN or unknown staff.
    """
    if not staff_id or pin is None or pin == "":
        raise BadRequest("staffId and staffPin are required")

    if not is_valid_pin_format(pin):
        raise InvalidPinFormat()

    credential_store.append_security_event(
        staff_id,
        PinEvent.ATTEMPT,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    since = _window_start()
    attempt_count = credential_store.count_security_events(staff_id, PinEvent.ATTEMPT, since)

    if attempt_count > MAX_PIN_ATTEMPTS:
        credential_store.append_security_event(
            staff_id,
            PinEvent.LOCKOUT,
            ip_address=ip_address,
            user_agent=user_agent,
            details=f"{attempt_count} attempts in window",
        )
        raise TooManyAttempts(lockoutUntil=_locked_until(staff_id, since))

    attempts_remaining = max(0, MAX_PIN_ATTEMPTS - attempt_count)

    staff = credential_store.get_staff(staff_id)
    # Unknown and inactive staff look exactly like a wrong PIN
    if not staff or not staff.is_active:
        credential_store.append_security_event(
            staff_id,
            PinEvent.FAILURE,
            ip_address=ip_address,
            user_agent=user_agent,
            details="unknown or inactive staff",
        )
        return PinVerification(is_valid=False, attempts_remaining=attempts_remaining)

    if staff.pin_hash is None:
        raise MigrationRequired()

    if verify_pin_hash(pin, staff.pin_hash):
        credential_store.append_security_event(
            staff_id,
            PinEvent.SUCCESS,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return PinVerification(is_valid=True, attempts_remaining=attempts_remaining, staff=staff)

    credential_store.append_security_event(
        staff_id,
        PinEvent.FAILURE,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return PinVerification(is_valid=False, attempts_remaining=attempts_remaining)


def require_valid_pin(staff_id: str, pin, **client) -> BranchStaff:
    """verify_pin, raising InvalidPin for a wrong PIN. Returns the verified staff record."""
    result = verify_pin(staff_id, pin, **client)
    if not result.is_valid:
        raise InvalidPin(attemptsRemaining=result.attempts_remaining)
    return result.staff


def get_lockout_status(staff_id: str) -> dict:
    """
    Get lockout status for a staff member.

    Returns dict with:
    - locked: bool
    - attempts: int (pin_attempt events in the current window)
    - max_attempts: int
    - locked_until: datetime | None
    - seconds_until_unlock: int | None
    """
    since = _window_start()
    attempts = credential_store.count_security_events(staff_id, PinEvent.ATTEMPT, since)
    locked = attempts >= MAX_PIN_ATTEMPTS

    locked_until = _locked_until(staff_id, since) if locked else None
    seconds_until_unlock = seconds_until(locked_until)

    return {
        "locked": locked,
        "attempts": attempts,
        "max_attempts": MAX_PIN_ATTEMPTS,
        "locked_until": locked_until,
        "seconds_until_unlock": seconds_until_unlock,
    }


def set_staff_pin(
    staff_id: str,
    new_pin,
    *,
    changed_by: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> BranchStaff:
    """
    Set (or reset) a staff member's PIN.

    The new PIN must pass the PIN policy. Existing branch sessions of the
    staff member are revoked.
    """
    try:
        validate_pin_strength(new_pin)
    except PinValidationError as e:
        raise InvalidPinFormat(str(e))

    staff = credential_store.get_staff(staff_id)
    if not staff:
        raise ResourceNotFound("Staff member not found")

    credential_store.update_staff_pin_hash(staff.id, hash_pin(new_pin))
    session_service.revoke_all_staff_sessions(staff.id)
    credential_store.append_security_event(
        staff.id,
        PinEvent.CHANGED,
        ip_address=ip_address,
        user_agent=user_agent,
        details=f"changed_by={changed_by}" if changed_by else None,
    )
    return staff


def clear_staff_pin(
    staff_id: str,
    *,
    changed_by: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> BranchStaff:
    """
    Remove a staff member's PIN hash.

    The staff member then gets MigrationRequired until a new PIN is set.
    """
    staff = credential_store.get_staff(staff_id)
    if not staff:
        raise ResourceNotFound("Staff member not found")

    credential_store.update_staff_pin_hash(staff.id, None)
    session_service.revoke_all_staff_sessions(staff.id)
    credential_store.append_security_event(
        staff.id,
        PinEvent.CLEARED,
        ip_address=ip_address,
        user_agent=user_agent,
        details=f"changed_by={changed_by}" if changed_by else None,
    )
    return staff
