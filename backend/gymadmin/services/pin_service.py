# Overview: PIN format checks, bcrypt hashing and constant-time verification.

"""
Staff PIN hashing

SECURITY NOTES:
- PINs are exactly 4 ASCII digits
- Hashed with bcrypt (cost factor 12); bcrypt.checkpw compares in constant time
- There is no plaintext fallback: a staff record without pin_hash cannot be
  verified (see step_up_service)
"""

import re

import bcrypt

PIN_PATTERN = re.compile(r"[0-9]{4}")
BCRYPT_ROUNDS = 12

# Rejected when a PIN is set through the admin flow; existing hashes still verify
WEAK_PINS = frozenset({
    "0000", "1111", "2222", "3333", "4444", "5555", "6666", "7777", "8888", "9999",
    "1234", "4321", "0123", "3210",
})


class PinValidationError(Exception):
    """Raised when a new PIN does not meet the PIN policy."""
    pass


def is_valid_pin_format(pin) -> bool:
    return isinstance(pin, str) and PIN_PATTERN.fullmatch(pin) is not None


def validate_pin_strength(pin: str) -> None:
    """
    Validate a PIN that is about to be stored.

    Raises PinValidationError if the PIN is not 4 digits or is a repeated
    or sequential pattern.
    """
    if not pin:
        raise PinValidationError("PIN is required")

    if not is_valid_pin_format(pin):
        raise PinValidationError("PIN must be exactly 4 digits")

    if pin in WEAK_PINS:
        raise PinValidationError("PIN is too weak. Avoid sequential or repeated digits")


def hash_pin(pin: str) -> str:
    """Hash a PIN. Only the format is checked; callers apply validate_pin_strength."""
    if not is_valid_pin_format(pin):
        raise PinValidationError("PIN must be exactly 4 digits")
    hashed = bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_pin_hash(pin: str, pin_hash: str) -> bool:
    """
    Compare a PIN against its bcrypt hash.

    Returns False for a malformed stored hash instead of raising.
    """
    if not pin or not pin_hash:
        return False

    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        return False
