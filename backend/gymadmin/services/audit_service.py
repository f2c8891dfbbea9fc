# Overview: Audit recorder; sanitizes request/response snapshots and persists
# one audit row per answered operation without touching the response path.

"""
Audit Recorder

WRITE DISCIPLINE:
- The audit_log decorator captures an AuditOutcome while the request is
  still active, then schedules the write with Response.call_on_close
- The write therefore runs after the body has been handed to the client
- At most one insert attempt; any failure is logged and swallowed
- Only responses with status < 400 are recorded

SANITIZATION:
- Credential material (PINs, passwords, hashes, tokens, national ids) is
  removed at any depth before anything is stored
- Financial actions keep a canonical snapshot (package price, payment
  method, member name...) so revenue reports can be rebuilt from the log
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from flask import current_app, has_app_context

from ..time_utils import to_utc_z, utcnow
from . import credential_store

logger = logging.getLogger(__name__)

FINANCIAL_ACTIONS = frozenset({"CREATE_MEMBER", "PROCESS_MEMBER_RENEWAL"})

REDACTED_KEYS = frozenset({
    "pinhash", "passwordhash", "nationalid", "authorization", "apikey",
})

# Matched against the normalized key (lowercase, "_" and "-" removed)
REDACTED_FRAGMENTS = ("password", "passwd", "secret", "token")
REDACTED_SUFFIXES = ("pin",)

UNKNOWN_PACKAGE = "Unknown Package"


@dataclass
class AuditOutcome:
    """Everything needed to write one audit row, captured during the request."""
    action: str
    resource_type: str
    user_id: str | None
    user_email: str | None
    status_code: int
    method: str = "GET"
    path: str = ""
    resource_id: str | None = None
    branch_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    content_type: str | None = None
    view_args: dict = field(default_factory=dict)
    query: dict = field(default_factory=dict)
    body: Any = None
    response_body: Any = None
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def success(self) -> bool:
        return self.status_code < 400


def _normalize_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def _is_redacted(key) -> bool:
    if not isinstance(key, str):
        return False
    normalized = _normalize_key(key)
    return (
        normalized in REDACTED_KEYS
        or any(fragment in normalized for fragment in REDACTED_FRAGMENTS)
        or normalized.endswith(REDACTED_SUFFIXES)
    )


def strip_credentials(value):
    """Return a copy of `value` with credential keys removed at every depth."""
    if isinstance(value, Mapping):
        return {k: strip_credentials(v) for k, v in value.items() if not _is_redacted(k)}
    if isinstance(value, (list, tuple)):
        return [strip_credentials(v) for v in value]
    return value


def _first(body: Mapping, *keys):
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return value
    return None


def _package_info(package_id) -> dict | None:
    if not package_id:
        return None
    try:
        package = credential_store.get_package(package_id)
    except Exception:
        logger.exception("Failed to load package %s for audit enrichment", package_id)
        return None
    return package.to_audit_dict() if package else None


def _financial_snapshot(body: Mapping) -> dict:
    package_id = _first(body, "packageId", "package_id")
    package = _package_info(package_id) or {}
    package_type = package.get("type") or _first(body, "package_type", "packageType")

    return {
        "package_price": _first(body, "customPrice", "amountPaid", "package_price", "packagePrice", "totalAmount"),
        "payment_method": _first(body, "paymentMethod", "payment_method"),
        "package_name": package.get("name") or _first(body, "package_name", "packageName") or UNKNOWN_PACKAGE,
        "package_type": package_type,
        "package_id": package_id,
        "duration_months": _first(body, "duration", "duration_months", "durationMonths"),
        "member_type": package_type,
        "branch_id": _first(body, "branchId", "branch_id"),
        "staff_id": _first(body, "staffId", "staff_id"),
        "staff_pin_provided": "YES" if body.get("staffPin") else "NO",
        "member_first_name": _first(body, "firstName", "first_name"),
        "member_last_name": _first(body, "lastName", "last_name"),
        "member_email": body.get("email"),
        "start_date": _first(body, "startDate", "start_date"),
        "expiry_date": _first(body, "expiryDate", "expiry_date"),
        "total_amount": _first(body, "amountPaid", "totalAmount"),
    }


def sanitize_request_data(body, action: str):
    """Reduce a request body to what may be stored in the audit log."""
    if body is None:
        return None

    if action in FINANCIAL_ACTIONS and isinstance(body, Mapping):
        return strip_credentials(_financial_snapshot(body))

    keys = list(body.keys()) if isinstance(body, Mapping) else []
    return {
        "operation_type": action,
        "resource_count": len(body) if isinstance(body, list) else 1,
        "has_sensitive_data": any(_is_redacted(k) for k in keys),
        "data_keys": [k for k in keys if not _is_redacted(k)],
    }


def sanitize_response_data(payload, action: str):
    """Keep status/summary fields of a JSON response, never its full body."""
    if not isinstance(payload, Mapping):
        return None

    data = payload.get("data")
    summary = {
        "status": payload.get("status"),
        "success": payload.get("status") == "success",
        "timestamp": to_utc_z(utcnow()),
        "message": payload.get("message"),
    }

    if action in FINANCIAL_ACTIONS:
        data = data if isinstance(data, Mapping) else {}
        member = data.get("member") if isinstance(data.get("member"), Mapping) else {}
        renewal = data.get("renewal") if isinstance(data.get("renewal"), Mapping) else {}
        package = data.get("package") if isinstance(data.get("package"), Mapping) else {}

        member_name = _first(data, "member_name", "memberName")
        if not member_name and data.get("firstName") and data.get("lastName"):
            member_name = f"{data['firstName']} {data['lastName']}"
        if not member_name and member.get("first_name") and member.get("last_name"):
            member_name = f"{member['first_name']} {member['last_name']}"

        summary.update({
            "member_id": data.get("id") or member.get("id") or data.get("memberId"),
            "renewal_id": renewal.get("id"),
            "transaction_successful": summary["success"],
            "amount_processed": _first(data, "amount_paid", "package_price", "amountPaid"),
            "new_expiry_date": member.get("expiry_date") or _first(data, "new_expiry", "expiryDate"),
            "member_name": member_name,
            "package_name": package.get("name") or data.get("packageName"),
        })
        return strip_credentials(summary)

    if isinstance(data, list):
        record_count = len(data)
    else:
        record_count = 1 if data else 0
    summary.update({"record_count": record_count, "has_data": bool(data)})
    return summary


def build_audit_record(outcome: AuditOutcome) -> dict | None:
    """Map an outcome to audit_logs columns. Returns None when no row must be written."""
    if not outcome.success:
        return None

    if not outcome.user_id or not outcome.user_email:
        logger.warning(
            "Audit record for %s skipped: missing actor id or email", outcome.action,
        )
        return None

    return {
        "user_id": str(outcome.user_id),
        "user_email": outcome.user_email,
        "action": outcome.action,
        "resource_type": outcome.resource_type,
        "resource_id": str(outcome.resource_id) if outcome.resource_id is not None else None,
        "branch_id": str(outcome.branch_id) if outcome.branch_id is not None else None,
        "ip_address": outcome.ip_address,
        "user_agent": outcome.user_agent[:512] if outcome.user_agent else None,
        "timestamp": outcome.timestamp,
        "success": True,
        "status_code": outcome.status_code,
        "error_message": None,
        "request_data": {
            "method": outcome.method,
            "path": outcome.path,
            "params": strip_credentials(outcome.view_args),
            "query": strip_credentials(outcome.query),
            "body": sanitize_request_data(outcome.body, outcome.action),
            "headers": {
                "content-type": outcome.content_type,
                "user-agent": outcome.user_agent,
            },
        },
        "response_data": sanitize_response_data(outcome.response_body, outcome.action),
    }


def record(outcome: AuditOutcome) -> bool:
    """
    Persist one audit row for `outcome`.

    Never raises. Returns True if a row was written.
    """
    try:
        entry = build_audit_record(outcome)
        if entry is None:
            return False
        credential_store.insert_audit_record(entry)
        return True
    except Exception:
        logger.exception("Failed to write audit record for %s", outcome.action)
        return False


def schedule_on_close(response, outcome: AuditOutcome):
    """
    Write the audit row once the response has been delivered.

    The callback runs after the request context is gone, so it pushes an
    application context of its own unless one is still active.
    """
    app = current_app._get_current_object()

    def _write_audit_record():
        if has_app_context():
            record(outcome)
            return
        with app.app_context():
            record(outcome)

    response.call_on_close(_write_audit_record)
    return response
