# Overview: Credential store adapter; every read/write of staff, profile, session,
# security-event and audit rows goes through here.

"""
Credential Store Adapter

WHY: The access core treats the database as an opaque row store. Keeping all
queries in one module means the rest of the core never touches db.session, and
every storage failure surfaces as the same StorageUnavailable error.

FAILURE POLICY:
- SQLAlchemyError -> session rolled back, StorageUnavailable raised
- Callers decide whether to propagate (identity/permission paths) or swallow
  (audit path)
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageUnavailable
from ..extensions import db
from ..models import AuditLog, BranchStaff, Package, StaffSecurityEvent, StaffSession, UserProfile
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


def _store_call(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Credential store call %s failed: %s", f.__name__, e)
            raise StorageUnavailable() from e
    return wrapper


# -- staff --

@_store_call
def get_staff(staff_id: str) -> BranchStaff | None:
    if not staff_id:
        return None
    return db.session.get(BranchStaff, staff_id)


@_store_call
def list_branch_staff(branch_id: str) -> list[BranchStaff]:
    return (
        db.session.query(BranchStaff)
        .filter_by(branch_id=branch_id, is_active=True)
        .order_by(BranchStaff.role.asc(), BranchStaff.last_name.asc())
        .all()
    )


@_store_call
def touch_staff_last_active(staff_id: str) -> None:
    db.session.query(BranchStaff).filter_by(id=staff_id).update(
        {BranchStaff.last_active: utcnow()},
        synchronize_session=False,
    )
    db.session.commit()


@_store_call
def update_staff_pin_hash(staff_id: str, pin_hash: str | None) -> bool:
    staff = db.session.get(BranchStaff, staff_id)
    if not staff:
        return False

    staff.pin_hash = pin_hash
    staff.updated_at = utcnow()
    db.session.commit()
    return True


# -- platform profiles --

@_store_call
def get_profile_role(auth_user_id: str) -> str | None:
    profile = db.session.query(UserProfile).filter_by(auth_user_id=auth_user_id).first()
    if not profile:
        return None
    return profile.role


# -- branch sessions --

@_store_call
def get_session_by_hash(token_hash: str) -> StaffSession | None:
    return db.session.query(StaffSession).filter_by(token_hash=token_hash).first()


@_store_call
def insert_session(
    *,
    token_hash: str,
    staff_id: str,
    branch_id: str,
    created_at: datetime,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> StaffSession:
    session = StaffSession(
        token_hash=token_hash,
        staff_id=staff_id,
        branch_id=branch_id,
        is_active=True,
        created_at=created_at,
        last_used_at=created_at,
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
    )
    db.session.add(session)
    db.session.commit()
    return session


@_store_call
def touch_session(session_id: int) -> None:
    db.session.query(StaffSession).filter_by(id=session_id).update(
        {StaffSession.last_used_at: utcnow()},
        synchronize_session=False,
    )
    db.session.commit()


@_store_call
def delete_session(session_id: int) -> bool:
    """Delete one session row. Deleting a missing row is a no-op."""
    deleted = db.session.query(StaffSession).filter_by(id=session_id).delete(synchronize_session=False)
    db.session.commit()
    return deleted > 0


@_store_call
def deactivate_session(token_hash: str) -> bool:
    updated = db.session.query(StaffSession).filter_by(token_hash=token_hash, is_active=True).update(
        {StaffSession.is_active: False},
        synchronize_session=False,
    )
    db.session.commit()
    return updated > 0


@_store_call
def deactivate_staff_sessions(staff_id: str) -> int:
    updated = db.session.query(StaffSession).filter_by(staff_id=staff_id, is_active=True).update(
        {StaffSession.is_active: False},
        synchronize_session=False,
    )
    db.session.commit()
    return updated


@_store_call
def delete_expired_sessions(now: datetime) -> int:
    deleted = db.session.query(StaffSession).filter(
        db.or_(
            StaffSession.expires_at < now,
            StaffSession.is_active.is_(False),
        )
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


# -- staff security events (append-only) --

@_store_call
def append_security_event(
    staff_id: str,
    event_type: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
    details: str | None = None,
    occurred_at: datetime | None = None,
) -> StaffSecurityEvent:
    event = StaffSecurityEvent(
        staff_id=staff_id,
        event_type=event_type,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
        details=details,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(event)
    db.session.commit()
    return event


@_store_call
def count_security_events(staff_id: str, event_type: str, since: datetime) -> int:
    return db.session.query(StaffSecurityEvent).filter(
        StaffSecurityEvent.staff_id == staff_id,
        StaffSecurityEvent.event_type == event_type,
        StaffSecurityEvent.occurred_at >= since,
    ).count()


@_store_call
def oldest_security_event_at(staff_id: str, event_type: str, since: datetime) -> datetime | None:
    return db.session.query(db.func.min(StaffSecurityEvent.occurred_at)).filter(
        StaffSecurityEvent.staff_id == staff_id,
        StaffSecurityEvent.event_type == event_type,
        StaffSecurityEvent.occurred_at >= since,
    ).scalar()


# -- audit --

@_store_call
def insert_audit_record(record: dict) -> AuditLog:
    entry = AuditLog(**record)
    db.session.add(entry)
    db.session.commit()
    return entry


@_store_call
def get_package(package_id: str) -> Package | None:
    if not package_id:
        return None
    return db.session.get(Package, str(package_id))
