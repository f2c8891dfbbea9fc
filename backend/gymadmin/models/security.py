from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StaffSecurityEvent(db.Model):
    """
    Staff security event log (PIN attempts, lockouts, branch denials).

    The lockout window is computed from the pin_attempt rows of this table.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    """
    __tablename__ = "staff_security_events"
    __table_args__ = (
        db.Index("ix_staff_security_events_staff_type", "staff_id", "event_type", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Not a foreign key: attempts against unknown staff ids are still recorded
    staff_id = db.Column(db.String(36), nullable=False)

    event_type = db.Column(db.String(32), nullable=False, index=True)
    details = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "event_type": self.event_type,
            "details": self.details,
            "ip_address": self.ip_address,
            "occurred_at": to_utc_z(self.occurred_at),
        }
